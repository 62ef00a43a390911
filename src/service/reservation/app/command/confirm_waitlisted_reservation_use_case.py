from opentelemetry import trace

from src.platform.exception.exceptions import (
    ConflictError,
    DataIntegrityError,
    DomainError,
    NotFoundError,
)
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto import Dataset, MutationOutcome
from src.service.reservation.app.helper.availability_checker import AvailabilityChecker
from src.service.reservation.app.helper.notification_dispatcher import NotificationDispatcher
from src.service.reservation.app.helper.ownership import ensure_owner_or_admin
from src.service.reservation.app.helper.reservation_write_guard import ReservationWriteGuard
from src.service.reservation.app.interface import (
    ICacheManager,
    IClock,
    ILessonQueryRepo,
    IReservationCommandRepo,
    IReservationQueryRepo,
    IStudentQueryRepo,
)
from src.service.reservation.domain.entity import Reservation
from src.service.reservation.domain.enum import NotificationEvent


class ConfirmWaitlistedReservationUseCase:
    """Waitlisted → Confirmed, only if the pool still has room right now"""

    def __init__(
        self,
        *,
        reservation_query_repo: IReservationQueryRepo,
        reservation_command_repo: IReservationCommandRepo,
        lesson_query_repo: ILessonQueryRepo,
        student_query_repo: IStudentQueryRepo,
        cache_manager: ICacheManager,
        availability_checker: AvailabilityChecker,
        write_guard: ReservationWriteGuard,
        notification_dispatcher: NotificationDispatcher,
        clock: IClock,
    ) -> None:
        self.reservation_query_repo = reservation_query_repo
        self.reservation_command_repo = reservation_command_repo
        self.lesson_query_repo = lesson_query_repo
        self.student_query_repo = student_query_repo
        self.cache_manager = cache_manager
        self.availability_checker = availability_checker
        self.write_guard = write_guard
        self.notification_dispatcher = notification_dispatcher
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(self, *, reservation_id: str, actor_id: str) -> Reservation:
        with self.tracer.start_as_current_span(
            'use_case.confirm_waitlisted_reservation',
            attributes={'reservation.id': reservation_id, 'actor.id': actor_id},
        ):
            reservation = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
            if not reservation:
                raise NotFoundError('Reservation not found')
            await ensure_owner_or_admin(
                reservation=reservation,
                actor_id=actor_id,
                student_query_repo=self.student_query_repo,
                action='confirm',
            )

            lesson = await self.lesson_query_repo.get_by_id(lesson_id=reservation.lesson_id)
            if lesson is None:
                raise DataIntegrityError(
                    f'Lesson {reservation.lesson_id} of reservation {reservation_id} not found'
                )
            if not lesson.is_bookable or lesson.date < self.clock.today().isoformat():
                raise DomainError('This lesson is no longer open for reservations')

            async with self.write_guard.hold(date=reservation.date):
                current = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
                if not current:
                    raise NotFoundError('Reservation not found')
                confirmed = current.confirm(now=self.clock.now())

                if not await self.availability_checker.has_room(
                    lesson=lesson, window=current.window, is_beginner=current.is_beginner
                ):
                    raise ConflictError('The seat is no longer available')

                await self.reservation_command_repo.update(reservation=confirmed)
                outcome = await self.cache_manager.patch_status(
                    dataset=Dataset.RESERVATIONS,
                    record_id=confirmed.reservation_id,
                    status=confirmed.status.value,
                )
                if outcome is MutationOutcome.APPLIED:
                    outcome = await self.cache_manager.patch_column(
                        dataset=Dataset.RESERVATIONS,
                        record_id=confirmed.reservation_id,
                        column='updated_at',
                        value=confirmed.to_record()['updated_at'],
                    )
                if outcome is not MutationOutcome.APPLIED:
                    await self.cache_manager.rebuild(dataset=Dataset.RESERVATIONS)

            Logger.base.info(f'✅ [CONFIRM] {reservation_id} promoted from the waitlist')
            await self.notification_dispatcher.notify_student_and_admin(
                reservation=confirmed, event=NotificationEvent.RESERVATION_CONFIRMED
            )
            return confirmed
