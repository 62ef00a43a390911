from opentelemetry import trace

from src.platform.exception.exceptions import NotFoundError
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


class CancelReservationUseCase:
    """
    Cancel a reservation and tell matching waitlisted students a seat opened up.

    Flow:
    1. Ownership check (owner, or a roster admin)
    2. Under the per-date write lock: cancel in the store, patch the snapshot,
       then re-run availability and pick the waitlisted reservations that fit
       a now-open pool (past lessons never promote)
    3. Notify student, admin and promotable waitlisted students (best-effort)
    """

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
    async def execute(
        self, *, reservation_id: str, actor_id: str, cancel_message: str = ''
    ) -> Reservation:
        with self.tracer.start_as_current_span(
            'use_case.cancel_reservation',
            attributes={'reservation.id': reservation_id, 'actor.id': actor_id},
        ):
            reservation = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
            if not reservation:
                raise NotFoundError('Reservation not found')
            await ensure_owner_or_admin(
                reservation=reservation,
                actor_id=actor_id,
                student_query_repo=self.student_query_repo,
                action='cancel',
            )

            async with self.write_guard.hold(date=reservation.date):
                # Re-read under the lock; another request may have changed it
                current = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
                if not current:
                    raise NotFoundError('Reservation not found')
                canceled = current.cancel(now=self.clock.now(), cancel_message=cancel_message)

                await self.reservation_command_repo.update(reservation=canceled)
                outcome = await self.cache_manager.patch_row(
                    dataset=Dataset.RESERVATIONS,
                    record_id=canceled.reservation_id,
                    record=canceled.to_record(),
                )
                if outcome is not MutationOutcome.APPLIED:
                    await self.cache_manager.rebuild(dataset=Dataset.RESERVATIONS)

                lesson = await self.lesson_query_repo.get_by_id(lesson_id=canceled.lesson_id)
                promotable: list[Reservation] = []
                if lesson is None:
                    Logger.base.warning(
                        f'⚠️ [CANCEL] Lesson {canceled.lesson_id} not found, skipping waitlist'
                    )
                elif lesson.date >= self.clock.today().isoformat():
                    promotable = await self.availability_checker.promotable_waitlisted(lesson=lesson)

            Logger.base.info(
                f'🚫 [CANCEL] {reservation_id} canceled by {actor_id}, '
                f'{len(promotable)} waitlisted to notify'
            )

            await self.notification_dispatcher.notify_student_and_admin(
                reservation=canceled,
                event=NotificationEvent.RESERVATION_CANCELED,
                extra={'cancel_message': cancel_message, 'canceled_by': actor_id},
            )
            if lesson is not None and promotable:
                await self.notification_dispatcher.notify_waitlisted(
                    lesson=lesson, reservations=promotable
                )
            return canceled
