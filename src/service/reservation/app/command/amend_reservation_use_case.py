from typing import Optional

from opentelemetry import trace

from src.platform.config.core_setting import settings
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
from src.service.reservation.domain.enum import NotificationEvent, ReservationStatus
from src.service.reservation.domain.value_object import TimeWindow


class AmendReservationUseCase:
    """
    Change the window and/or notes of a confirmed or waitlisted reservation.

    A confirmed reservation moving to a new window is re-checked with its own
    current seat excluded; if it no longer fits the amendment is rejected
    (never silently demoted to the waitlist).
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
        min_reservation_minutes: int = settings.MIN_RESERVATION_MINUTES,
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
        self.min_reservation_minutes = min_reservation_minutes
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(
        self,
        *,
        reservation_id: str,
        actor_id: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Reservation:
        with self.tracer.start_as_current_span(
            'use_case.amend_reservation',
            attributes={'reservation.id': reservation_id, 'actor.id': actor_id},
        ):
            reservation = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
            if not reservation:
                raise NotFoundError('Reservation not found')
            await ensure_owner_or_admin(
                reservation=reservation,
                actor_id=actor_id,
                student_query_repo=self.student_query_repo,
                action='amend',
            )

            lesson = await self.lesson_query_repo.get_by_id(lesson_id=reservation.lesson_id)
            if lesson is None:
                raise DataIntegrityError(
                    f'Lesson {reservation.lesson_id} of reservation {reservation_id} not found'
                )
            if lesson.date < self.clock.today().isoformat():
                raise DomainError('Cannot amend a reservation for a past lesson')

            async with self.write_guard.hold(date=reservation.date):
                current = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
                if not current:
                    raise NotFoundError('Reservation not found')
                if not current.is_active:
                    raise DomainError(f'Cannot amend a {current.status} reservation')

                window = None
                window_changed = False
                if lesson.classroom_type.is_time_priced and (start_time or end_time):
                    window = TimeWindow.parse(
                        start_time or current.start_time, end_time or current.end_time
                    )
                    lesson.validate_window(window=window, min_minutes=self.min_reservation_minutes)
                    window_changed = window != current.window

                # ========== Re-check capacity without this reservation's own seat ==========
                if window_changed and current.status is ReservationStatus.CONFIRMED:
                    if not await self.availability_checker.has_room(
                        lesson=lesson,
                        window=window,
                        is_beginner=current.is_beginner,
                        exclude_reservation_id=current.reservation_id,
                    ):
                        raise ConflictError(f'{window} is no longer available for this lesson')

                amended = current.amend(now=self.clock.now(), window=window, notes=notes)

                await self.reservation_command_repo.update(reservation=amended)
                outcome = await self.cache_manager.patch_row(
                    dataset=Dataset.RESERVATIONS,
                    record_id=amended.reservation_id,
                    record=amended.to_record(),
                )
                if outcome is not MutationOutcome.APPLIED:
                    await self.cache_manager.rebuild(dataset=Dataset.RESERVATIONS)

            Logger.base.info(
                f'✏️ [AMEND] {reservation_id}: {amended.start_time}-{amended.end_time}'
            )
            await self.notification_dispatcher.notify_student_and_admin(
                reservation=amended, event=NotificationEvent.RESERVATION_AMENDED
            )
            return amended
