from typing import Optional

from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import ConflictError, DomainError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto import Dataset, MutationOutcome
from src.service.reservation.app.helper.availability_checker import AvailabilityChecker
from src.service.reservation.app.helper.notification_dispatcher import NotificationDispatcher
from src.service.reservation.app.helper.reservation_write_guard import ReservationWriteGuard
from src.service.reservation.app.interface import (
    ICacheManager,
    IClock,
    ILessonQueryRepo,
    IReservationCommandRepo,
)
from src.service.reservation.domain.entity import Reservation
from src.service.reservation.domain.enum import NotificationEvent, ReservationStatus
from src.service.reservation.domain.value_object import TimeWindow


class CreateReservationUseCase:
    """
    Create a reservation - Confirmed when the target pool has room, else Waitlisted.

    Flow:
    1. Validate lesson (exists, scheduled, not past) and the requested window
    2. Under the per-date write lock:
       a. Reject a second active reservation on the same date (any classroom)
       b. Check capacity of the pool(s) the window touches
       c. Append to the backing store, then to the reservations snapshot
    3. Notify student and admin (best-effort)
    """

    def __init__(
        self,
        *,
        lesson_query_repo: ILessonQueryRepo,
        reservation_command_repo: IReservationCommandRepo,
        cache_manager: ICacheManager,
        availability_checker: AvailabilityChecker,
        write_guard: ReservationWriteGuard,
        notification_dispatcher: NotificationDispatcher,
        clock: IClock,
        min_reservation_minutes: int = settings.MIN_RESERVATION_MINUTES,
    ) -> None:
        self.lesson_query_repo = lesson_query_repo
        self.reservation_command_repo = reservation_command_repo
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
        lesson_id: str,
        student_id: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        is_beginner: bool = False,
        notes: str = '',
    ) -> Reservation:
        with self.tracer.start_as_current_span(
            'use_case.create_reservation',
            attributes={'lesson.id': lesson_id, 'student.id': student_id},
        ):
            # ========== Step 1: Validate lesson and window ==========
            lesson = await self.lesson_query_repo.get_by_id(lesson_id=lesson_id)
            if not lesson:
                raise NotFoundError('Lesson not found')
            if not lesson.is_bookable:
                raise DomainError(f'Lesson is {lesson.status} and cannot be reserved')
            if lesson.date < self.clock.today().isoformat():
                raise DomainError('Cannot reserve a past lesson')

            window = None
            if lesson.classroom_type.is_time_priced:
                window = TimeWindow.parse(start_time, end_time)
                lesson.validate_window(window=window, min_minutes=self.min_reservation_minutes)

            async with self.write_guard.hold(date=lesson.date):
                # ========== Step 2: One active reservation per student per day ==========
                if await self.availability_checker.has_active_reservation_on(
                    student_id=student_id, date=lesson.date
                ):
                    raise ConflictError(f'You already have a reservation on {lesson.date}')

                # ========== Step 3: Capacity ==========
                has_room = await self.availability_checker.has_room(
                    lesson=lesson, window=window, is_beginner=is_beginner
                )
                reservation = Reservation.create(
                    lesson=lesson,
                    student_id=student_id,
                    window=window,
                    is_beginner=is_beginner,
                    status=ReservationStatus.CONFIRMED if has_room else ReservationStatus.WAITLISTED,
                    now=self.clock.now(),
                    notes=notes,
                )

                # ========== Step 4: Persist, then mirror into the cache ==========
                await self.reservation_command_repo.create(reservation=reservation)
                outcome = await self.cache_manager.append_row(
                    dataset=Dataset.RESERVATIONS, record=reservation.to_record()
                )
                if outcome is not MutationOutcome.APPLIED:
                    await self.cache_manager.rebuild(dataset=Dataset.RESERVATIONS)

            Logger.base.info(
                f'🎫 [CREATE] {reservation.reservation_id} for {student_id} on {lesson.date} '
                f'({lesson.classroom}): {reservation.status}'
            )

            # ========== Step 5: Notify ==========
            await self.notification_dispatcher.notify_student_and_admin(
                reservation=reservation, event=NotificationEvent.RESERVATION_CREATED
            )
            return reservation
