from typing import List, Optional

from src.platform.exception.exceptions import DataIntegrityError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface import IReservationQueryRepo
from src.service.reservation.domain.entity import Lesson, Reservation
from src.service.reservation.domain.service import AvailabilityCalculator
from src.service.reservation.domain.value_object import TimeWindow


class AvailabilityChecker:
    """
    Lifecycle-facing checks over the calculator.

    Capacity checks fail open (an unexpected fault reads as "has room");
    the duplicate-day check fails closed (a fault reads as "no duplicate").
    Data-integrity faults always propagate.
    """

    def __init__(
        self,
        *,
        calculator: AvailabilityCalculator,
        reservation_query_repo: IReservationQueryRepo,
    ) -> None:
        self.calculator = calculator
        self.reservation_query_repo = reservation_query_repo

    async def has_room(
        self,
        *,
        lesson: Lesson,
        window: Optional[TimeWindow],
        is_beginner: bool,
        exclude_reservation_id: Optional[str] = None,
    ) -> bool:
        try:
            reservations = await self.reservation_query_repo.list_by_lesson(
                lesson_id=lesson.lesson_id
            )
            availability = self.calculator.calculate(
                lesson=lesson,
                reservations=reservations,
                exclude_reservation_id=exclude_reservation_id,
            )
            return self.calculator.has_room(
                lesson=lesson, availability=availability, window=window, is_beginner=is_beginner
            )
        except DataIntegrityError:
            raise
        except Exception as e:
            Logger.base.warning(
                f'⚠️ [AVAILABILITY] Check failed for lesson {lesson.lesson_id}, '
                f'treating as available: {e}'
            )
            return True

    async def has_active_reservation_on(
        self, *, student_id: str, date: str, exclude_reservation_id: Optional[str] = None
    ) -> bool:
        try:
            reservations = await self.reservation_query_repo.list_by_student(student_id=student_id)
        except DataIntegrityError:
            raise
        except Exception as e:
            Logger.base.warning(
                f'⚠️ [AVAILABILITY] Duplicate-day check failed for {student_id} on {date}: {e}'
            )
            return False
        return any(
            r.is_active and r.date == date and r.reservation_id != exclude_reservation_id
            for r in reservations
        )

    async def promotable_waitlisted(self, *, lesson: Lesson) -> List[Reservation]:
        """Waitlisted reservations whose category and window match a now-open pool"""
        reservations = await self.reservation_query_repo.list_by_lesson(lesson_id=lesson.lesson_id)
        availability = self.calculator.calculate(lesson=lesson, reservations=reservations)
        return self.calculator.promotable_waitlisted(
            lesson=lesson, availability=availability, reservations=reservations
        )
