"""
Offered Lessons Query Use Case
Scheduled lessons with live seat counts, computed from the cached snapshots
"""

from datetime import datetime, timedelta
from typing import List

from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto import LessonAvailability
from src.service.reservation.app.interface import IClock, ILessonQueryRepo, IReservationQueryRepo
from src.service.reservation.domain.entity import Lesson, Reservation
from src.service.reservation.domain.service import AvailabilityCalculator


class ListOfferedLessonsUseCase:
    """
    Lessons a student can still reserve, sorted by date then classroom.

    Same-day lessons whose last session ends within ``same_day_cutoff_hours``
    of now are left out; reservations already made on them stay valid.
    """

    def __init__(
        self,
        *,
        lesson_query_repo: ILessonQueryRepo,
        reservation_query_repo: IReservationQueryRepo,
        calculator: AvailabilityCalculator,
        clock: IClock,
        same_day_cutoff_hours: int = settings.SAME_DAY_CUTOFF_HOURS,
    ) -> None:
        self.lesson_query_repo = lesson_query_repo
        self.reservation_query_repo = reservation_query_repo
        self.calculator = calculator
        self.clock = clock
        self.same_day_cutoff_hours = same_day_cutoff_hours
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(self, *, include_past: bool = False) -> List[LessonAvailability]:
        with self.tracer.start_as_current_span(
            'use_case.list_offered_lessons', attributes={'lessons.include_past': include_past}
        ):
            now = self.clock.now()
            lessons = [
                lesson
                for lesson in await self.lesson_query_repo.list_all()
                if lesson.is_bookable and (include_past or self._is_still_offered(lesson, now))
            ]
            lessons.sort(key=lambda lesson: (lesson.date, lesson.classroom))

            reservations = await self.reservation_query_repo.list_all()
            by_lesson: dict[str, list[Reservation]] = {}
            for reservation in reservations:
                by_lesson.setdefault(reservation.lesson_id, []).append(reservation)

            offered = [
                LessonAvailability(
                    lesson=lesson,
                    availability=self.calculator.calculate(
                        lesson=lesson, reservations=by_lesson.get(lesson.lesson_id, [])
                    ),
                )
                for lesson in lessons
            ]
            Logger.base.info(f'📊 [USE-CASE] {len(offered)} lessons offered')
            return offered

    def _is_still_offered(self, lesson: Lesson, now: datetime) -> bool:
        today = now.date().isoformat()
        if lesson.date != today:
            return lesson.date > today

        final_end = lesson.final_end_minutes
        if final_end is None:
            return True
        minutes_now = now.hour * 60 + now.minute
        return final_end - minutes_now > self.same_day_cutoff_hours * 60
