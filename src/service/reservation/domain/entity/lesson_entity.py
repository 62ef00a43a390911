from typing import Any, Mapping, Optional

import attrs

from src.platform.exception.exceptions import DataIntegrityError, DomainError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.domain.entity.record_cell import (
    as_optional_int,
    as_text,
    require,
)
from src.service.reservation.domain.enum import ClassroomType, LessonStatus
from src.service.reservation.domain.value_object import TimeWindow, parse_clock


@attrs.define
class Lesson:
    """One classroom's scheduled session(s) on one date"""

    lesson_id: str
    date: str
    classroom: str
    classroom_type: ClassroomType
    venue: str = ''
    first_start: str = ''
    first_end: str = ''
    second_start: str = ''
    second_end: str = ''
    beginner_start: str = ''
    total_capacity: Optional[int] = None
    beginner_capacity: Optional[int] = None
    status: LessonStatus = LessonStatus.SCHEDULED
    notes: str = ''

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'Lesson':
        raw_type = as_text(require(record, 'classroom_type', dataset='lessons'))
        try:
            classroom_type = ClassroomType(raw_type)
        except ValueError:
            raise DataIntegrityError(f'Unknown classroom_type "{raw_type}"')

        raw_status = as_text(record.get('status')) or LessonStatus.SCHEDULED
        try:
            status = LessonStatus(raw_status)
        except ValueError:
            raise DataIntegrityError(f'Unknown lesson status "{raw_status}"')

        return cls(
            lesson_id=as_text(require(record, 'lesson_id', dataset='lessons')),
            date=as_text(require(record, 'date', dataset='lessons')),
            classroom=as_text(require(record, 'classroom', dataset='lessons')),
            classroom_type=classroom_type,
            venue=as_text(record.get('venue')),
            first_start=as_text(record.get('first_start')),
            first_end=as_text(record.get('first_end')),
            second_start=as_text(record.get('second_start')),
            second_end=as_text(record.get('second_end')),
            beginner_start=as_text(record.get('beginner_start')),
            total_capacity=as_optional_int(record.get('total_capacity')),
            beginner_capacity=as_optional_int(record.get('beginner_capacity')),
            status=status,
            notes=as_text(record.get('notes')),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            'lesson_id': self.lesson_id,
            'date': self.date,
            'classroom': self.classroom,
            'venue': self.venue,
            'classroom_type': self.classroom_type.value,
            'first_start': self.first_start,
            'first_end': self.first_end,
            'second_start': self.second_start,
            'second_end': self.second_end,
            'beginner_start': self.beginner_start,
            'total_capacity': '' if self.total_capacity is None else self.total_capacity,
            'beginner_capacity': '' if self.beginner_capacity is None else self.beginner_capacity,
            'status': self.status.value,
            'notes': self.notes,
        }

    @property
    def is_bookable(self) -> bool:
        return self.status is LessonStatus.SCHEDULED

    @property
    def is_time_dual(self) -> bool:
        return self.classroom_type is ClassroomType.TIME_DUAL

    @property
    def first_end_minutes(self) -> Optional[int]:
        return parse_clock(self.first_end)

    @property
    def second_start_minutes(self) -> Optional[int]:
        return parse_clock(self.second_start)

    @property
    def final_end_minutes(self) -> Optional[int]:
        """End of the last session of the day (afternoon end for TimeDual)"""
        if self.is_time_dual:
            second_end = parse_clock(self.second_end)
            if second_end is not None:
                return second_end
        return parse_clock(self.first_end)

    @property
    def opening_hours(self) -> Optional[TimeWindow]:
        start = parse_clock(self.first_start)
        end = self.final_end_minutes
        if start is None or end is None:
            return None
        return TimeWindow(start=start, end=end)

    def validate_window(self, *, window: Optional[TimeWindow], min_minutes: int) -> None:
        """
        Time-priced shapes (TimeDual, AllDayTimed) need an ordered window of at
        least ``min_minutes`` inside opening hours that neither starts nor ends
        inside the TimeDual break.
        """
        if not self.classroom_type.is_time_priced:
            return
        if window is None:
            raise DomainError('start_time and end_time are required for this classroom')
        if not window.is_ordered:
            raise DomainError('end_time must be after start_time')
        if window.duration_minutes < min_minutes:
            raise DomainError(f'Reservations must be at least {min_minutes} minutes long')

        opening_hours = self.opening_hours
        if opening_hours is not None and not opening_hours.contains(window):
            raise DomainError(f'Requested time {window} is outside lesson hours {opening_hours}')

        if self.is_time_dual:
            break_start, break_end = self.first_end_minutes, self.second_start_minutes
            if break_start is None or break_end is None:
                return
            if break_start <= window.start < break_end:
                raise DomainError('Reservations cannot start during the break')
            if break_start < window.end <= break_end:
                raise DomainError('Reservations cannot end during the break')

    @Logger.io
    def complete(self) -> 'Lesson':
        if self.status is not LessonStatus.SCHEDULED:
            raise DomainError(f'Cannot complete a {self.status} lesson')
        return attrs.evolve(self, status=LessonStatus.COMPLETED)
