from datetime import datetime
from typing import Any, Mapping, Optional

import attrs
from uuid_utils import uuid7

from src.platform.exception.exceptions import DataIntegrityError, DomainError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.domain.entity.lesson_entity import Lesson
from src.service.reservation.domain.entity.record_cell import (
    as_bool,
    as_datetime_text,
    as_json_payload,
    as_json_text,
    as_optional_datetime,
    as_text,
    require,
)
from src.service.reservation.domain.enum import ReservationStatus
from src.service.reservation.domain.value_object import TimeWindow, format_clock


@attrs.define
class Reservation:
    reservation_id: str
    lesson_id: str
    student_id: str
    classroom: str
    date: str
    status: ReservationStatus
    start_time: str = ''
    end_time: str = ''
    is_beginner: bool = False
    notes: str = ''
    accounting: Optional[dict[str, Any]] = None
    cancel_message: str = ''
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        lesson: Lesson,
        student_id: str,
        window: Optional[TimeWindow],
        is_beginner: bool,
        status: ReservationStatus,
        now: datetime,
        notes: str = '',
    ) -> 'Reservation':
        if status not in (ReservationStatus.CONFIRMED, ReservationStatus.WAITLISTED):
            raise DomainError(f'A new reservation cannot start as {status}')

        # Session-based lessons have one block; the reservation mirrors it
        start_time = format_clock(window.start) if window else lesson.first_start
        end_time = format_clock(window.end) if window else lesson.first_end
        return cls(
            reservation_id=str(uuid7()),
            lesson_id=lesson.lesson_id,
            student_id=student_id,
            classroom=lesson.classroom,
            date=lesson.date,
            status=status,
            start_time=start_time,
            end_time=end_time,
            is_beginner=is_beginner,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'Reservation':
        raw_status = as_text(require(record, 'status', dataset='reservations'))
        try:
            status = ReservationStatus(raw_status)
        except ValueError:
            raise DataIntegrityError(f'Unknown reservation status "{raw_status}"')

        return cls(
            reservation_id=as_text(require(record, 'reservation_id', dataset='reservations')),
            lesson_id=as_text(require(record, 'lesson_id', dataset='reservations')),
            student_id=as_text(require(record, 'student_id', dataset='reservations')),
            classroom=as_text(record.get('classroom')),
            date=as_text(require(record, 'date', dataset='reservations')),
            status=status,
            start_time=as_text(record.get('start_time')),
            end_time=as_text(record.get('end_time')),
            is_beginner=as_bool(record.get('is_beginner')),
            notes=as_text(record.get('notes')),
            accounting=as_json_payload(record.get('accounting')),
            cancel_message=as_text(record.get('cancel_message')),
            created_at=as_optional_datetime(record.get('created_at')),
            updated_at=as_optional_datetime(record.get('updated_at')),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            'reservation_id': self.reservation_id,
            'lesson_id': self.lesson_id,
            'student_id': self.student_id,
            'classroom': self.classroom,
            'date': self.date,
            'status': self.status.value,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'is_beginner': self.is_beginner,
            'notes': self.notes,
            'accounting': as_json_text(self.accounting),
            'cancel_message': self.cancel_message,
            'created_at': as_datetime_text(self.created_at),
            'updated_at': as_datetime_text(self.updated_at),
        }

    @property
    def window(self) -> Optional[TimeWindow]:
        return TimeWindow.parse(self.start_time, self.end_time)

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    @Logger.io
    def cancel(self, *, now: datetime, cancel_message: str = '') -> 'Reservation':
        if self.status is ReservationStatus.CANCELED:
            raise DomainError('Reservation is already canceled')
        if self.status is ReservationStatus.COMPLETED:
            raise DomainError('Cannot cancel a completed reservation')
        return attrs.evolve(
            self,
            status=ReservationStatus.CANCELED,
            cancel_message=cancel_message,
            updated_at=now,
        )

    @Logger.io
    def confirm(self, *, now: datetime) -> 'Reservation':
        if self.status is not ReservationStatus.WAITLISTED:
            raise DomainError(f'Only waitlisted reservations can be confirmed (current: {self.status})')
        return attrs.evolve(self, status=ReservationStatus.CONFIRMED, updated_at=now)

    @Logger.io
    def complete(self, *, now: datetime, accounting: Optional[dict[str, Any]] = None) -> 'Reservation':
        if self.status is not ReservationStatus.CONFIRMED:
            raise DomainError(f'Only confirmed reservations can be completed (current: {self.status})')
        return attrs.evolve(
            self, status=ReservationStatus.COMPLETED, accounting=accounting, updated_at=now
        )

    @Logger.io
    def amend(
        self, *, now: datetime, window: Optional[TimeWindow], notes: Optional[str] = None
    ) -> 'Reservation':
        if not self.is_active:
            raise DomainError(f'Cannot amend a {self.status} reservation')
        return attrs.evolve(
            self,
            start_time=format_clock(window.start) if window else self.start_time,
            end_time=format_clock(window.end) if window else self.end_time,
            notes=self.notes if notes is None else notes,
            updated_at=now,
        )
