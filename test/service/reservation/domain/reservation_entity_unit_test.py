from datetime import datetime
from typing import Any, Callable
from zoneinfo import ZoneInfo

import pytest

from src.platform.exception.exceptions import DataIntegrityError, DomainError
from src.service.reservation.domain.entity import Lesson, Reservation
from src.service.reservation.domain.enum import ReservationStatus
from src.service.reservation.domain.value_object import TimeWindow


NOW = datetime(2025, 10, 1, 9, 0, tzinfo=ZoneInfo('Asia/Tokyo'))
TIME_DUAL = {
    'classroom_type': 'time_dual',
    'first_start': '09:00',
    'first_end': '12:00',
    'second_start': '13:00',
    'second_end': '17:00',
}


@pytest.mark.unit
class TestReservationCreate:
    def test_session_based_reservation_mirrors_lesson_block(
        self, make_lesson_record: Callable[..., dict]
    ) -> None:
        lesson = Lesson.from_record(make_lesson_record())

        reservation = Reservation.create(
            lesson=lesson,
            student_id='student-1',
            window=None,
            is_beginner=False,
            status=ReservationStatus.CONFIRMED,
            now=NOW,
        )

        assert reservation.reservation_id
        assert (reservation.start_time, reservation.end_time) == ('10:00', '12:00')
        assert reservation.date == lesson.date
        assert reservation.created_at == NOW

    def test_new_reservation_cannot_start_canceled(
        self, make_lesson_record: Callable[..., dict]
    ) -> None:
        with pytest.raises(DomainError):
            Reservation.create(
                lesson=Lesson.from_record(make_lesson_record()),
                student_id='student-1',
                window=None,
                is_beginner=False,
                status=ReservationStatus.CANCELED,
                now=NOW,
            )


@pytest.mark.unit
class TestReservationTransitions:
    @pytest.fixture
    def make(self, make_reservation_record: Callable[..., dict]) -> Callable[..., Reservation]:
        def _make(**overrides: Any) -> Reservation:
            return Reservation.from_record(make_reservation_record(**overrides))

        return _make

    def test_cancel_records_message(self, make: Callable[..., Reservation]) -> None:
        canceled = make().cancel(now=NOW, cancel_message='sick')

        assert canceled.status is ReservationStatus.CANCELED
        assert canceled.cancel_message == 'sick'
        assert canceled.updated_at == NOW

    @pytest.mark.parametrize('status', ['canceled', 'completed'])
    def test_cancel_rejects_terminal_states(
        self, make: Callable[..., Reservation], status: str
    ) -> None:
        with pytest.raises(DomainError):
            make(status=status).cancel(now=NOW)

    def test_confirm_only_from_waitlisted(self, make: Callable[..., Reservation]) -> None:
        assert make(status='waitlisted').confirm(now=NOW).status is ReservationStatus.CONFIRMED
        with pytest.raises(DomainError):
            make(status='confirmed').confirm(now=NOW)

    def test_complete_stores_accounting(self, make: Callable[..., Reservation]) -> None:
        completed = make().complete(now=NOW, accounting={'materials': 1200})

        assert completed.status is ReservationStatus.COMPLETED
        assert completed.accounting == {'materials': 1200}
        assert '"materials"' in completed.to_record()['accounting']

    def test_complete_rejects_waitlisted(self, make: Callable[..., Reservation]) -> None:
        with pytest.raises(DomainError):
            make(status='waitlisted').complete(now=NOW)

    def test_amend_keeps_window_when_not_given(self, make: Callable[..., Reservation]) -> None:
        amended = make().amend(now=NOW, window=None, notes='bring apron')

        assert (amended.start_time, amended.end_time) == ('10:00', '12:00')
        assert amended.notes == 'bring apron'

    def test_unknown_status_is_a_data_integrity_error(
        self, make_reservation_record: Callable[..., dict]
    ) -> None:
        with pytest.raises(DataIntegrityError):
            Reservation.from_record(make_reservation_record(status='pending'))

    def test_missing_required_column_is_a_data_integrity_error(
        self, make_reservation_record: Callable[..., dict]
    ) -> None:
        record = make_reservation_record()
        del record['lesson_id']

        with pytest.raises(DataIntegrityError):
            Reservation.from_record(record)


@pytest.mark.unit
class TestLessonValidateWindow:
    @pytest.fixture
    def lesson(self, make_lesson_record: Callable[..., dict]) -> Lesson:
        return Lesson.from_record(make_lesson_record(**TIME_DUAL))

    def test_valid_windows_pass(self, lesson: Lesson) -> None:
        lesson.validate_window(window=TimeWindow.parse('10:00', '12:00'), min_minutes=120)
        lesson.validate_window(window=TimeWindow.parse('11:00', '14:00'), min_minutes=120)

    @pytest.mark.parametrize(
        'start,end',
        [
            (None, None),  # missing
            ('12:00', '10:00'),  # inverted
            ('10:00', '11:00'),  # too short
            ('08:00', '10:00'),  # before opening
            ('12:00', '14:00'),  # starts at the break
            ('10:00', '13:00'),  # ends inside the break
        ],
    )
    def test_invalid_windows_are_rejected(
        self, lesson: Lesson, start: str | None, end: str | None
    ) -> None:
        with pytest.raises(DomainError):
            lesson.validate_window(window=TimeWindow.parse(start, end), min_minutes=120)

    def test_session_based_lessons_skip_window_checks(
        self, make_lesson_record: Callable[..., dict]
    ) -> None:
        lesson = Lesson.from_record(make_lesson_record())

        lesson.validate_window(window=None, min_minutes=120)
