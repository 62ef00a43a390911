"""
Unit tests for CreateReservationUseCase

Runs over the in-memory store, cache and lock:
1. Lesson / window validation
2. One active reservation per student per day
3. Confirmed vs Waitlisted by pool capacity (TimeDual pools)
4. Store write → cache append (rebuild on failure) → notifications
"""

from typing import Callable

import pytest

from src.platform.exception.exceptions import ConflictError, DomainError, NotFoundError
from src.service.reservation.app.dto import Dataset
from src.service.reservation.domain.enum import NotificationEvent, ReservationStatus
from test.reservation_world import ReservationWorld


TIME_DUAL = {
    'classroom_type': 'time_dual',
    'first_start': '09:00',
    'first_end': '12:00',
    'second_start': '13:00',
    'second_end': '17:00',
}


@pytest.mark.unit
class TestCreateReservationCapacity:
    @pytest.mark.asyncio
    async def test_time_dual_full_morning_waitlists_and_open_afternoon_confirms(
        self,
        world: ReservationWorld,
        make_lesson_record: Callable[..., dict],
        make_reservation_record: Callable[..., dict],
    ) -> None:
        """
        Given: TimeDual with 8 seats and 8 confirmed 10:00-12:00 reservations
        When: a 10:00-12:00 and a 14:00-16:00 reservation are requested
        Then: the morning one is waitlisted and the afternoon one confirmed
        """
        # Arrange
        world.seed(Dataset.LESSONS, make_lesson_record(total_capacity=8, **TIME_DUAL))
        world.seed(
            Dataset.RESERVATIONS,
            *[
                make_reservation_record(
                    reservation_id=f'reservation-{i}',
                    student_id=f'student-{i}',
                    start_time='10:00',
                    end_time='12:00',
                )
                for i in range(8)
            ],
        )
        use_case = world.create_use_case()

        # Act
        morning = await use_case.execute(
            lesson_id='lesson-1', student_id='student-morning', start_time='10:00', end_time='12:00'
        )
        afternoon = await use_case.execute(
            lesson_id='lesson-1',
            student_id='student-afternoon',
            start_time='14:00',
            end_time='16:00',
        )

        # Assert
        assert morning.status is ReservationStatus.WAITLISTED
        assert afternoon.status is ReservationStatus.CONFIRMED
        assert (afternoon.start_time, afternoon.end_time) == ('14:00', '16:00')

    @pytest.mark.asyncio
    async def test_session_based_reservation_takes_lesson_block(
        self, world: ReservationWorld, make_lesson_record: Callable[..., dict]
    ) -> None:
        world.seed(Dataset.LESSONS, make_lesson_record())

        reservation = await world.create_use_case().execute(
            lesson_id='lesson-1', student_id='student-1', start_time='11:00', end_time='11:30'
        )

        assert reservation.status is ReservationStatus.CONFIRMED
        assert (reservation.start_time, reservation.end_time) == ('10:00', '12:00')

    @pytest.mark.asyncio
    async def test_beginner_over_quota_is_waitlisted(
        self,
        world: ReservationWorld,
        make_lesson_record: Callable[..., dict],
        make_reservation_record: Callable[..., dict],
    ) -> None:
        world.seed(Dataset.LESSONS, make_lesson_record(total_capacity=4, beginner_capacity=1))
        world.seed(Dataset.RESERVATIONS, make_reservation_record(is_beginner=True))

        beginner = await world.create_use_case().execute(
            lesson_id='lesson-1', student_id='student-2', is_beginner=True
        )
        general = await world.create_use_case().execute(
            lesson_id='lesson-1', student_id='student-3'
        )

        assert beginner.status is ReservationStatus.WAITLISTED
        assert general.status is ReservationStatus.CONFIRMED


@pytest.mark.unit
class TestCreateReservationRules:
    @pytest.mark.asyncio
    async def test_second_reservation_on_same_day_is_rejected_in_any_classroom(
        self,
        world: ReservationWorld,
        make_lesson_record: Callable[..., dict],
        make_reservation_record: Callable[..., dict],
    ) -> None:
        """
        Given: student S confirmed on 2025-10-15 at classroom A
        When: S requests a 2025-10-15 lesson at classroom B
        Then: ConflictError and nothing is written
        """
        # Arrange
        world.seed(
            Dataset.LESSONS,
            make_lesson_record(lesson_id='lesson-a', classroom='Ceramics A'),
            make_lesson_record(lesson_id='lesson-b', classroom='Pottery B'),
        )
        world.seed(
            Dataset.RESERVATIONS,
            make_reservation_record(lesson_id='lesson-a', student_id='student-s'),
        )

        # Act
        with pytest.raises(ConflictError):
            await world.create_use_case().execute(lesson_id='lesson-b', student_id='student-s')

        # Assert
        assert len(await world.stored_reservations()) == 1
        world.notifier.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_canceled_reservation_does_not_block_the_day(
        self,
        world: ReservationWorld,
        make_lesson_record: Callable[..., dict],
        make_reservation_record: Callable[..., dict],
    ) -> None:
        world.seed(Dataset.LESSONS, make_lesson_record())
        world.seed(
            Dataset.RESERVATIONS,
            make_reservation_record(student_id='student-s', status='canceled'),
        )

        reservation = await world.create_use_case().execute(
            lesson_id='lesson-1', student_id='student-s'
        )

        assert reservation.status is ReservationStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_unknown_lesson_is_not_found(self, world: ReservationWorld) -> None:
        with pytest.raises(NotFoundError):
            await world.create_use_case().execute(lesson_id='missing', student_id='student-1')

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'overrides',
        [{'status': 'cancelled'}, {'status': 'completed'}, {'date': '2025-09-30'}],
    )
    async def test_unbookable_or_past_lesson_is_rejected(
        self,
        world: ReservationWorld,
        make_lesson_record: Callable[..., dict],
        overrides: dict,
    ) -> None:
        world.seed(Dataset.LESSONS, make_lesson_record(**overrides))

        with pytest.raises(DomainError):
            await world.create_use_case().execute(lesson_id='lesson-1', student_id='student-1')

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'start_time,end_time',
        [(None, None), ('10:00', '11:00'), ('12:30', '14:30'), ('10:30', '12:30')],
    )
    async def test_invalid_time_dual_window_is_rejected(
        self,
        world: ReservationWorld,
        make_lesson_record: Callable[..., dict],
        start_time: str | None,
        end_time: str | None,
    ) -> None:
        world.seed(Dataset.LESSONS, make_lesson_record(**TIME_DUAL))

        with pytest.raises(DomainError):
            await world.create_use_case().execute(
                lesson_id='lesson-1',
                student_id='student-1',
                start_time=start_time,
                end_time=end_time,
            )

        assert await world.stored_reservations() == []

    @pytest.mark.asyncio
    async def test_busy_write_lock_is_a_retryable_conflict(
        self, world: ReservationWorld, make_lesson_record: Callable[..., dict]
    ) -> None:
        world.seed(Dataset.LESSONS, make_lesson_record())
        await world.lock.try_acquire(key='lock:reservation:2025-10-15', timeout_ms=10)

        with pytest.raises(ConflictError):
            await world.create_use_case().execute(lesson_id='lesson-1', student_id='student-1')


@pytest.mark.unit
class TestCreateReservationSideEffects:
    @pytest.mark.asyncio
    async def test_reservation_is_stored_cached_and_notified(
        self, world: ReservationWorld, make_lesson_record: Callable[..., dict]
    ) -> None:
        """
        Given: a bookable lesson with a warm reservations cache
        When: a reservation is created
        Then: it is in the store, appended to the cache, and student + admin are notified
        """
        # Arrange
        world.seed(Dataset.LESSONS, make_lesson_record())
        await world.cache_manager.rebuild(dataset=Dataset.RESERVATIONS)

        # Act
        reservation = await world.create_use_case().execute(
            lesson_id='lesson-1', student_id='student-1', notes='first time'
        )

        # Assert
        stored = await world.stored_reservations()
        cached = await world.cache_manager.get_cached_data(dataset=Dataset.RESERVATIONS)
        assert [row['reservation_id'] for row in stored] == [reservation.reservation_id]
        assert cached is not None
        assert cached.find(reservation.reservation_id)['notes'] == 'first time'

        created = world.notified(NotificationEvent.RESERVATION_CREATED)
        assert {call['recipient'] for call in created} == {'student-1', 'admin'}
        assert not world.lock.is_locked(key='lock:reservation:2025-10-15')

    @pytest.mark.asyncio
    async def test_failing_cache_still_reads_consistent_with_store(
        self, world: ReservationWorld, make_lesson_record: Callable[..., dict]
    ) -> None:
        """
        Given: a cache service rejecting every write
        When: a reservation is created
        Then: later reads still see it through the rebuild fallback
        """
        # Arrange
        world.seed(Dataset.LESSONS, make_lesson_record())
        world.cache_store.fail_writes = True

        # Act
        reservation = await world.create_use_case().execute(
            lesson_id='lesson-1', student_id='student-1'
        )

        # Assert
        found = await world.reservation_query_repo.get_by_id(
            reservation_id=reservation.reservation_id
        )
        assert found is not None
        assert found.status is ReservationStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_notifier_failure_does_not_fail_the_reservation(
        self, world: ReservationWorld, make_lesson_record: Callable[..., dict]
    ) -> None:
        world.seed(Dataset.LESSONS, make_lesson_record())
        world.notifier.notify.side_effect = RuntimeError('mail server down')

        reservation = await world.create_use_case().execute(
            lesson_id='lesson-1', student_id='student-1'
        )

        assert reservation.status is ReservationStatus.CONFIRMED
        assert len(await world.stored_reservations()) == 1

    @pytest.mark.asyncio
    async def test_student_contact_comes_from_roster(
        self,
        world: ReservationWorld,
        make_lesson_record: Callable[..., dict],
        make_student_record: Callable[..., dict],
    ) -> None:
        world.seed(Dataset.LESSONS, make_lesson_record())
        world.seed(Dataset.ROSTER, make_student_record(email='student@example.com'))

        await world.create_use_case().execute(lesson_id='lesson-1', student_id='student-1')

        created = world.notified(NotificationEvent.RESERVATION_CREATED)
        assert {call['recipient'] for call in created} == {'student@example.com', 'admin'}


@pytest.mark.unit
class TestCreateReservationWithMalformedRows:
    @pytest.mark.asyncio
    async def test_unreadable_row_on_another_lesson_does_not_block_booking(
        self,
        world: ReservationWorld,
        make_lesson_record: Callable[..., dict],
        make_reservation_record: Callable[..., dict],
    ) -> None:
        """
        Given: a hand-edited reservation row with an unknown status on another lesson
        When: a student books lesson-1
        Then: the booking is confirmed and stored next to the untouched bad row
        """
        # Arrange
        world.seed(Dataset.LESSONS, make_lesson_record())
        world.seed(
            Dataset.RESERVATIONS,
            make_reservation_record(
                reservation_id='hand-edited',
                lesson_id='other-lesson',
                student_id='student-x',
                status='pending',
            ),
        )

        # Act
        reservation = await world.create_use_case().execute(
            lesson_id='lesson-1', student_id='student-9'
        )

        # Assert
        assert reservation.status is ReservationStatus.CONFIRMED
        stored = await world.reservation_query_repo.list_by_student(student_id='student-9')
        assert [r.reservation_id for r in stored] == [reservation.reservation_id]
        assert sorted(row['reservation_id'] for row in await world.stored_reservations()) == sorted(
            ['hand-edited', reservation.reservation_id]
        )
