"""
Unit tests for the read-side use cases

Offered lessons, a student's reservations, single reservation lookup,
price items and cache diagnostics.
"""

from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

import pytest

from src.platform.exception.exceptions import NotFoundError
from src.service.reservation.app.dto import Dataset
from src.service.reservation.app.query.get_cache_info_use_case import GetCacheInfoUseCase
from src.service.reservation.app.query.get_reservation_use_case import GetReservationUseCase
from src.service.reservation.app.query.list_offered_lessons_use_case import (
    ListOfferedLessonsUseCase,
)
from src.service.reservation.app.query.list_price_items_use_case import ListPriceItemsUseCase
from src.service.reservation.app.query.list_student_reservations_use_case import (
    ListStudentReservationsUseCase,
)
from src.service.reservation.driven_adapter.repo.roster_query_repo_impl import (
    PriceItemQueryRepoImpl,
)
from test.reservation_world import ReservationWorld


TOKYO = ZoneInfo('Asia/Tokyo')


@pytest.fixture
def offered(world: ReservationWorld) -> ListOfferedLessonsUseCase:
    return ListOfferedLessonsUseCase(
        lesson_query_repo=world.lesson_query_repo,
        reservation_query_repo=world.reservation_query_repo,
        calculator=world.calculator,
        clock=world.clock,
        same_day_cutoff_hours=2,
    )


@pytest.mark.unit
class TestListOfferedLessons:
    @pytest.mark.asyncio
    async def test_scheduled_upcoming_lessons_sorted_with_seat_counts(
        self,
        world: ReservationWorld,
        offered: ListOfferedLessonsUseCase,
        make_lesson_record: Callable[..., dict],
        make_reservation_record: Callable[..., dict],
    ) -> None:
        """
        Given: lessons on several dates and classrooms, one past and one cancelled
        When: offered lessons are listed
        Then: only upcoming scheduled lessons come back, by date then classroom
        """
        # Arrange
        world.seed(
            Dataset.LESSONS,
            make_lesson_record(lesson_id='b-15', classroom='Pottery B', total_capacity=4),
            make_lesson_record(lesson_id='a-15', classroom='Ceramics A', total_capacity=4),
            make_lesson_record(lesson_id='a-12', date='2025-10-12'),
            make_lesson_record(lesson_id='past', date='2025-09-01'),
            make_lesson_record(lesson_id='off', date='2025-10-20', status='cancelled'),
        )
        world.seed(Dataset.RESERVATIONS, make_reservation_record(lesson_id='a-15'))

        # Act
        result = await offered.execute()

        # Assert
        assert [item.lesson.lesson_id for item in result] == ['a-12', 'a-15', 'b-15']
        seats = {item.lesson.lesson_id: item.availability.first_available for item in result}
        assert seats == {'a-12': 8, 'a-15': 3, 'b-15': 4}

    @pytest.mark.asyncio
    async def test_include_past(
        self,
        world: ReservationWorld,
        offered: ListOfferedLessonsUseCase,
        make_lesson_record: Callable[..., dict],
    ) -> None:
        world.seed(Dataset.LESSONS, make_lesson_record(lesson_id='past', date='2025-09-01'))

        result = await offered.execute(include_past=True)

        assert [item.lesson.lesson_id for item in result] == ['past']

    @pytest.mark.asyncio
    async def test_same_day_lesson_ending_within_cutoff_is_hidden(
        self,
        world: ReservationWorld,
        offered: ListOfferedLessonsUseCase,
        make_lesson_record: Callable[..., dict],
    ) -> None:
        """
        Given: it is 15:30 on the lesson day
        When: offered lessons are listed
        Then: a lesson ending 17:00 is hidden, a TimeDual ending 18:00 is still offered
        """
        # Arrange
        world.clock.now.return_value = datetime(2025, 10, 15, 15, 30, tzinfo=TOKYO)
        world.clock.today.return_value = world.clock.now.return_value.date()
        world.seed(
            Dataset.LESSONS,
            make_lesson_record(lesson_id='ends-17', first_start='13:00', first_end='17:00'),
            make_lesson_record(
                lesson_id='ends-18',
                classroom='Pottery B',
                classroom_type='time_dual',
                first_start='09:00',
                first_end='12:00',
                second_start='13:00',
                second_end='18:00',
            ),
        )

        # Act
        result = await offered.execute()

        # Assert
        assert [item.lesson.lesson_id for item in result] == ['ends-18']

    @pytest.mark.parametrize(
        'hour, minute, is_offered',
        [
            (10, 30, True),  # morning pool inside the cutoff, afternoon still open
            (14, 59, True),
            (15, 0, False),
            (15, 30, False),
        ],
    )
    @pytest.mark.asyncio
    async def test_time_dual_cutoff_counts_from_afternoon_end(
        self,
        world: ReservationWorld,
        offered: ListOfferedLessonsUseCase,
        make_lesson_record: Callable[..., dict],
        hour: int,
        minute: int,
        is_offered: bool,
    ) -> None:
        world.clock.now.return_value = datetime(2025, 10, 15, hour, minute, tzinfo=TOKYO)
        world.clock.today.return_value = world.clock.now.return_value.date()
        world.seed(
            Dataset.LESSONS,
            make_lesson_record(
                classroom_type='time_dual',
                first_start='09:00',
                first_end='12:00',
                second_start='13:00',
                second_end='17:00',
            ),
        )

        result = await offered.execute()

        assert [item.lesson.lesson_id for item in result] == (['lesson-1'] if is_offered else [])


@pytest.mark.unit
class TestReservationQueries:
    @pytest.mark.asyncio
    async def test_student_reservations_skip_canceled_newest_first(
        self, world: ReservationWorld, make_reservation_record: Callable[..., dict]
    ) -> None:
        world.seed(
            Dataset.RESERVATIONS,
            make_reservation_record(reservation_id='october', date='2025-10-15'),
            make_reservation_record(reservation_id='november', date='2025-11-02'),
            make_reservation_record(reservation_id='dropped', date='2025-12-01', status='canceled'),
            make_reservation_record(reservation_id='other', student_id='student-2'),
        )
        use_case = ListStudentReservationsUseCase(
            reservation_query_repo=world.reservation_query_repo
        )

        result = await use_case.execute(student_id='student-1')

        assert [r.reservation_id for r in result] == ['november', 'october']

    @pytest.mark.asyncio
    async def test_get_reservation(
        self, world: ReservationWorld, make_reservation_record: Callable[..., dict]
    ) -> None:
        world.seed(Dataset.RESERVATIONS, make_reservation_record())
        use_case = GetReservationUseCase(reservation_query_repo=world.reservation_query_repo)

        found = await use_case.execute(reservation_id='reservation-1')

        assert found.student_id == 'student-1'
        with pytest.raises(NotFoundError):
            await use_case.execute(reservation_id='missing')


@pytest.mark.unit
class TestCatalogAndDiagnostics:
    @pytest.mark.asyncio
    async def test_price_items_filtered_by_classroom(self, world: ReservationWorld) -> None:
        world.seed(
            Dataset.PRICE_MASTER,
            {'item_name': 'Tuition', 'price': 4800, 'target_classroom': ''},
            {'item_name': 'Glaze', 'price': 800, 'target_classroom': 'Ceramics A'},
            {'item_name': 'Wheel', 'price': 1000, 'target_classroom': 'Pottery B'},
        )
        use_case = ListPriceItemsUseCase(
            price_item_query_repo=PriceItemQueryRepoImpl(cache_manager=world.cache_manager)
        )

        everything = await use_case.execute()
        ceramics = await use_case.execute(classroom='Ceramics A')

        assert len(everything) == 3
        assert [item.item_name for item in ceramics] == ['Tuition', 'Glaze']
        assert ceramics[0].price == 4800

    @pytest.mark.asyncio
    async def test_cache_info_for_one_or_all_datasets(self, world: ReservationWorld) -> None:
        await world.cache_manager.rebuild(dataset=Dataset.LESSONS)
        use_case = GetCacheInfoUseCase(cache_manager=world.cache_manager)

        lessons = await use_case.execute(dataset=Dataset.LESSONS)
        everything = await use_case.execute()

        assert [info.exists for info in lessons] == [True]
        assert {info.dataset: info.exists for info in everything} == {
            Dataset.LESSONS: True,
            Dataset.RESERVATIONS: False,
            Dataset.ROSTER: False,
            Dataset.PRICE_MASTER: False,
        }
