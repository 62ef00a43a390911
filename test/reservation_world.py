"""The reservation core wired over in-memory store, cache and lock"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import attrs

from src.platform.state.in_memory_cache_store import InMemoryCacheStore
from src.platform.state.in_memory_lock import InMemoryLock
from src.service.reservation.app.command.amend_reservation_use_case import (
    AmendReservationUseCase,
)
from src.service.reservation.app.command.cancel_reservation_use_case import (
    CancelReservationUseCase,
)
from src.service.reservation.app.command.complete_reservation_use_case import (
    CompleteReservationUseCase,
)
from src.service.reservation.app.command.confirm_waitlisted_reservation_use_case import (
    ConfirmWaitlistedReservationUseCase,
)
from src.service.reservation.app.command.create_reservation_use_case import (
    CreateReservationUseCase,
)
from src.service.reservation.app.dto import Dataset
from src.service.reservation.app.helper.availability_checker import AvailabilityChecker
from src.service.reservation.app.helper.notification_dispatcher import NotificationDispatcher
from src.service.reservation.app.helper.reservation_write_guard import ReservationWriteGuard
from src.service.reservation.domain.service import AvailabilityCalculator
from src.service.reservation.driven_adapter.cache.cache_manager_impl import CacheManagerImpl
from src.service.reservation.driven_adapter.repo.lesson_command_repo_impl import (
    LessonCommandRepoImpl,
)
from src.service.reservation.driven_adapter.repo.lesson_query_repo_impl import LessonQueryRepoImpl
from src.service.reservation.driven_adapter.repo.reservation_command_repo_impl import (
    ReservationCommandRepoImpl,
)
from src.service.reservation.driven_adapter.repo.reservation_query_repo_impl import (
    ReservationQueryRepoImpl,
)
from src.service.reservation.driven_adapter.repo.roster_query_repo_impl import (
    StudentQueryRepoImpl,
)
from src.service.reservation.driven_adapter.store.in_memory_tabular_store import (
    InMemoryTabularStore,
)


@attrs.define
class ReservationWorld:
    store: InMemoryTabularStore
    cache_store: InMemoryCacheStore
    lock: InMemoryLock
    clock: MagicMock
    notifier: AsyncMock
    cache_manager: CacheManagerImpl
    calculator: AvailabilityCalculator
    lesson_query_repo: LessonQueryRepoImpl
    lesson_command_repo: LessonCommandRepoImpl
    reservation_query_repo: ReservationQueryRepoImpl
    reservation_command_repo: ReservationCommandRepoImpl
    student_query_repo: StudentQueryRepoImpl
    write_guard: ReservationWriteGuard
    availability_checker: AvailabilityChecker
    notification_dispatcher: NotificationDispatcher

    def seed(self, dataset: Dataset, *records: dict[str, Any]) -> None:
        self.store.seed_records(dataset.value, records)

    async def stored_reservations(self) -> list[dict[str, Any]]:
        table = await self.store.read_table(Dataset.RESERVATIONS.value)
        return [dict(zip(table.headers, row)) for row in table.rows]

    def notified(self, event: str) -> list[dict[str, Any]]:
        """Calls made to the notifier for one event"""
        return [
            call.kwargs
            for call in self.notifier.notify.await_args_list
            if call.kwargs['event'] == event
        ]

    def _lifecycle_deps(self) -> dict[str, Any]:
        return {
            'reservation_query_repo': self.reservation_query_repo,
            'reservation_command_repo': self.reservation_command_repo,
            'lesson_query_repo': self.lesson_query_repo,
            'student_query_repo': self.student_query_repo,
            'cache_manager': self.cache_manager,
            'availability_checker': self.availability_checker,
            'write_guard': self.write_guard,
            'notification_dispatcher': self.notification_dispatcher,
            'clock': self.clock,
        }

    def create_use_case(self) -> CreateReservationUseCase:
        return CreateReservationUseCase(
            lesson_query_repo=self.lesson_query_repo,
            reservation_command_repo=self.reservation_command_repo,
            cache_manager=self.cache_manager,
            availability_checker=self.availability_checker,
            write_guard=self.write_guard,
            notification_dispatcher=self.notification_dispatcher,
            clock=self.clock,
            min_reservation_minutes=120,
        )

    def cancel_use_case(self) -> CancelReservationUseCase:
        return CancelReservationUseCase(**self._lifecycle_deps())

    def amend_use_case(self) -> AmendReservationUseCase:
        return AmendReservationUseCase(**self._lifecycle_deps(), min_reservation_minutes=120)

    def confirm_use_case(self) -> ConfirmWaitlistedReservationUseCase:
        return ConfirmWaitlistedReservationUseCase(**self._lifecycle_deps())

    def complete_use_case(self) -> CompleteReservationUseCase:
        return CompleteReservationUseCase(
            reservation_query_repo=self.reservation_query_repo,
            reservation_command_repo=self.reservation_command_repo,
            cache_manager=self.cache_manager,
            write_guard=self.write_guard,
            notification_dispatcher=self.notification_dispatcher,
            clock=self.clock,
        )


def build_world(*, clock: MagicMock) -> ReservationWorld:
    store = InMemoryTabularStore()
    cache_store = InMemoryCacheStore(max_item_bytes=100 * 1024)
    lock = InMemoryLock()
    notifier = AsyncMock()
    cache_manager = CacheManagerImpl(
        tabular_store=store,
        cache_store=cache_store,
        ttl_seconds=3600,
        chunk_threshold_bytes=90 * 1024,
        max_chunks=20,
    )
    calculator = AvailabilityCalculator(
        default_total_capacity=8, default_beginner_capacity=0, classroom_defaults={}
    )
    reservation_query_repo = ReservationQueryRepoImpl(cache_manager=cache_manager)
    student_query_repo = StudentQueryRepoImpl(cache_manager=cache_manager)
    return ReservationWorld(
        store=store,
        cache_store=cache_store,
        lock=lock,
        clock=clock,
        notifier=notifier,
        cache_manager=cache_manager,
        calculator=calculator,
        lesson_query_repo=LessonQueryRepoImpl(cache_manager=cache_manager),
        lesson_command_repo=LessonCommandRepoImpl(tabular_store=store),
        reservation_query_repo=reservation_query_repo,
        reservation_command_repo=ReservationCommandRepoImpl(tabular_store=store),
        student_query_repo=student_query_repo,
        write_guard=ReservationWriteGuard(lock=lock, timeout_ms=200),
        availability_checker=AvailabilityChecker(
            calculator=calculator, reservation_query_repo=reservation_query_repo
        ),
        notification_dispatcher=NotificationDispatcher(
            notifier=notifier, student_query_repo=student_query_repo, admin_recipient='admin'
        ),
    )
