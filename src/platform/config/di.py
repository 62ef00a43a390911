"""
https://python-dependency-injector.ets-labs.org/index.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings, settings
from src.platform.state.distributed_lock import KvrocksLock
from src.platform.state.kvrocks_cache_store import KvrocksCacheStore
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
from src.service.reservation.app.command.run_cache_maintenance_use_case import (
    RunCacheMaintenanceUseCase,
)
from src.service.reservation.app.helper.availability_checker import AvailabilityChecker
from src.service.reservation.app.helper.notification_dispatcher import NotificationDispatcher
from src.service.reservation.app.helper.reservation_write_guard import ReservationWriteGuard
from src.service.reservation.app.query.get_cache_info_use_case import GetCacheInfoUseCase
from src.service.reservation.app.query.get_reservation_use_case import GetReservationUseCase
from src.service.reservation.app.query.list_offered_lessons_use_case import (
    ListOfferedLessonsUseCase,
)
from src.service.reservation.app.query.list_price_items_use_case import ListPriceItemsUseCase
from src.service.reservation.app.query.list_student_reservations_use_case import (
    ListStudentReservationsUseCase,
)
from src.service.reservation.domain.service import AvailabilityCalculator
from src.service.reservation.driven_adapter.cache.cache_manager_impl import CacheManagerImpl
from src.service.reservation.driven_adapter.clock.system_clock import SystemClock
from src.service.reservation.driven_adapter.notifier.logging_notifier import LoggingNotifier
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
    PriceItemQueryRepoImpl,
    StudentQueryRepoImpl,
)
from src.service.reservation.driven_adapter.store.in_memory_tabular_store import (
    InMemoryTabularStore,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Infrastructure: backing store, cache service, locks, time, notifications
    # The tabular store is swapped for a real adapter by overriding this provider
    tabular_store = providers.Singleton(InMemoryTabularStore)
    cache_store = providers.Singleton(KvrocksCacheStore)
    write_lock = providers.Singleton(KvrocksLock, ttl_seconds=settings.WRITE_LOCK_TTL_SECONDS)
    maintenance_lock = providers.Singleton(
        KvrocksLock, ttl_seconds=settings.MAINTENANCE_LOCK_TTL_SECONDS
    )
    clock = providers.Singleton(SystemClock)
    notifier = providers.Singleton(LoggingNotifier)

    # Cache Manager (owns every cache key)
    cache_manager = providers.Singleton(
        CacheManagerImpl,
        tabular_store=tabular_store,
        cache_store=cache_store,
    )

    # Repositories: queries read snapshots, commands write the backing store
    lesson_query_repo = providers.Singleton(LessonQueryRepoImpl, cache_manager=cache_manager)
    lesson_command_repo = providers.Singleton(LessonCommandRepoImpl, tabular_store=tabular_store)
    reservation_query_repo = providers.Singleton(
        ReservationQueryRepoImpl, cache_manager=cache_manager
    )
    reservation_command_repo = providers.Singleton(
        ReservationCommandRepoImpl, tabular_store=tabular_store
    )
    student_query_repo = providers.Singleton(StudentQueryRepoImpl, cache_manager=cache_manager)
    price_item_query_repo = providers.Singleton(
        PriceItemQueryRepoImpl, cache_manager=cache_manager
    )

    # Domain service + lifecycle helpers
    calculator = providers.Singleton(AvailabilityCalculator)
    write_guard = providers.Singleton(ReservationWriteGuard, lock=write_lock)
    availability_checker = providers.Singleton(
        AvailabilityChecker,
        calculator=calculator,
        reservation_query_repo=reservation_query_repo,
    )
    notification_dispatcher = providers.Singleton(
        NotificationDispatcher,
        notifier=notifier,
        student_query_repo=student_query_repo,
    )

    # Reservation Lifecycle Use Cases (stateless, can be Singleton)
    create_reservation_use_case = providers.Singleton(
        CreateReservationUseCase,
        lesson_query_repo=lesson_query_repo,
        reservation_command_repo=reservation_command_repo,
        cache_manager=cache_manager,
        availability_checker=availability_checker,
        write_guard=write_guard,
        notification_dispatcher=notification_dispatcher,
        clock=clock,
    )
    cancel_reservation_use_case = providers.Singleton(
        CancelReservationUseCase,
        reservation_query_repo=reservation_query_repo,
        reservation_command_repo=reservation_command_repo,
        lesson_query_repo=lesson_query_repo,
        student_query_repo=student_query_repo,
        cache_manager=cache_manager,
        availability_checker=availability_checker,
        write_guard=write_guard,
        notification_dispatcher=notification_dispatcher,
        clock=clock,
    )
    amend_reservation_use_case = providers.Singleton(
        AmendReservationUseCase,
        reservation_query_repo=reservation_query_repo,
        reservation_command_repo=reservation_command_repo,
        lesson_query_repo=lesson_query_repo,
        student_query_repo=student_query_repo,
        cache_manager=cache_manager,
        availability_checker=availability_checker,
        write_guard=write_guard,
        notification_dispatcher=notification_dispatcher,
        clock=clock,
    )
    confirm_waitlisted_reservation_use_case = providers.Singleton(
        ConfirmWaitlistedReservationUseCase,
        reservation_query_repo=reservation_query_repo,
        reservation_command_repo=reservation_command_repo,
        lesson_query_repo=lesson_query_repo,
        student_query_repo=student_query_repo,
        cache_manager=cache_manager,
        availability_checker=availability_checker,
        write_guard=write_guard,
        notification_dispatcher=notification_dispatcher,
        clock=clock,
    )
    complete_reservation_use_case = providers.Singleton(
        CompleteReservationUseCase,
        reservation_query_repo=reservation_query_repo,
        reservation_command_repo=reservation_command_repo,
        cache_manager=cache_manager,
        write_guard=write_guard,
        notification_dispatcher=notification_dispatcher,
        clock=clock,
    )
    run_cache_maintenance_use_case = providers.Singleton(
        RunCacheMaintenanceUseCase,
        lock=maintenance_lock,
        cache_manager=cache_manager,
        lesson_command_repo=lesson_command_repo,
        clock=clock,
    )

    # Query Use Cases
    list_offered_lessons_use_case = providers.Singleton(
        ListOfferedLessonsUseCase,
        lesson_query_repo=lesson_query_repo,
        reservation_query_repo=reservation_query_repo,
        calculator=calculator,
        clock=clock,
    )
    list_student_reservations_use_case = providers.Singleton(
        ListStudentReservationsUseCase, reservation_query_repo=reservation_query_repo
    )
    get_reservation_use_case = providers.Singleton(
        GetReservationUseCase, reservation_query_repo=reservation_query_repo
    )
    list_price_items_use_case = providers.Singleton(
        ListPriceItemsUseCase, price_item_query_repo=price_item_query_repo
    )
    get_cache_info_use_case = providers.Singleton(
        GetCacheInfoUseCase, cache_manager=cache_manager
    )


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()
