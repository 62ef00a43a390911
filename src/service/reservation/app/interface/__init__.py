"""Reservation Service Interfaces"""

from src.service.reservation.app.interface.i_cache_manager import ICacheManager
from src.service.reservation.app.interface.i_clock import IClock
from src.service.reservation.app.interface.i_lesson_repo import (
    ILessonCommandRepo,
    ILessonQueryRepo,
)
from src.service.reservation.app.interface.i_notifier import INotifier
from src.service.reservation.app.interface.i_reservation_repo import (
    IReservationCommandRepo,
    IReservationQueryRepo,
)
from src.service.reservation.app.interface.i_roster_repo import (
    IPriceItemQueryRepo,
    IStudentQueryRepo,
)
from src.service.reservation.app.interface.i_tabular_store import ITabularStore

__all__ = [
    'ICacheManager',
    'IClock',
    'ILessonCommandRepo',
    'ILessonQueryRepo',
    'INotifier',
    'IPriceItemQueryRepo',
    'IReservationCommandRepo',
    'IReservationQueryRepo',
    'IStudentQueryRepo',
    'ITabularStore',
]
