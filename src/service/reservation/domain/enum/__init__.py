"""Reservation Domain Enums"""

from src.service.reservation.domain.enum.classroom_type import ClassroomType
from src.service.reservation.domain.enum.lesson_status import LessonStatus
from src.service.reservation.domain.enum.notification_event import NotificationEvent
from src.service.reservation.domain.enum.reservation_status import ReservationStatus
from src.service.reservation.domain.enum.session_pool import SessionPool

__all__ = [
    'ClassroomType',
    'LessonStatus',
    'NotificationEvent',
    'ReservationStatus',
    'SessionPool',
]
