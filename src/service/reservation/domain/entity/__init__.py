"""Reservation Domain Entities"""

from src.service.reservation.domain.entity.lesson_entity import Lesson
from src.service.reservation.domain.entity.price_item_entity import PriceItem
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.reservation.domain.entity.student_entity import Student

__all__ = ['Lesson', 'PriceItem', 'Reservation', 'Student']
