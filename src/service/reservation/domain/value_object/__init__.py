"""Reservation Value Objects"""

from src.service.reservation.domain.value_object.seat_availability import (
    EffectiveCapacity,
    SeatAvailability,
)
from src.service.reservation.domain.value_object.time_window import (
    TimeWindow,
    format_clock,
    parse_clock,
)

__all__ = ['EffectiveCapacity', 'SeatAvailability', 'TimeWindow', 'format_clock', 'parse_clock']
