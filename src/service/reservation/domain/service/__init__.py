"""Reservation Domain Services"""

from src.service.reservation.domain.service.availability_calculator import AvailabilityCalculator

__all__ = ['AvailabilityCalculator']
