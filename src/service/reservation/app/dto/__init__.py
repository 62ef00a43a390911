"""Reservation Service DTOs"""

from src.service.reservation.app.dto.cache_snapshot import (
    CacheInfo,
    CacheSnapshot,
    Dataset,
    MutationOutcome,
)
from src.service.reservation.app.dto.lesson_availability import LessonAvailability
from src.service.reservation.app.dto.maintenance_result import MaintenanceResult
from src.service.reservation.app.dto.table_data import TableData

__all__ = [
    'CacheInfo',
    'CacheSnapshot',
    'Dataset',
    'LessonAvailability',
    'MaintenanceResult',
    'MutationOutcome',
    'TableData',
]
