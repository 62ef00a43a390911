"""Cache snapshot DTOs"""

from enum import StrEnum
from typing import Any, Optional

import attrs


class Dataset(StrEnum):
    """Cached datasets; the value doubles as the backing-store table name"""

    LESSONS = 'lessons'
    RESERVATIONS = 'reservations'
    ROSTER = 'roster'
    PRICE_MASTER = 'price_master'


class MutationOutcome(StrEnum):
    """Result of an incremental cache mutation; anything but APPLIED means rebuild"""

    APPLIED = 'applied'
    STALE = 'stale'  # snapshot absent, or its column map / id index cannot serve the mutation
    ERROR = 'error'  # write rejected or unexpected fault


@attrs.define
class CacheSnapshot:
    """
    Versioned mirror of one dataset.

    ``column_map`` (column name → position) decouples the cached row shape from
    the store's physical column order; ``id_index`` maps record id → row
    position for keyed datasets.
    """

    dataset: Dataset
    version: int
    column_map: dict[str, int]
    rows: list[list[Any]]
    id_index: dict[str, int] = attrs.field(factory=dict)
    is_chunked: bool = False
    total_chunks: int = 0

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return max(self.column_map.values(), default=-1) + 1

    def record_at(self, index: int) -> dict[str, Any]:
        row = self.rows[index]
        return {
            column: row[position] if position < len(row) else ''
            for column, position in self.column_map.items()
        }

    def records(self) -> list[dict[str, Any]]:
        return [self.record_at(index) for index in range(len(self.rows))]

    def find(self, record_id: str) -> Optional[dict[str, Any]]:
        index = self.id_index.get(record_id)
        if index is None or index >= len(self.rows):
            return None
        return self.record_at(index)


@attrs.define(frozen=True)
class CacheInfo:
    dataset: Dataset
    exists: bool
    version: Optional[int] = None
    total_rows: int = 0
    is_chunked: bool = False
    total_chunks: int = 0
