from abc import ABC, abstractmethod
from typing import Any

from src.service.reservation.app.dto import TableData


class ITabularStore(ABC):
    """
    Authoritative row-oriented store (lessons, reservations, roster, price_master).

    Rows are positional in header order; callers map headers to positions once
    per read instead of hard-coding column offsets.
    """

    @abstractmethod
    async def read_table(self, name: str) -> TableData:
        pass

    @abstractmethod
    async def append_row(self, name: str, row: list[Any]) -> int:
        """Append one row; returns its 0-based data row index"""
        pass

    @abstractmethod
    async def write_row(self, name: str, index: int, row: list[Any]) -> None:
        """Overwrite the data row at ``index``"""
        pass
