from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from src.service.reservation.app.dto import CacheInfo, CacheSnapshot, Dataset, MutationOutcome


class ICacheManager(ABC):
    """Owns the cache keys of every dataset: read-through, rebuild, incremental mutation"""

    @abstractmethod
    async def get_cached_data(self, *, dataset: Dataset) -> Optional[CacheSnapshot]:
        """
        Read-through: on a miss rebuild synchronously and retry once.

        Returns:
            The snapshot, or None only when the retry also misses
        """
        pass

    @abstractmethod
    async def rebuild(self, *, dataset: Dataset) -> CacheSnapshot:
        """
        Re-read the full table and write a fresh snapshot.

        The returned snapshot is valid even when the cache write failed.
        """
        pass

    @abstractmethod
    async def rebuild_all(self, *, rebuilt_at: Optional[float] = None) -> list[CacheInfo]:
        """
        Rebuild every dataset and record the time of this full rebuild.

        ``rebuilt_at`` is epoch seconds from the caller's clock; wall time when omitted.
        """
        pass

    @abstractmethod
    async def get_last_full_rebuild_at(self) -> Optional[float]:
        """Epoch seconds of the last ``rebuild_all``, shared across processes"""
        pass

    @abstractmethod
    async def append_row(self, *, dataset: Dataset, record: Mapping[str, Any]) -> MutationOutcome:
        pass

    @abstractmethod
    async def patch_status(
        self, *, dataset: Dataset, record_id: str, status: str
    ) -> MutationOutcome:
        pass

    @abstractmethod
    async def patch_column(
        self, *, dataset: Dataset, record_id: str, column: str, value: Any
    ) -> MutationOutcome:
        pass

    @abstractmethod
    async def patch_row(
        self, *, dataset: Dataset, record_id: str, record: Mapping[str, Any]
    ) -> MutationOutcome:
        pass

    @abstractmethod
    async def get_cache_info(self, *, dataset: Dataset) -> CacheInfo:
        pass

    @abstractmethod
    async def get_all_cache_info(self) -> list[CacheInfo]:
        pass
