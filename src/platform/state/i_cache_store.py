from abc import ABC, abstractmethod
from typing import Optional


class ICacheStore(ABC):
    """
    Key-value cache service with a hard per-item size ceiling.

    Last write wins, no transactions. Write failures (including oversized
    payloads) are reported through the return value, never raised.
    """

    max_item_bytes: int

    @abstractmethod
    async def put(self, *, key: str, payload: bytes, ttl_seconds: int) -> bool:
        pass

    @abstractmethod
    async def get(self, *, key: str) -> Optional[bytes]:
        """Returns None on miss or when the service is unreachable"""
        pass

    @abstractmethod
    async def delete(self, *, key: str) -> None:
        pass
