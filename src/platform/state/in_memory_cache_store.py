import time
from typing import Dict, Optional, Tuple

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.i_cache_store import ICacheStore


class InMemoryCacheStore(ICacheStore):
    """
    In-process cache store enforcing the same size ceiling as Kvrocks.

    Used for local runs and tests. ``fail_writes`` simulates a cache service
    that rejects every write.
    """

    def __init__(self, *, max_item_bytes: int = settings.CACHE_MAX_ITEM_BYTES) -> None:
        self.max_item_bytes = max_item_bytes
        self.fail_writes = False
        self._items: Dict[str, Tuple[bytes, float]] = {}

    async def put(self, *, key: str, payload: bytes, ttl_seconds: int) -> bool:
        if self.fail_writes:
            Logger.base.warning(f'⚠️ [CACHE-STORE] Write rejected for {key}')
            return False
        if len(payload) > self.max_item_bytes:
            Logger.base.warning(
                f'⚠️ [CACHE-STORE] Rejected {key}: {len(payload)} bytes > {self.max_item_bytes}'
            )
            return False
        self._items[key] = (payload, time.monotonic() + ttl_seconds)
        return True

    async def get(self, *, key: str) -> Optional[bytes]:
        item = self._items.get(key)
        if item is None:
            return None
        payload, expires_at = item
        if time.monotonic() >= expires_at:
            del self._items[key]
            return None
        return payload

    async def delete(self, *, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)
