from typing import Optional

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.i_cache_store import ICacheStore
from src.platform.state.kvrocks_client import kvrocks_client


class KvrocksCacheStore(ICacheStore):
    """Cache store on Kvrocks; keys are namespaced with KVROCKS_KEY_PREFIX"""

    def __init__(
        self,
        *,
        max_item_bytes: int = settings.CACHE_MAX_ITEM_BYTES,
        key_prefix: str = settings.KVROCKS_KEY_PREFIX,
    ) -> None:
        self.max_item_bytes = max_item_bytes
        self.key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f'{self.key_prefix}{key}'

    async def put(self, *, key: str, payload: bytes, ttl_seconds: int) -> bool:
        if len(payload) > self.max_item_bytes:
            Logger.base.warning(
                f'⚠️ [CACHE-STORE] Rejected {key}: {len(payload)} bytes > {self.max_item_bytes}'
            )
            return False

        client = kvrocks_client.get_client()
        try:
            await client.set(self._key(key), payload, ex=ttl_seconds)
            return True
        except Exception as e:
            Logger.base.error(f'❌ [CACHE-STORE] Failed to write {key}: {e}')
            return False

    async def get(self, *, key: str) -> Optional[bytes]:
        client = kvrocks_client.get_client()
        try:
            value = await client.get(self._key(key))
        except Exception as e:
            Logger.base.warning(f'⚠️ [CACHE-STORE] Failed to read {key}: {e}')
            return None
        if value is None:
            return None
        return value if isinstance(value, bytes) else str(value).encode()

    async def delete(self, *, key: str) -> None:
        client = kvrocks_client.get_client()
        try:
            await client.delete(self._key(key))
        except Exception as e:
            Logger.base.warning(f'⚠️ [CACHE-STORE] Failed to delete {key}: {e}')
