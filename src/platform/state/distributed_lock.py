"""
Distributed Lock using Kvrocks (Redis)

Simple distributed lock implementation using Redis SET NX EX command,
polled until the caller's timeout.
"""

import asyncio
import time
from typing import Dict
from uuid import uuid4

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.i_distributed_lock import ILock
from src.platform.state.kvrocks_client import kvrocks_client


# Lua script to verify ownership before deleting
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class KvrocksLock(ILock):
    """
    Distributed lock backed by SET NX EX.

    Every held key remembers its own random token so release only deletes
    a lock this instance still owns (an expired and re-acquired lock is left alone).
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = settings.WRITE_LOCK_TTL_SECONDS,
        poll_interval_seconds: float = 0.05,
        key_prefix: str = settings.KVROCKS_KEY_PREFIX,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.key_prefix = key_prefix
        self._tokens: Dict[str, str] = {}

    async def try_acquire(self, *, key: str, timeout_ms: int) -> bool:
        client = kvrocks_client.get_client()
        full_key = f'{self.key_prefix}{key}'
        token = str(uuid4())
        deadline = time.monotonic() + timeout_ms / 1000

        while True:
            try:
                # NX: Only set if not exists (atomic), EX: Set expiry time in seconds
                if await client.set(full_key, token, nx=True, ex=self.ttl_seconds):
                    self._tokens[key] = token
                    Logger.base.debug(f'🔒 [LOCK] Acquired lock: {key} (ttl={self.ttl_seconds}s)')
                    return True
            except Exception as e:
                Logger.base.error(f'❌ [LOCK] Error acquiring lock {key}: {e}')
                return False

            if time.monotonic() >= deadline:
                Logger.base.warning(f'⏳ [LOCK] Timed out waiting for lock: {key} ({timeout_ms}ms)')
                return False
            await asyncio.sleep(self.poll_interval_seconds)

    async def release(self, *, key: str) -> None:
        token = self._tokens.pop(key, None)
        if token is None:
            Logger.base.warning(f'⚠️ [LOCK] No lock value to release: {key}')
            return

        client = kvrocks_client.get_client()
        try:
            result = await client.eval(_RELEASE_SCRIPT, 1, f'{self.key_prefix}{key}', token)  # type: ignore
            if result:
                Logger.base.debug(f'🔓 [LOCK] Released lock: {key}')
            else:
                Logger.base.warning(
                    f'⚠️ [LOCK] Failed to release lock: {key} (ownership mismatch or expired)'
                )
        except Exception as e:
            Logger.base.error(f'❌ [LOCK] Error releasing lock {key}: {e}')
