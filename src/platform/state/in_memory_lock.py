import asyncio
from typing import Dict

from src.platform.logging.loguru_io import Logger
from src.platform.state.i_distributed_lock import ILock


class InMemoryLock(ILock):
    """
    Single-process lock with the same contract as KvrocksLock.

    Used for local runs and tests; it only excludes tasks of one event loop.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}

    async def try_acquire(self, *, key: str, timeout_ms: int) -> bool:
        lock = self._locks.setdefault(key, asyncio.Lock())
        try:
            await asyncio.wait_for(lock.acquire(), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            Logger.base.warning(f'⏳ [LOCK] Timed out waiting for lock: {key} ({timeout_ms}ms)')
            return False
        return True

    async def release(self, *, key: str) -> None:
        lock = self._locks.get(key)
        if lock is None or not lock.locked():
            Logger.base.warning(f'⚠️ [LOCK] No lock value to release: {key}')
            return
        lock.release()

    def is_locked(self, *, key: str) -> bool:
        lock = self._locks.get(key)
        return bool(lock and lock.locked())
