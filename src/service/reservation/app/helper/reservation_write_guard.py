from contextlib import asynccontextmanager
from typing import AsyncIterator

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import ConflictError
from src.platform.state.i_distributed_lock import ILock


class ReservationWriteGuard:
    """
    Serializes every check-then-write on one lesson date.

    Duplicate-per-day and capacity checks are both scoped to a date, so one
    lock per date covers them across requests and processes. A caller that
    cannot get the lock in time fails with a retryable ConflictError.
    """

    def __init__(self, *, lock: ILock, timeout_ms: int = settings.WRITE_LOCK_TIMEOUT_MS) -> None:
        self.lock = lock
        self.timeout_ms = timeout_ms

    @staticmethod
    def lock_key(date: str) -> str:
        return f'lock:reservation:{date}'

    @asynccontextmanager
    async def hold(self, *, date: str) -> AsyncIterator[None]:
        key = self.lock_key(date)
        if not await self.lock.try_acquire(key=key, timeout_ms=self.timeout_ms):
            raise ConflictError(f'Reservations for {date} are being updated, please retry')
        try:
            yield
        finally:
            await self.lock.release(key=key)
