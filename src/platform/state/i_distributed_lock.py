from abc import ABC, abstractmethod


class ILock(ABC):
    """
    Mutual-exclusion primitive shared by every process that writes reservations.

    Implementations must never block past ``timeout_ms``; a caller that cannot
    get the lock in time receives False and decides what to do (fail, skip).
    """

    @abstractmethod
    async def try_acquire(self, *, key: str, timeout_ms: int) -> bool:
        """
        Args:
            key: Lock key (e.g., "lock:reservation:2025-10-15")
            timeout_ms: Maximum time to wait for the lock

        Returns:
            True if the lock is now held by this instance
        """
        pass

    @abstractmethod
    async def release(self, *, key: str) -> None:
        """Release a lock held by this instance; releasing a lost lock is a no-op"""
        pass
