"""Seat availability value object - output of the availability calculator"""

from typing import Optional

import attrs

from src.service.reservation.domain.enum import ClassroomType, SessionPool


@attrs.define(frozen=True)
class EffectiveCapacity:
    """Capacity after the lesson → classroom → system fallback"""

    total: int
    beginner: int  # sub-quota of total, never additive


@attrs.define(frozen=True)
class SeatAvailability:
    """
    Per-session seat counts for one lesson.

    - ``first_available``: the single pool, or the TimeDual morning pool
    - ``second_available``: TimeDual afternoon pool, None for single-pool shapes
    - ``beginner_available``: None when the beginner pool is not offered
    """

    classroom_type: ClassroomType
    capacity: EffectiveCapacity
    first_available: int
    second_available: Optional[int] = None
    beginner_available: Optional[int] = None

    @property
    def offers_beginner_pool(self) -> bool:
        return self.beginner_available is not None

    def available_in(self, pool: SessionPool) -> int:
        if pool is SessionPool.SECOND:
            return self.second_available or 0
        return self.first_available

    def is_pool_full(self, pool: SessionPool) -> bool:
        # Zero configured capacity never reads as full
        return self.available_in(pool) == 0 and self.capacity.total > 0

    @property
    def is_beginner_full(self) -> bool:
        return self.beginner_available == 0 and self.capacity.beginner > 0

    def has_room(self, *, pools: frozenset[SessionPool], is_beginner: bool) -> bool:
        """
        A beginner request is judged by the beginner pool when it is offered,
        otherwise by every general pool the request window touches.
        """
        if is_beginner and self.offers_beginner_pool:
            return not self.is_beginner_full
        return not any(self.is_pool_full(pool) for pool in pools)
