"""
Availability Calculator

Pure computation: (lesson, its reservations) → per-session seat counts.
No I/O; the capacity defaults are injected once at construction.
"""

from typing import Any, Iterable, Mapping, Optional

from src.platform.config.core_setting import settings
from src.service.reservation.domain.entity import Lesson, Reservation
from src.service.reservation.domain.enum import ReservationStatus, SessionPool
from src.service.reservation.domain.value_object import (
    EffectiveCapacity,
    SeatAvailability,
    TimeWindow,
    parse_clock,
)


def _first_present(*values: Optional[int]) -> int:
    for value in values:
        if value is not None:
            return value
    return 0


class AvailabilityCalculator:
    """
    Capacity rules per classroom shape:

    - SessionBased / AllDayTimed: one pool, ``available = max(0, total - occupied)``
    - TimeDual: morning and afternoon pools split at first_end / second_start;
      a reservation spanning the break occupies a seat in both pools
    - Beginner sub-quota is carved out of the general pool (the afternoon pool
      for TimeDual) and is only offered when its effective capacity is > 0
    """

    def __init__(
        self,
        *,
        default_total_capacity: int = settings.DEFAULT_TOTAL_CAPACITY,
        default_beginner_capacity: int = settings.DEFAULT_BEGINNER_CAPACITY,
        classroom_defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.default_total_capacity = default_total_capacity
        self.default_beginner_capacity = default_beginner_capacity
        self.classroom_defaults = (
            settings.CLASSROOM_DEFAULT_CAPACITY if classroom_defaults is None else classroom_defaults
        )

    def resolve_capacity(self, lesson: Lesson) -> EffectiveCapacity:
        """lesson value → per-classroom default → system default"""
        classroom_default = self.classroom_defaults.get(lesson.classroom)
        total = _first_present(
            lesson.total_capacity,
            classroom_default.total if classroom_default else None,
            self.default_total_capacity,
        )
        beginner = _first_present(
            lesson.beginner_capacity,
            classroom_default.beginner if classroom_default else None,
            self.default_beginner_capacity,
        )
        total = max(0, total)
        return EffectiveCapacity(total=total, beginner=max(0, min(beginner, total)))

    def pools_for_window(
        self, lesson: Lesson, window: Optional[TimeWindow]
    ) -> frozenset[SessionPool]:
        """
        Pools a window occupies. TimeDual: morning if start <= first_end (and
        end >= first_start), afternoon if end >= second_start (and start <= second_end).
        A TimeDual window that cannot be read occupies no pool.
        """
        if not lesson.is_time_dual:
            return frozenset({SessionPool.FIRST})
        if window is None:
            return frozenset()

        pools: set[SessionPool] = set()
        first_start, first_end = parse_clock(lesson.first_start), lesson.first_end_minutes
        second_start, second_end = lesson.second_start_minutes, parse_clock(lesson.second_end)

        if first_end is not None and window.start <= first_end:
            if first_start is None or window.end >= first_start:
                pools.add(SessionPool.FIRST)
        if second_start is not None and window.end >= second_start:
            if second_end is None or window.start <= second_end:
                pools.add(SessionPool.SECOND)
        return frozenset(pools)

    def calculate(
        self,
        *,
        lesson: Lesson,
        reservations: Iterable[Reservation],
        exclude_reservation_id: Optional[str] = None,
    ) -> SeatAvailability:
        capacity = self.resolve_capacity(lesson)
        occupying = [
            r
            for r in reservations
            if r.lesson_id == lesson.lesson_id
            and r.status.occupies_seat
            and r.reservation_id != exclude_reservation_id
        ]

        if lesson.is_time_dual:
            return self._calculate_time_dual(lesson=lesson, capacity=capacity, occupying=occupying)

        available = max(0, capacity.total - len(occupying))
        beginner_available = None
        if capacity.beginner > 0:
            beginner_occupied = sum(1 for r in occupying if r.is_beginner)
            beginner_available = min(available, max(0, capacity.beginner - beginner_occupied))

        return SeatAvailability(
            classroom_type=lesson.classroom_type,
            capacity=capacity,
            first_available=available,
            beginner_available=beginner_available,
        )

    def _calculate_time_dual(
        self, *, lesson: Lesson, capacity: EffectiveCapacity, occupying: list[Reservation]
    ) -> SeatAvailability:
        morning = afternoon = beginner_afternoon = 0
        for reservation in occupying:
            pools = self.pools_for_window(lesson, reservation.window)
            if SessionPool.FIRST in pools:
                morning += 1
            if SessionPool.SECOND in pools:
                afternoon += 1
                if reservation.is_beginner:
                    beginner_afternoon += 1

        first_available = max(0, capacity.total - morning)
        second_available = max(0, capacity.total - afternoon)

        beginner_available = None
        if lesson.beginner_start and capacity.beginner > 0:
            beginner_available = min(
                second_available, max(0, capacity.beginner - beginner_afternoon)
            )

        return SeatAvailability(
            classroom_type=lesson.classroom_type,
            capacity=capacity,
            first_available=first_available,
            second_available=second_available,
            beginner_available=beginner_available,
        )

    def has_room(
        self,
        *,
        lesson: Lesson,
        availability: SeatAvailability,
        window: Optional[TimeWindow],
        is_beginner: bool,
    ) -> bool:
        return availability.has_room(
            pools=self.pools_for_window(lesson, window), is_beginner=is_beginner
        )

    def is_promotable(
        self, *, lesson: Lesson, availability: SeatAvailability, reservation: Reservation
    ) -> bool:
        """
        Whether a waitlisted reservation should hear about a freed seat:
        beginners follow the beginner pool when it is offered, TimeDual windows
        need every pool they touch open (any open pool when the window is
        unreadable), everything else follows the single pool.
        """
        if reservation.status is not ReservationStatus.WAITLISTED:
            return False
        if reservation.is_beginner and availability.offers_beginner_pool:
            return (availability.beginner_available or 0) > 0

        if lesson.is_time_dual:
            pools = self.pools_for_window(lesson, reservation.window)
            if not pools:
                return availability.first_available > 0 or (availability.second_available or 0) > 0
            return all(availability.available_in(pool) > 0 for pool in pools)

        return availability.first_available > 0

    def promotable_waitlisted(
        self,
        *,
        lesson: Lesson,
        availability: SeatAvailability,
        reservations: Iterable[Reservation],
    ) -> list[Reservation]:
        return [
            r
            for r in reservations
            if r.lesson_id == lesson.lesson_id
            and self.is_promotable(lesson=lesson, availability=availability, reservation=r)
        ]
