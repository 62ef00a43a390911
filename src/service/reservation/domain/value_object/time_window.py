"""Clock-time value objects (HH:MM, minutes since midnight)"""

from datetime import datetime, time
import re
from typing import Any, Optional

import attrs


_CLOCK_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})(?::\d{2})?$')


def parse_clock(value: Any) -> Optional[int]:
    """
    Parse a clock cell into minutes since midnight.

    Accepts "9:00", "09:00", "09:00:00", ``time`` and ``datetime``.
    Blank or unparseable values return None (treated as missing).
    """
    if isinstance(value, datetime):
        return value.hour * 60 + value.minute
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if value is None:
        return None

    match = _CLOCK_PATTERN.match(str(value).strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour * 60 + minute


def format_clock(minutes: int) -> str:
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


@attrs.define(frozen=True)
class TimeWindow:
    """Half-open clock window [start, end) in minutes since midnight"""

    start: int
    end: int

    @classmethod
    def parse(cls, start: Any, end: Any) -> Optional['TimeWindow']:
        """None when either bound is missing; bounds are not ordered here"""
        start_minutes = parse_clock(start)
        end_minutes = parse_clock(end)
        if start_minutes is None or end_minutes is None:
            return None
        return cls(start=start_minutes, end=end_minutes)

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    @property
    def is_ordered(self) -> bool:
        return self.start < self.end

    def contains(self, other: 'TimeWindow') -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f'{format_clock(self.start)}-{format_clock(self.end)}'
