from enum import StrEnum


class SessionPool(StrEnum):
    FIRST = 'first'  # the single pool, or the morning pool of a TimeDual lesson
    SECOND = 'second'  # TimeDual afternoon pool
