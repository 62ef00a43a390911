from enum import StrEnum


class ClassroomType(StrEnum):
    SESSION_BASED = 'session_based'  # one fixed block
    TIME_DUAL = 'time_dual'  # morning + afternoon, split by a break
    ALL_DAY_TIMED = 'all_day_timed'  # one open block, students pick a window

    @property
    def is_time_priced(self) -> bool:
        return self in (ClassroomType.TIME_DUAL, ClassroomType.ALL_DAY_TIMED)
