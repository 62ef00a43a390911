from enum import StrEnum


class LessonStatus(StrEnum):
    SCHEDULED = 'scheduled'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'
