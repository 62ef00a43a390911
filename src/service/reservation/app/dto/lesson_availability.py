import attrs

from src.service.reservation.domain.entity import Lesson
from src.service.reservation.domain.value_object import SeatAvailability


@attrs.define(frozen=True)
class LessonAvailability:
    lesson: Lesson
    availability: SeatAvailability
