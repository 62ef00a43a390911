from enum import StrEnum


class ReservationStatus(StrEnum):
    CONFIRMED = 'confirmed'
    WAITLISTED = 'waitlisted'
    CANCELED = 'canceled'
    COMPLETED = 'completed'

    @property
    def is_active(self) -> bool:
        """Holds (or waits for) a seat; counts for the one-per-day rule"""
        return self in (ReservationStatus.CONFIRMED, ReservationStatus.WAITLISTED)

    @property
    def occupies_seat(self) -> bool:
        return self in (ReservationStatus.CONFIRMED, ReservationStatus.COMPLETED)
