from enum import StrEnum


class NotificationEvent(StrEnum):
    RESERVATION_CREATED = 'reservation_created'
    RESERVATION_CANCELED = 'reservation_canceled'
    RESERVATION_AMENDED = 'reservation_amended'
    RESERVATION_CONFIRMED = 'reservation_confirmed'
    RESERVATION_COMPLETED = 'reservation_completed'
    WAITLIST_SEAT_AVAILABLE = 'waitlist_seat_available'
