from typing import Any, Iterable, Mapping, Optional

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface import INotifier, IStudentQueryRepo
from src.service.reservation.domain.entity import Lesson, Reservation
from src.service.reservation.domain.enum import NotificationEvent


def reservation_payload(reservation: Reservation) -> dict[str, Any]:
    return {
        'reservation_id': reservation.reservation_id,
        'lesson_id': reservation.lesson_id,
        'student_id': reservation.student_id,
        'classroom': reservation.classroom,
        'date': reservation.date,
        'status': reservation.status.value,
        'start_time': reservation.start_time,
        'end_time': reservation.end_time,
        'is_beginner': reservation.is_beginner,
    }


class NotificationDispatcher:
    """Best-effort notifications: failures are logged and never reach the caller"""

    def __init__(
        self,
        *,
        notifier: INotifier,
        student_query_repo: IStudentQueryRepo,
        admin_recipient: str = settings.ADMIN_NOTIFICATION_RECIPIENT,
    ) -> None:
        self.notifier = notifier
        self.student_query_repo = student_query_repo
        self.admin_recipient = admin_recipient

    async def notify_student_and_admin(
        self,
        *,
        reservation: Reservation,
        event: NotificationEvent,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        payload = reservation_payload(reservation) | dict(extra or {})
        await self._send_to_student(
            student_id=reservation.student_id, event=event, payload=payload
        )
        await self._send(recipient=self.admin_recipient, event=event, payload=payload)

    async def notify_waitlisted(self, *, lesson: Lesson, reservations: Iterable[Reservation]) -> int:
        sent = 0
        for reservation in reservations:
            payload = reservation_payload(reservation) | {'venue': lesson.venue}
            await self._send_to_student(
                student_id=reservation.student_id,
                event=NotificationEvent.WAITLIST_SEAT_AVAILABLE,
                payload=payload,
            )
            sent += 1
        if sent:
            Logger.base.info(f'📣 [WAITLIST] Notified {sent} waitlisted students for {lesson.lesson_id}')
        return sent

    async def _send_to_student(
        self, *, student_id: str, event: NotificationEvent, payload: Mapping[str, Any]
    ) -> None:
        recipient = student_id
        try:
            student = await self.student_query_repo.get_by_id(student_id=student_id)
            if student is not None:
                recipient = student.contact
        except Exception as e:
            Logger.base.warning(f'⚠️ [NOTIFY] Roster lookup failed for {student_id}: {e}')
        await self._send(recipient=recipient, event=event, payload=payload)

    async def _send(
        self, *, recipient: str, event: NotificationEvent, payload: Mapping[str, Any]
    ) -> None:
        try:
            await self.notifier.notify(recipient=recipient, event=event, payload=payload)
        except Exception as e:
            Logger.base.warning(f'⚠️ [NOTIFY] {event} to {recipient} failed: {e}')
