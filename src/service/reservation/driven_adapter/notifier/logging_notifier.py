from typing import Any, Mapping

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface import INotifier
from src.service.reservation.domain.enum import NotificationEvent


class LoggingNotifier(INotifier):
    """Default notifier: records the notification; delivery channels plug in behind INotifier"""

    async def notify(
        self, *, recipient: str, event: NotificationEvent, payload: Mapping[str, Any]
    ) -> None:
        Logger.base.info(f'📨 [NOTIFY] {event} → {recipient}: {dict(payload)}')
