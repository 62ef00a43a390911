from abc import ABC, abstractmethod
from typing import Any, Mapping

from src.service.reservation.domain.enum import NotificationEvent


class INotifier(ABC):
    """Outbound notifications; message text is rendered by the implementation"""

    @abstractmethod
    async def notify(
        self, *, recipient: str, event: NotificationEvent, payload: Mapping[str, Any]
    ) -> None:
        pass
