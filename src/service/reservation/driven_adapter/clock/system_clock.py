from datetime import date, datetime
import zoneinfo

from src.platform.config.core_setting import settings
from src.service.reservation.app.interface import IClock


class SystemClock(IClock):
    def __init__(self, *, timezone: str = settings.TIMEZONE) -> None:
        self._zone = zoneinfo.ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self._zone)

    def today(self) -> date:
        return self.now().date()
