from abc import ABC, abstractmethod
from datetime import date, datetime


class IClock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware now in the configured TIMEZONE"""
        pass

    @abstractmethod
    def today(self) -> date:
        pass
