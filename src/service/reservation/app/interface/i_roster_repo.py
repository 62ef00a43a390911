from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.reservation.domain.entity import PriceItem, Student


class IStudentQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, student_id: str) -> Optional[Student]:
        pass


class IPriceItemQueryRepo(ABC):
    @abstractmethod
    async def list_all(self) -> List[PriceItem]:
        pass
