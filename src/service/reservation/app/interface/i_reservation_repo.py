from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.reservation.domain.entity import Reservation


class IReservationQueryRepo(ABC):
    """Reservation reads served from the reservations snapshot (most recent first)"""

    @abstractmethod
    async def get_by_id(self, *, reservation_id: str) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def list_by_lesson(self, *, lesson_id: str) -> List[Reservation]:
        pass

    @abstractmethod
    async def list_by_student(self, *, student_id: str) -> List[Reservation]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Reservation]:
        pass


class IReservationCommandRepo(ABC):
    """Reservation writes against the backing store"""

    @abstractmethod
    async def create(self, *, reservation: Reservation) -> None:
        pass

    @abstractmethod
    async def update(self, *, reservation: Reservation) -> None:
        """
        Raises:
            DataIntegrityError: the reservation row cannot be located in the store
        """
        pass
