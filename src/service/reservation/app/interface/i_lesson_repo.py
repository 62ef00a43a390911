from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.reservation.domain.entity import Lesson


class ILessonQueryRepo(ABC):
    """Lesson reads served from the lessons snapshot"""

    @abstractmethod
    async def get_by_id(self, *, lesson_id: str) -> Optional[Lesson]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Lesson]:
        pass


class ILessonCommandRepo(ABC):
    """Lesson writes against the backing store"""

    @abstractmethod
    async def complete_past_lessons(self, *, before: str) -> List[str]:
        """
        Flip scheduled lessons dated before ``before`` (YYYY-MM-DD) to completed.

        Returns:
            Ids of the lessons that were flipped
        """
        pass
