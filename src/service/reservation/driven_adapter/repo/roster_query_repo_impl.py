from typing import List, Optional

from src.service.reservation.app.dto import Dataset
from src.service.reservation.app.interface import (
    ICacheManager,
    IPriceItemQueryRepo,
    IStudentQueryRepo,
)
from src.service.reservation.domain.entity import PriceItem, Student
from src.service.reservation.driven_adapter.repo.snapshot_reader import load_records


class StudentQueryRepoImpl(IStudentQueryRepo):
    def __init__(self, *, cache_manager: ICacheManager) -> None:
        self.cache_manager = cache_manager

    async def get_by_id(self, *, student_id: str) -> Optional[Student]:
        records = await load_records(cache_manager=self.cache_manager, dataset=Dataset.ROSTER)
        for record in records:
            if str(record.get('student_id', '')) == student_id:
                return Student.from_record(record)
        return None


class PriceItemQueryRepoImpl(IPriceItemQueryRepo):
    def __init__(self, *, cache_manager: ICacheManager) -> None:
        self.cache_manager = cache_manager

    async def list_all(self) -> List[PriceItem]:
        records = await load_records(
            cache_manager=self.cache_manager, dataset=Dataset.PRICE_MASTER
        )
        return [PriceItem.from_record(record) for record in records]
