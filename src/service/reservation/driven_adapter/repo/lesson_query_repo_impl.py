from typing import List, Optional

from src.platform.exception.exceptions import DataIntegrityError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto import Dataset
from src.service.reservation.app.interface import ICacheManager, ILessonQueryRepo
from src.service.reservation.domain.entity import Lesson
from src.service.reservation.driven_adapter.repo.snapshot_reader import load_records


class LessonQueryRepoImpl(ILessonQueryRepo):
    def __init__(self, *, cache_manager: ICacheManager) -> None:
        self.cache_manager = cache_manager

    async def get_by_id(self, *, lesson_id: str) -> Optional[Lesson]:
        records = await load_records(cache_manager=self.cache_manager, dataset=Dataset.LESSONS)
        for record in records:
            if str(record.get('lesson_id', '')) == lesson_id:
                return Lesson.from_record(record)
        return None

    async def list_all(self) -> List[Lesson]:
        records = await load_records(cache_manager=self.cache_manager, dataset=Dataset.LESSONS)
        lessons = []
        for record in records:
            try:
                lessons.append(Lesson.from_record(record))
            except DataIntegrityError as e:
                # One malformed row must not hide every other lesson
                Logger.base.warning(f'⚠️ [LESSON] Skipping lesson row: {e.message}')
        return lessons
