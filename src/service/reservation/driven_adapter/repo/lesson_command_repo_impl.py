from typing import List

from src.platform.exception.exceptions import DataIntegrityError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto import Dataset
from src.service.reservation.app.interface import ILessonCommandRepo, ITabularStore
from src.service.reservation.domain.entity import Lesson
from src.service.reservation.driven_adapter.store.table_schema import (
    TABLE_SCHEMAS,
    record_to_row,
    row_to_record,
)


class LessonCommandRepoImpl(ILessonCommandRepo):
    def __init__(self, *, tabular_store: ITabularStore) -> None:
        self.tabular_store = tabular_store
        self.schema = TABLE_SCHEMAS[Dataset.LESSONS]

    @Logger.io
    async def complete_past_lessons(self, *, before: str) -> List[str]:
        table = await self.tabular_store.read_table(self.schema.table_name)
        completed: List[str] = []

        for index, row in enumerate(table.rows):
            record = {
                column: self.schema.normalize_cell(column, value)
                for column, value in row_to_record(table.headers, row).items()
            }
            try:
                lesson = Lesson.from_record(record)
            except DataIntegrityError as e:
                Logger.base.warning(f'⚠️ [LESSON] Skipping lessons row {index}: {e.message}')
                continue

            if not lesson.is_bookable or lesson.date >= before:
                continue

            lesson = lesson.complete()
            await self.tabular_store.write_row(
                self.schema.table_name,
                index,
                record_to_row(table.headers, {'status': lesson.status.value}, base_row=row),
            )
            completed.append(lesson.lesson_id)

        if completed:
            Logger.base.info(f'📅 [LESSON] Marked {len(completed)} past lessons completed')
        return completed
