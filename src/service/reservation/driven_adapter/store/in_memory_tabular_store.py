import copy
from typing import Any, Iterable, Mapping, Optional

from src.platform.exception.exceptions import DataIntegrityError
from src.service.reservation.app.dto import TableData
from src.service.reservation.app.interface import ITabularStore
from src.service.reservation.driven_adapter.store.table_schema import (
    TABLE_SCHEMAS,
    record_to_row,
)


class InMemoryTabularStore(ITabularStore):
    """
    In-process backing store for local runs and tests.

    Every dataset table starts empty with its schema headers; reads hand out
    deep copies so callers can never mutate the stored rows.
    """

    def __init__(self, *, tables: Optional[Mapping[str, TableData]] = None) -> None:
        self._tables: dict[str, TableData] = {
            schema.table_name: TableData(headers=list(schema.columns), rows=[])
            for schema in TABLE_SCHEMAS.values()
        }
        for name, table in (tables or {}).items():
            self._tables[name] = copy.deepcopy(table)
        self.read_count = 0

    def _table(self, name: str) -> TableData:
        table = self._tables.get(name)
        if table is None:
            raise DataIntegrityError(f'Unknown table "{name}"')
        return table

    async def read_table(self, name: str) -> TableData:
        self.read_count += 1
        return copy.deepcopy(self._table(name))

    async def append_row(self, name: str, row: list[Any]) -> int:
        table = self._table(name)
        table.rows.append(list(row))
        return len(table.rows) - 1

    async def write_row(self, name: str, index: int, row: list[Any]) -> None:
        table = self._table(name)
        if not 0 <= index < len(table.rows):
            raise DataIntegrityError(f'Row {index} does not exist in table "{name}"')
        table.rows[index] = list(row)

    def seed_records(self, name: str, records: Iterable[Mapping[str, Any]]) -> None:
        table = self._table(name)
        for record in records:
            table.rows.append(record_to_row(table.headers, record))
