"""
Table schemas - the one place that knows each dataset's columns.

Cells are normalized here, at the adapter boundary, so everything above
sees canonical strings: dates as YYYY-MM-DD, clock times as HH:MM,
timestamps as ISO-8601.
"""

from datetime import date, datetime, time
from typing import Any, Mapping, Optional

import attrs

from src.service.reservation.app.dto import Dataset
from src.service.reservation.domain.value_object import format_clock, parse_clock


_DATE_FORMATS = ('%Y-%m-%d', '%Y/%m/%d')


@attrs.define(frozen=True)
class TableSchema:
    dataset: Dataset
    columns: tuple[str, ...]
    id_column: Optional[str] = None
    date_columns: frozenset[str] = frozenset()
    time_columns: frozenset[str] = frozenset()
    datetime_columns: frozenset[str] = frozenset()

    @property
    def table_name(self) -> str:
        return self.dataset.value

    def normalize_cell(self, column: str, value: Any) -> Any:
        if value is None:
            return ''
        if column in self.date_columns:
            return normalize_date(value)
        if column in self.time_columns:
            return normalize_time(value)
        if column in self.datetime_columns:
            return value.isoformat() if isinstance(value, datetime) else str(value).strip()
        return value

    def normalize_row(self, headers: list[str], row: list[Any]) -> list[Any]:
        padded = list(row) + [''] * (len(headers) - len(row))
        return [self.normalize_cell(column, value) for column, value in zip(headers, padded)]


def normalize_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    for date_format in _DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format).date().isoformat()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        return text


def normalize_time(value: Any) -> str:
    if isinstance(value, (datetime, time)):
        return f'{value.hour:02d}:{value.minute:02d}'
    minutes = parse_clock(value)
    return format_clock(minutes) if minutes is not None else str(value).strip()


def row_to_record(headers: list[str], row: list[Any]) -> dict[str, Any]:
    return {
        header: row[index] if index < len(row) else ''
        for index, header in enumerate(headers)
        if header
    }


def record_to_row(
    headers: list[str], record: Mapping[str, Any], base_row: Optional[list[Any]] = None
) -> list[Any]:
    """Lay a record out in physical header order; unknown headers keep ``base_row`` cells"""
    row = list(base_row or []) + [''] * max(0, len(headers) - len(base_row or []))
    for index, header in enumerate(headers):
        if header in record:
            value = record[header]
            row[index] = '' if value is None else value
    return row


TABLE_SCHEMAS: dict[Dataset, TableSchema] = {
    Dataset.LESSONS: TableSchema(
        dataset=Dataset.LESSONS,
        columns=(
            'lesson_id',
            'date',
            'classroom',
            'venue',
            'classroom_type',
            'first_start',
            'first_end',
            'second_start',
            'second_end',
            'beginner_start',
            'total_capacity',
            'beginner_capacity',
            'status',
            'notes',
        ),
        id_column='lesson_id',
        date_columns=frozenset({'date'}),
        time_columns=frozenset(
            {'first_start', 'first_end', 'second_start', 'second_end', 'beginner_start'}
        ),
    ),
    Dataset.RESERVATIONS: TableSchema(
        dataset=Dataset.RESERVATIONS,
        columns=(
            'reservation_id',
            'lesson_id',
            'student_id',
            'classroom',
            'date',
            'status',
            'start_time',
            'end_time',
            'is_beginner',
            'notes',
            'accounting',
            'cancel_message',
            'created_at',
            'updated_at',
        ),
        id_column='reservation_id',
        date_columns=frozenset({'date'}),
        time_columns=frozenset({'start_time', 'end_time'}),
        datetime_columns=frozenset({'created_at', 'updated_at'}),
    ),
    Dataset.ROSTER: TableSchema(
        dataset=Dataset.ROSTER,
        columns=('student_id', 'name', 'email', 'phone', 'is_admin'),
        id_column='student_id',
    ),
    Dataset.PRICE_MASTER: TableSchema(
        dataset=Dataset.PRICE_MASTER,
        columns=('item_name', 'item_type', 'unit', 'price', 'target_classroom'),
    ),
}
