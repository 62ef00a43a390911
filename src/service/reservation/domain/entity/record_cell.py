"""Cell coercion shared by the dataset records (canonical strings in, typed values out)"""

from datetime import datetime
from typing import Any, Mapping, Optional

import orjson

from src.platform.exception.exceptions import DataIntegrityError


_TRUE_VALUES = {'true', '1', 'yes', 'y', 'on'}


def require(record: Mapping[str, Any], column: str, *, dataset: str) -> Any:
    if column not in record:
        raise DataIntegrityError(f'{dataset} record is missing required column "{column}"')
    value = record[column]
    if value is None or str(value).strip() == '':
        raise DataIntegrityError(f'{dataset} record has an empty "{column}"')
    return value


def as_text(value: Any) -> str:
    return '' if value is None else str(value).strip()


def as_optional_int(value: Any) -> Optional[int]:
    """Blank or unparseable cells are missing; an explicit 0 is a value"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return as_text(value).lower() in _TRUE_VALUES


def as_optional_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    text = as_text(value)
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def as_datetime_text(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ''


def as_json_payload(value: Any) -> Optional[dict[str, Any]]:
    if isinstance(value, dict):
        return value
    text = as_text(value)
    if not text:
        return None
    try:
        payload = orjson.loads(text)
    except orjson.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


def as_json_text(payload: Optional[dict[str, Any]]) -> str:
    return orjson.dumps(payload).decode() if payload else ''
