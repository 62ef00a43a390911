from typing import Any, Mapping

import attrs

from src.service.reservation.domain.entity.record_cell import as_bool, as_text, require


@attrs.define(frozen=True)
class Student:
    """Roster entry - resolves notification recipients and the admin override"""

    student_id: str
    name: str = ''
    email: str = ''
    phone: str = ''
    is_admin: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'Student':
        return cls(
            student_id=as_text(require(record, 'student_id', dataset='roster')),
            name=as_text(record.get('name')),
            email=as_text(record.get('email')),
            phone=as_text(record.get('phone')),
            is_admin=as_bool(record.get('is_admin')),
        )

    @property
    def contact(self) -> str:
        return self.email or self.student_id
