from typing import Any, Mapping, Optional

import attrs

from src.service.reservation.domain.entity.record_cell import as_optional_int, as_text, require


@attrs.define(frozen=True)
class PriceItem:
    item_name: str
    item_type: str = ''
    unit: str = ''
    price: Optional[int] = None
    target_classroom: str = ''  # blank applies to every classroom

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'PriceItem':
        return cls(
            item_name=as_text(require(record, 'item_name', dataset='price_master')),
            item_type=as_text(record.get('item_type')),
            unit=as_text(record.get('unit')),
            price=as_optional_int(record.get('price')),
            target_classroom=as_text(record.get('target_classroom')),
        )

    def applies_to(self, classroom: str) -> bool:
        return not self.target_classroom or self.target_classroom == classroom
