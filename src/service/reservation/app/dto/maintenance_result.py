from typing import Optional

import attrs

from src.service.reservation.app.dto.cache_snapshot import CacheInfo


@attrs.define(frozen=True)
class MaintenanceResult:
    ran: bool
    skipped_reason: Optional[str] = None
    completed_lesson_ids: list[str] = attrs.field(factory=list)
    rebuilt: list[CacheInfo] = attrs.field(factory=list)
