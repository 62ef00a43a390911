from typing import Any

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto import Dataset
from src.service.reservation.app.interface import ICacheManager


async def load_records(*, cache_manager: ICacheManager, dataset: Dataset) -> list[dict[str, Any]]:
    """
    Records of one dataset from its snapshot.

    When the cache service cannot hold a snapshot at all, the freshly rebuilt
    in-memory snapshot is served instead of failing the read.
    """
    snapshot = await cache_manager.get_cached_data(dataset=dataset)
    if snapshot is None:
        Logger.base.warning(f'⚠️ [REPO] {dataset} cache unavailable, reading through rebuild')
        snapshot = await cache_manager.rebuild(dataset=dataset)
    return snapshot.records()
