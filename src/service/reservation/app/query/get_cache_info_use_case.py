"""
Cache diagnostics: version, row count and chunking of each cached dataset
"""

from typing import List, Optional

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto import CacheInfo, Dataset
from src.service.reservation.app.interface import ICacheManager


class GetCacheInfoUseCase:
    def __init__(self, *, cache_manager: ICacheManager) -> None:
        self.cache_manager = cache_manager

    @Logger.io
    async def execute(self, *, dataset: Optional[Dataset] = None) -> List[CacheInfo]:
        if dataset is not None:
            return [await self.cache_manager.get_cache_info(dataset=dataset)]
        return await self.cache_manager.get_all_cache_info()
