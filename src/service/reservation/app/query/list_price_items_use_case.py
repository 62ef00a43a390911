from typing import List, Optional

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface import IPriceItemQueryRepo
from src.service.reservation.domain.entity import PriceItem


class ListPriceItemsUseCase:
    def __init__(self, *, price_item_query_repo: IPriceItemQueryRepo) -> None:
        self.price_item_query_repo = price_item_query_repo

    @Logger.io
    async def execute(self, *, classroom: Optional[str] = None) -> List[PriceItem]:
        items = await self.price_item_query_repo.list_all()
        if classroom is None:
            return items
        return [item for item in items if item.applies_to(classroom)]
