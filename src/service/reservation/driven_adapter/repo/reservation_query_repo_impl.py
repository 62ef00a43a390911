from typing import List, Optional

from src.platform.exception.exceptions import DataIntegrityError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto import Dataset
from src.service.reservation.app.interface import ICacheManager, IReservationQueryRepo
from src.service.reservation.domain.entity import Reservation
from src.service.reservation.driven_adapter.repo.snapshot_reader import load_records


class ReservationQueryRepoImpl(IReservationQueryRepo):
    def __init__(self, *, cache_manager: ICacheManager) -> None:
        self.cache_manager = cache_manager

    async def _load(self) -> List[Reservation]:
        records = await load_records(
            cache_manager=self.cache_manager, dataset=Dataset.RESERVATIONS
        )
        reservations = []
        for record in records:
            try:
                reservations.append(Reservation.from_record(record))
            except DataIntegrityError as e:
                # A malformed row only fails lookups of that row, see get_by_id
                Logger.base.warning(f'⚠️ [RESERVATION] Skipping reservation row: {e.message}')
        return reservations

    async def get_by_id(self, *, reservation_id: str) -> Optional[Reservation]:
        snapshot = await self.cache_manager.get_cached_data(dataset=Dataset.RESERVATIONS)
        if snapshot is not None and snapshot.id_index:
            record = snapshot.find(reservation_id)
            return Reservation.from_record(record) if record else None
        records = await load_records(
            cache_manager=self.cache_manager, dataset=Dataset.RESERVATIONS
        )
        record = next(
            (r for r in records if str(r.get('reservation_id', '')) == reservation_id), None
        )
        return Reservation.from_record(record) if record else None

    async def list_by_lesson(self, *, lesson_id: str) -> List[Reservation]:
        return [r for r in await self._load() if r.lesson_id == lesson_id]

    async def list_by_student(self, *, student_id: str) -> List[Reservation]:
        return [r for r in await self._load() if r.student_id == student_id]

    async def list_all(self) -> List[Reservation]:
        return await self._load()
