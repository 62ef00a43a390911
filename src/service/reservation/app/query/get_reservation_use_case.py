from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface import IReservationQueryRepo
from src.service.reservation.domain.entity import Reservation


class GetReservationUseCase:
    def __init__(self, *, reservation_query_repo: IReservationQueryRepo) -> None:
        self.reservation_query_repo = reservation_query_repo

    @Logger.io
    async def execute(self, *, reservation_id: str) -> Reservation:
        reservation = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
        if not reservation:
            raise NotFoundError('Reservation not found')
        return reservation
