from typing import List

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface import IReservationQueryRepo
from src.service.reservation.domain.entity import Reservation
from src.service.reservation.domain.enum import ReservationStatus


class ListStudentReservationsUseCase:
    def __init__(self, *, reservation_query_repo: IReservationQueryRepo) -> None:
        self.reservation_query_repo = reservation_query_repo

    @Logger.io
    async def execute(self, *, student_id: str) -> List[Reservation]:
        """Non-canceled reservations, newest lesson date first"""
        reservations = await self.reservation_query_repo.list_by_student(student_id=student_id)
        return sorted(
            (r for r in reservations if r.status is not ReservationStatus.CANCELED),
            key=lambda r: (r.date, r.created_at.isoformat() if r.created_at else ''),
            reverse=True,
        )
