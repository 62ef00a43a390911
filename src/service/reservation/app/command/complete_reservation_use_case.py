from typing import Any, Optional

from opentelemetry import trace

from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto import Dataset, MutationOutcome
from src.service.reservation.app.helper.notification_dispatcher import NotificationDispatcher
from src.service.reservation.app.helper.reservation_write_guard import ReservationWriteGuard
from src.service.reservation.app.interface import (
    ICacheManager,
    IClock,
    IReservationCommandRepo,
    IReservationQueryRepo,
)
from src.service.reservation.domain.entity import Reservation
from src.service.reservation.domain.enum import NotificationEvent


class CompleteReservationUseCase:
    """Confirmed → Completed, storing the accounting payload as-is"""

    def __init__(
        self,
        *,
        reservation_query_repo: IReservationQueryRepo,
        reservation_command_repo: IReservationCommandRepo,
        cache_manager: ICacheManager,
        write_guard: ReservationWriteGuard,
        notification_dispatcher: NotificationDispatcher,
        clock: IClock,
    ) -> None:
        self.reservation_query_repo = reservation_query_repo
        self.reservation_command_repo = reservation_command_repo
        self.cache_manager = cache_manager
        self.write_guard = write_guard
        self.notification_dispatcher = notification_dispatcher
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(
        self, *, reservation_id: str, accounting: Optional[dict[str, Any]] = None
    ) -> Reservation:
        with self.tracer.start_as_current_span(
            'use_case.complete_reservation', attributes={'reservation.id': reservation_id}
        ):
            reservation = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
            if not reservation:
                raise NotFoundError('Reservation not found')

            async with self.write_guard.hold(date=reservation.date):
                current = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
                if not current:
                    raise NotFoundError('Reservation not found')
                completed = current.complete(now=self.clock.now(), accounting=accounting)

                await self.reservation_command_repo.update(reservation=completed)
                outcome = await self.cache_manager.patch_row(
                    dataset=Dataset.RESERVATIONS,
                    record_id=completed.reservation_id,
                    record=completed.to_record(),
                )
                if outcome is not MutationOutcome.APPLIED:
                    await self.cache_manager.rebuild(dataset=Dataset.RESERVATIONS)

            Logger.base.info(f'🏁 [COMPLETE] {reservation_id} completed')
            await self.notification_dispatcher.notify_student_and_admin(
                reservation=completed, event=NotificationEvent.RESERVATION_COMPLETED
            )
            return completed
