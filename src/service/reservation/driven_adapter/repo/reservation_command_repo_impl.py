from src.platform.exception.exceptions import DataIntegrityError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto import Dataset, TableData
from src.service.reservation.app.interface import IReservationCommandRepo, ITabularStore
from src.service.reservation.domain.entity import Reservation
from src.service.reservation.driven_adapter.store.table_schema import (
    TABLE_SCHEMAS,
    record_to_row,
)


class ReservationCommandRepoImpl(IReservationCommandRepo):
    """Writes reservations to the backing store in its physical column order"""

    def __init__(self, *, tabular_store: ITabularStore) -> None:
        self.tabular_store = tabular_store
        self.schema = TABLE_SCHEMAS[Dataset.RESERVATIONS]

    def _check_columns(self, table: TableData) -> None:
        header_map = table.header_map()
        missing = [column for column in self.schema.columns if column not in header_map]
        if missing:
            raise DataIntegrityError(f'reservations table is missing columns: {", ".join(missing)}')

    @Logger.io
    async def create(self, *, reservation: Reservation) -> None:
        table = await self.tabular_store.read_table(self.schema.table_name)
        self._check_columns(table)
        index = await self.tabular_store.append_row(
            self.schema.table_name, record_to_row(table.headers, reservation.to_record())
        )
        Logger.base.info(
            f'📝 [RESERVATION] Appended {reservation.reservation_id} at reservations row {index}'
        )

    @Logger.io
    async def update(self, *, reservation: Reservation) -> None:
        table = await self.tabular_store.read_table(self.schema.table_name)
        self._check_columns(table)
        id_position = table.header_map()['reservation_id']

        for index, row in enumerate(table.rows):
            if id_position < len(row) and str(row[id_position]) == reservation.reservation_id:
                await self.tabular_store.write_row(
                    self.schema.table_name,
                    index,
                    record_to_row(table.headers, reservation.to_record(), base_row=row),
                )
                return

        raise DataIntegrityError(
            f'Reservation {reservation.reservation_id} not found in the backing store'
        )
