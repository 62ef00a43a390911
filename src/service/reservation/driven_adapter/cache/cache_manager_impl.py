"""
Cache Manager - read-through snapshots of the backing-store tables

Keys: ``cache:{dataset}`` (plus ``cache:{dataset}#N`` chunks when chunked).
Incremental mutators never raise; they report a MutationOutcome and the
caller rebuilds on anything other than APPLIED.
"""

import time
from typing import Any, Awaitable, Callable, Mapping, Optional

import attrs
import orjson
from opentelemetry import trace
from uuid_utils import uuid7

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.i_cache_store import ICacheStore
from src.service.reservation.app.dto import (
    CacheInfo,
    CacheSnapshot,
    Dataset,
    MutationOutcome,
    TableData,
)
from src.service.reservation.app.interface import ICacheManager, ITabularStore
from src.service.reservation.driven_adapter.cache.chunked_snapshot_codec import (
    ChunkedSnapshotCodec,
    build_id_index,
)
from src.service.reservation.driven_adapter.store.table_schema import TABLE_SCHEMAS, TableSchema


FULL_REBUILD_MARK_KEY = 'cache:full_rebuild_at'

# Mutates the snapshot in place; returns STALE when it cannot be applied safely
_Mutation = Callable[[CacheSnapshot, TableSchema], MutationOutcome]


def cache_key(dataset: Dataset) -> str:
    return f'cache:{dataset.value}'


class CacheManagerImpl(ICacheManager):
    def __init__(
        self,
        *,
        tabular_store: ITabularStore,
        cache_store: ICacheStore,
        ttl_seconds: int = settings.CACHE_TTL_SECONDS,
        chunk_threshold_bytes: int = settings.CACHE_CHUNK_THRESHOLD_BYTES,
        max_chunks: int = settings.CACHE_MAX_CHUNKS,
    ) -> None:
        self.tabular_store = tabular_store
        self.cache_store = cache_store
        self.ttl_seconds = ttl_seconds
        self.codec = ChunkedSnapshotCodec(
            cache_store=cache_store,
            ttl_seconds=ttl_seconds,
            chunk_threshold_bytes=chunk_threshold_bytes,
            max_chunks=max_chunks,
        )
        self.tracer = trace.get_tracer(__name__)
        self._rebuilders: dict[Dataset, Callable[[], Awaitable[CacheSnapshot]]] = {
            Dataset.LESSONS: self.rebuild_lessons,
            Dataset.RESERVATIONS: self.rebuild_reservations,
            Dataset.ROSTER: self.rebuild_roster,
            Dataset.PRICE_MASTER: self.rebuild_price_master,
        }

    async def _load(self, dataset: Dataset) -> Optional[CacheSnapshot]:
        return await self.codec.load(
            key=cache_key(dataset), dataset=dataset, id_column=TABLE_SCHEMAS[dataset].id_column
        )

    # ========== Read-through ==========

    async def get_cached_data(self, *, dataset: Dataset) -> Optional[CacheSnapshot]:
        with self.tracer.start_as_current_span(
            'cache.get_cached_data', attributes={'cache.dataset': dataset.value}
        ) as span:
            snapshot = await self._load(dataset)
            if snapshot is not None:
                span.set_attribute('cache_hit', True)
                return snapshot

            span.set_attribute('cache_hit', False)
            Logger.base.info(f'🔄 [CACHE] {dataset} miss, rebuilding')
            await self.rebuild(dataset=dataset)

            snapshot = await self._load(dataset)
            if snapshot is None:
                Logger.base.warning(f'⚠️ [CACHE] {dataset} still missing after rebuild')
            return snapshot

    # ========== Rebuild ==========

    @Logger.io
    async def rebuild(self, *, dataset: Dataset) -> CacheSnapshot:
        return await self._rebuilders[dataset]()

    async def rebuild_lessons(self) -> CacheSnapshot:
        schema = TABLE_SCHEMAS[Dataset.LESSONS]
        table = await self.tabular_store.read_table(schema.table_name)
        await self._assign_missing_lesson_ids(schema=schema, table=table)
        return await self._write_snapshot(schema=schema, table=table)

    async def rebuild_reservations(self) -> CacheSnapshot:
        schema = TABLE_SCHEMAS[Dataset.RESERVATIONS]
        table = await self.tabular_store.read_table(schema.table_name)
        return await self._write_snapshot(schema=schema, table=table, most_recent_first=True)

    async def rebuild_roster(self) -> CacheSnapshot:
        schema = TABLE_SCHEMAS[Dataset.ROSTER]
        table = await self.tabular_store.read_table(schema.table_name)
        return await self._write_snapshot(schema=schema, table=table)

    async def rebuild_price_master(self) -> CacheSnapshot:
        schema = TABLE_SCHEMAS[Dataset.PRICE_MASTER]
        table = await self.tabular_store.read_table(schema.table_name)
        return await self._write_snapshot(schema=schema, table=table)

    async def rebuild_all(self, *, rebuilt_at: Optional[float] = None) -> list[CacheInfo]:
        with self.tracer.start_as_current_span('cache.rebuild_all'):
            rebuilt = []
            for dataset in Dataset:
                snapshot = await self.rebuild(dataset=dataset)
                rebuilt.append(
                    CacheInfo(
                        dataset=dataset,
                        exists=True,
                        version=snapshot.version,
                        total_rows=snapshot.total_rows,
                        is_chunked=snapshot.is_chunked,
                        total_chunks=snapshot.total_chunks,
                    )
                )
            await self.cache_store.put(
                key=FULL_REBUILD_MARK_KEY,
                payload=orjson.dumps(
                    {'rebuilt_at': time.time() if rebuilt_at is None else rebuilt_at}
                ),
                ttl_seconds=self.ttl_seconds,
            )
            return rebuilt

    async def get_last_full_rebuild_at(self) -> Optional[float]:
        raw = await self.cache_store.get(key=FULL_REBUILD_MARK_KEY)
        if raw is None:
            return None
        try:
            return float(orjson.loads(raw)['rebuilt_at'])
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError):
            return None

    async def _assign_missing_lesson_ids(self, *, schema: TableSchema, table: TableData) -> None:
        """Lessons without an id get a UUID7, written back to the store"""
        header_map = table.header_map()
        position = header_map.get('lesson_id')
        if position is None:
            Logger.base.warning('⚠️ [CACHE] lessons table has no lesson_id column')
            return

        for index, row in enumerate(table.rows):
            if len(row) <= position:
                row.extend([''] * (position + 1 - len(row)))
            if str(row[position] or '').strip():
                continue
            row[position] = str(uuid7())
            await self.tabular_store.write_row(schema.table_name, index, row)
            Logger.base.info(f'🆔 [CACHE] Assigned lesson_id {row[position]} to lessons row {index}')

    async def _write_snapshot(
        self, *, schema: TableSchema, table: TableData, most_recent_first: bool = False
    ) -> CacheSnapshot:
        with self.tracer.start_as_current_span(
            'cache.rebuild', attributes={'cache.dataset': schema.dataset.value}
        ) as span:
            column_map = table.header_map()
            rows = [schema.normalize_row(table.headers, row) for row in table.rows]
            if most_recent_first:
                rows = self._sort_most_recent_first(rows, column_map)

            key = cache_key(schema.dataset)
            snapshot = CacheSnapshot(
                dataset=schema.dataset,
                version=await self._next_version(key),
                column_map=column_map,
                rows=rows,
                id_index=build_id_index(rows, column_map, schema.id_column),
            )

            total_chunks = await self.codec.save(key=key, snapshot=snapshot)
            span.set_attribute('cache.rows', snapshot.total_rows)
            if total_chunks is None:
                Logger.base.warning(
                    f'⚠️ [CACHE] {schema.dataset} rebuilt ({snapshot.total_rows} rows) but not cached'
                )
                return snapshot

            Logger.base.info(
                f'✅ [CACHE] {schema.dataset} rebuilt: {snapshot.total_rows} rows, '
                f'version {snapshot.version}'
            )
            return attrs.evolve(snapshot, is_chunked=total_chunks > 0, total_chunks=total_chunks)

    @staticmethod
    def _sort_most_recent_first(
        rows: list[list[Any]], column_map: dict[str, int]
    ) -> list[list[Any]]:
        date_position = column_map.get('date')
        created_position = column_map.get('created_at')
        if date_position is None:
            return rows

        def sort_key(row: list[Any]) -> tuple[str, str]:
            created = row[created_position] if created_position is not None else ''
            return (str(row[date_position]), str(created))

        return sorted(rows, key=sort_key, reverse=True)

    async def _next_version(self, key: str) -> int:
        """Wall-clock millis, but never below the current version + 1"""
        metadata = await self.codec.read_metadata(key=key)
        current = int(metadata.get('version', 0)) if metadata else 0
        return max(int(time.time() * 1000), current + 1)

    # ========== Incremental mutators ==========

    async def _mutate(
        self, *, dataset: Dataset, operation: str, mutation: _Mutation
    ) -> MutationOutcome:
        with self.tracer.start_as_current_span(
            f'cache.{operation}', attributes={'cache.dataset': dataset.value}
        ) as span:
            try:
                snapshot = await self._load(dataset)
                if snapshot is None:
                    outcome = MutationOutcome.STALE
                else:
                    outcome = mutation(snapshot, TABLE_SCHEMAS[dataset])
                    if outcome is MutationOutcome.APPLIED:
                        snapshot.version += 1
                        if await self.codec.save(key=cache_key(dataset), snapshot=snapshot) is None:
                            outcome = MutationOutcome.ERROR
            except Exception as e:
                Logger.base.error(f'❌ [CACHE] {operation} on {dataset} failed: {e}')
                outcome = MutationOutcome.ERROR

            span.set_attribute('cache.outcome', outcome.value)
            if outcome is not MutationOutcome.APPLIED:
                Logger.base.info(f'🔁 [CACHE] {operation} on {dataset}: {outcome}')
            return outcome

    @staticmethod
    def _locate(snapshot: CacheSnapshot, schema: TableSchema, record_id: str) -> Optional[int]:
        """Row position of ``record_id``, or None if the index cannot be trusted"""
        if schema.id_column is None or schema.id_column not in snapshot.column_map:
            return None
        index = snapshot.id_index.get(record_id)
        if index is None or index >= len(snapshot.rows):
            return None
        row = snapshot.rows[index]
        position = snapshot.column_map[schema.id_column]
        if position >= len(row) or str(row[position]) != record_id:
            return None
        return index

    @staticmethod
    def _set_cells(
        snapshot: CacheSnapshot, schema: TableSchema, index: int, record: Mapping[str, Any]
    ) -> MutationOutcome:
        if any(column not in snapshot.column_map for column in record):
            return MutationOutcome.STALE
        row = snapshot.rows[index]
        if len(row) < snapshot.width:
            row.extend([''] * (snapshot.width - len(row)))
        for column, value in record.items():
            row[snapshot.column_map[column]] = schema.normalize_cell(column, value)
        return MutationOutcome.APPLIED

    @Logger.io
    async def append_row(self, *, dataset: Dataset, record: Mapping[str, Any]) -> MutationOutcome:
        def mutation(snapshot: CacheSnapshot, schema: TableSchema) -> MutationOutcome:
            id_column = schema.id_column
            if id_column is None or id_column not in snapshot.column_map:
                return MutationOutcome.STALE
            record_id = str(record.get(id_column, ''))
            if not record_id or record_id in snapshot.id_index:
                return MutationOutcome.STALE
            if any(column not in snapshot.column_map for column in record):
                return MutationOutcome.STALE

            snapshot.rows.append([''] * snapshot.width)
            index = len(snapshot.rows) - 1
            snapshot.id_index[record_id] = index
            return self._set_cells(snapshot, schema, index, record)

        return await self._mutate(dataset=dataset, operation='append_row', mutation=mutation)

    @Logger.io
    async def patch_status(
        self, *, dataset: Dataset, record_id: str, status: str
    ) -> MutationOutcome:
        return await self.patch_column(
            dataset=dataset, record_id=record_id, column='status', value=status
        )

    @Logger.io
    async def patch_column(
        self, *, dataset: Dataset, record_id: str, column: str, value: Any
    ) -> MutationOutcome:
        def mutation(snapshot: CacheSnapshot, schema: TableSchema) -> MutationOutcome:
            index = self._locate(snapshot, schema, record_id)
            if index is None:
                return MutationOutcome.STALE
            return self._set_cells(snapshot, schema, index, {column: value})

        return await self._mutate(dataset=dataset, operation='patch_column', mutation=mutation)

    @Logger.io
    async def patch_row(
        self, *, dataset: Dataset, record_id: str, record: Mapping[str, Any]
    ) -> MutationOutcome:
        def mutation(snapshot: CacheSnapshot, schema: TableSchema) -> MutationOutcome:
            index = self._locate(snapshot, schema, record_id)
            if index is None:
                return MutationOutcome.STALE
            if schema.id_column and str(record.get(schema.id_column, record_id)) != record_id:
                return MutationOutcome.STALE
            return self._set_cells(snapshot, schema, index, record)

        return await self._mutate(dataset=dataset, operation='patch_row', mutation=mutation)

    # ========== Diagnostics ==========

    async def get_cache_info(self, *, dataset: Dataset) -> CacheInfo:
        metadata = await self.codec.read_metadata(key=cache_key(dataset))
        if metadata is None:
            return CacheInfo(dataset=dataset, exists=False)
        is_chunked = bool(metadata.get('is_chunked'))
        total_rows = metadata.get('total_rows')
        if total_rows is None:
            total_rows = len(metadata.get('rows') or [])
        return CacheInfo(
            dataset=dataset,
            exists=True,
            version=metadata.get('version'),
            total_rows=int(total_rows),
            is_chunked=is_chunked,
            total_chunks=int(metadata.get('total_chunks', 0)) if is_chunked else 0,
        )

    async def get_all_cache_info(self) -> list[CacheInfo]:
        return [await self.get_cache_info(dataset=dataset) for dataset in Dataset]
