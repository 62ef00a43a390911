"""
Chunked Snapshot Codec

Writes a snapshot under one key when it fits below the chunk threshold;
otherwise splits the rows into ordered chunks ``{key}#0 .. {key}#N-1``
followed by a metadata record under ``{key}``:

    {version, total_rows, total_chunks, column_map, is_chunked: true}

Reads reassemble chunks in index order. A missing chunk, or a chunk whose
version differs from the metadata, is a full miss - never partial data.
"""

from typing import Any, Optional

import orjson

from src.platform.logging.loguru_io import Logger
from src.platform.state.i_cache_store import ICacheStore
from src.service.reservation.app.dto import CacheSnapshot, Dataset


# Row-size estimation: sample at most 10% of rows, capped at 50
_SAMPLE_RATIO = 10
_MAX_SAMPLE_ROWS = 50
_SAFETY_MARGIN = 0.8


def chunk_key(key: str, index: int) -> str:
    return f'{key}#{index}'


def build_id_index(
    rows: list[list[Any]], column_map: dict[str, int], id_column: Optional[str]
) -> dict[str, int]:
    if id_column is None or id_column not in column_map:
        return {}
    position = column_map[id_column]
    index: dict[str, int] = {}
    for row_index, row in enumerate(rows):
        if position < len(row) and str(row[position]).strip():
            index[str(row[position])] = row_index
    return index


class ChunkedSnapshotCodec:
    def __init__(
        self,
        *,
        cache_store: ICacheStore,
        ttl_seconds: int,
        chunk_threshold_bytes: int,
        max_chunks: int,
    ) -> None:
        self.cache_store = cache_store
        self.ttl_seconds = ttl_seconds
        self.chunk_threshold_bytes = chunk_threshold_bytes
        self.max_chunks = max_chunks

    def split_rows(self, rows: list[list[Any]]) -> list[list[list[Any]]]:
        """
        Partition rows into ordered chunks under the threshold.

        Rows per chunk is estimated from a sample, then any chunk still over
        the threshold is halved until it fits (or holds a single row).
        """
        if not rows:
            return [[]]

        sample_size = max(1, min(_MAX_SAMPLE_ROWS, len(rows) // _SAMPLE_RATIO))
        average_row_bytes = max(1.0, len(orjson.dumps(rows[:sample_size])) / sample_size)
        rows_per_chunk = max(
            1, int(self.chunk_threshold_bytes / average_row_bytes * _SAFETY_MARGIN)
        )

        chunks: list[list[list[Any]]] = []
        for start in range(0, len(rows), rows_per_chunk):
            chunks.extend(self._halve_oversized(rows[start : start + rows_per_chunk]))
        return chunks

    def _halve_oversized(self, rows: list[list[Any]]) -> list[list[list[Any]]]:
        if len(rows) <= 1 or len(orjson.dumps(rows)) <= self.chunk_threshold_bytes:
            return [rows]
        middle = len(rows) // 2
        return self._halve_oversized(rows[:middle]) + self._halve_oversized(rows[middle:])

    async def save(self, *, key: str, snapshot: CacheSnapshot) -> Optional[int]:
        """
        Returns:
            0 when stored inline, the chunk count when chunked, None on write failure
        """
        payload = orjson.dumps(
            {
                'version': snapshot.version,
                'column_map': snapshot.column_map,
                'rows': snapshot.rows,
                'total_rows': snapshot.total_rows,
                'id_index': snapshot.id_index,
                'is_chunked': False,
            }
        )
        if len(payload) <= self.chunk_threshold_bytes:
            if await self.cache_store.put(key=key, payload=payload, ttl_seconds=self.ttl_seconds):
                return 0
            Logger.base.warning(f'⚠️ [CACHE] Failed to write {key} ({len(payload)} bytes)')
            return None

        chunks = self.split_rows(snapshot.rows)
        if len(chunks) > self.max_chunks:
            Logger.base.error(
                f'❌ [CACHE] {key} needs {len(chunks)} chunks (max {self.max_chunks}), not cached'
            )
            return None

        for index, rows in enumerate(chunks):
            chunk_payload = orjson.dumps(
                {'version': snapshot.version, 'index': index, 'rows': rows}
            )
            if not await self.cache_store.put(
                key=chunk_key(key, index), payload=chunk_payload, ttl_seconds=self.ttl_seconds
            ):
                Logger.base.warning(f'⚠️ [CACHE] Failed to write chunk {index} of {key}')
                return None

        # Metadata goes last so readers never see it before its chunks
        metadata = orjson.dumps(
            {
                'version': snapshot.version,
                'total_rows': snapshot.total_rows,
                'total_chunks': len(chunks),
                'column_map': snapshot.column_map,
                'is_chunked': True,
            }
        )
        if not await self.cache_store.put(key=key, payload=metadata, ttl_seconds=self.ttl_seconds):
            Logger.base.warning(f'⚠️ [CACHE] Failed to write metadata of {key}')
            return None

        Logger.base.info(
            f'📦 [CACHE] {key} stored in {len(chunks)} chunks ({snapshot.total_rows} rows)'
        )
        return len(chunks)

    async def read_metadata(self, *, key: str) -> Optional[dict[str, Any]]:
        raw = await self.cache_store.get(key=key)
        if raw is None:
            return None
        try:
            metadata = orjson.loads(raw)
        except orjson.JSONDecodeError:
            Logger.base.warning(f'⚠️ [CACHE] Undecodable payload under {key}')
            return None
        return metadata if isinstance(metadata, dict) else None

    async def load(
        self, *, key: str, dataset: Dataset, id_column: Optional[str]
    ) -> Optional[CacheSnapshot]:
        metadata = await self.read_metadata(key=key)
        if metadata is None:
            return None

        try:
            if not metadata.get('is_chunked'):
                return CacheSnapshot(
                    dataset=dataset,
                    version=int(metadata['version']),
                    column_map=dict(metadata['column_map']),
                    rows=list(metadata['rows']),
                    id_index=dict(metadata.get('id_index') or {}),
                )
            return await self._load_chunked(
                key=key, dataset=dataset, id_column=id_column, metadata=metadata
            )
        except (KeyError, TypeError, ValueError) as e:
            Logger.base.warning(f'⚠️ [CACHE] Malformed snapshot under {key}: {e}')
            return None

    async def _load_chunked(
        self,
        *,
        key: str,
        dataset: Dataset,
        id_column: Optional[str],
        metadata: dict[str, Any],
    ) -> Optional[CacheSnapshot]:
        version = int(metadata['version'])
        total_chunks = int(metadata['total_chunks'])
        rows: list[list[Any]] = []

        for index in range(total_chunks):
            raw = await self.cache_store.get(key=chunk_key(key, index))
            if raw is None:
                Logger.base.warning(f'⚠️ [CACHE] Chunk {index} of {key} missing')
                return None
            chunk = orjson.loads(raw)
            if chunk.get('version') != version:
                Logger.base.warning(
                    f'⚠️ [CACHE] Chunk {index} of {key} is version {chunk.get("version")}, '
                    f'expected {version}'
                )
                return None
            rows.extend(chunk['rows'])

        if len(rows) != int(metadata['total_rows']):
            Logger.base.warning(
                f'⚠️ [CACHE] {key} reassembled {len(rows)} rows, expected {metadata["total_rows"]}'
            )
            return None

        column_map = dict(metadata['column_map'])
        return CacheSnapshot(
            dataset=dataset,
            version=version,
            column_map=column_map,
            rows=rows,
            id_index=build_id_index(rows, column_map, id_column),
            is_chunked=True,
            total_chunks=total_chunks,
        )
