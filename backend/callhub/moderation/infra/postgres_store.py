"""PostgreSQL implementation of the content store."""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping

import asyncpg

from callhub.moderation.domain.exceptions import ConflictError, StoreError
from callhub.moderation.domain.models import Collection
from callhub.moderation.domain.store import ContentStore, Filter, Record
from callhub.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

# table columns writable or filterable per collection; identifiers are never
# taken from callers verbatim
COLUMNS: Mapping[Collection, frozenset[str]] = {
    Collection.ARTISTS: frozenset({"id", "name", "reading", "profile_url", "created_at"}),
    Collection.SONGS: frozenset(
        {"id", "title", "artist_id", "youtube_url", "apple_music_url", "amazon_music_url", "created_at"}
    ),
    Collection.CHANT_TEMPLATES: frozenset(
        {
            "id",
            "title",
            "content",
            "bars",
            "song_id",
            "reference_url",
            "url",
            "author_id",
            "bookmark_count",
            "created_at",
        }
    ),
    Collection.CALL_CHARTS: frozenset(
        {"id", "song_id", "author_id", "author_name", "title", "comment", "status", "created_at"}
    ),
    Collection.SECTIONS: frozenset(
        {"id", "call_chart_id", "section_name", "content", "chant_id", "order_index", "created_at"}
    ),
    Collection.BULLETIN_POSTS: frozenset(
        {
            "id",
            "owner_id",
            "event_date",
            "event_time",
            "category",
            "group_name",
            "location",
            "status",
            "live_title",
            "description",
            "x_id",
            "images",
            "created_at",
        }
    ),
    Collection.SUBMISSIONS: frozenset(
        {
            "id",
            "kind",
            "status",
            "owner_id",
            "created_at",
            "artist_name",
            "artist_reading",
            "artist_profile_url",
            "song_title",
            "related_artist_id",
            "youtube_url",
            "apple_music_url",
            "amazon_music_url",
            "chant_title",
            "chant_content",
            "chant_bars",
            "measures",
            "reference_url",
            "remarks",
            "song_id",
            "content",
            "category",
        }
    ),
    Collection.REPORTS: frozenset(
        {"id", "reporter_id", "target_type", "target_id", "category", "reason", "details", "status", "created_at"}
    ),
    Collection.REPLIES: frozenset({"id", "content", "response", "category", "created_at"}),
    Collection.BOOKMARKS: frozenset({"id", "user_id", "chant_id", "call_chart_id", "category", "created_at"}),
    Collection.PROFILES: frozenset({"id", "username", "created_at"}),
}


def _columns(collection: Collection, names) -> list[str]:
    allowed = COLUMNS[collection]
    unknown = [name for name in names if name not in allowed]
    if unknown:
        raise ValueError(f"unknown columns for {collection.value}: {', '.join(sorted(unknown))}")
    return list(names)


def _row(record: asyncpg.Record | None) -> Record | None:
    if record is None:
        return None
    row = dict(record)
    for key, value in row.items():
        if isinstance(value, uuid.UUID):
            row[key] = str(value)
    return row


def build_where(collection: Collection, filters: Filter | None, *, start: int = 1) -> tuple[str, list[Any]]:
    """Render ``filters`` as a WHERE clause with positional parameters from ``start``."""
    if not filters:
        return "", []
    clauses: list[str] = []
    params: list[Any] = []
    for column in _columns(collection, filters.keys()):
        expected = filters[column]
        if isinstance(expected, (list, tuple, set, frozenset)):
            values = [value for value in expected if value is not None]
            parts: list[str] = []
            if values:
                params.append(values)
                parts.append(f"{column} = ANY(${start + len(params) - 1})")
            if len(values) != len(expected):
                parts.append(f"{column} IS NULL")
            clauses.append("(" + " OR ".join(parts) + ")" if parts else "FALSE")
        elif expected is None:
            clauses.append(f"{column} IS NULL")
        else:
            params.append(expected)
            clauses.append(f"{column} = ${start + len(params) - 1}")
    return " WHERE " + " AND ".join(clauses), params


class PostgresContentStore(ContentStore):
    """Asyncpg-backed store; one table per collection."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    @asynccontextmanager
    async def _guard(self, collection: Collection, op: str) -> AsyncIterator[None]:
        try:
            yield
        except asyncpg.UniqueViolationError as exc:
            raise ConflictError(collection.value, cause=getattr(exc, "constraint_name", None) or str(exc)) from exc
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            obs_metrics.inc_store_error(collection.value, op)
            logger.error(
                "content store failure",
                extra={"collection": collection.value, "op": op, "cause": str(exc)},
            )
            raise StoreError(collection.value, op, str(exc)) from exc

    async def insert(self, collection: Collection, record: Mapping[str, Any]) -> str:
        collection = Collection(collection)
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        columns = _columns(collection, row.keys())
        placeholders = ", ".join(f"${index}" for index in range(1, len(columns) + 1))
        query = (
            f"INSERT INTO {collection.value} ({', '.join(columns)}) "
            f"VALUES ({placeholders}) RETURNING id"
        )
        async with self._guard(collection, "insert"):
            record_id = await self.pool.fetchval(query, *(row[column] for column in columns))
        return str(record_id)

    async def get(self, collection: Collection, record_id: str) -> Record | None:
        collection = Collection(collection)
        async with self._guard(collection, "get"):
            record = await self.pool.fetchrow(f"SELECT * FROM {collection.value} WHERE id = $1", record_id)
        return _row(record)

    async def update(self, collection: Collection, record_id: str, patch: Mapping[str, Any]) -> Record | None:
        collection = Collection(collection)
        columns = [column for column in _columns(collection, patch.keys()) if column != "id"]
        if not columns:
            return await self.get(collection, record_id)
        assignments = ", ".join(f"{column} = ${index}" for index, column in enumerate(columns, start=2))
        query = f"UPDATE {collection.value} SET {assignments} WHERE id = $1 RETURNING *"
        async with self._guard(collection, "update"):
            record = await self.pool.fetchrow(query, record_id, *(patch[column] for column in columns))
        return _row(record)

    async def delete(self, collection: Collection, record_id: str) -> bool:
        collection = Collection(collection)
        async with self._guard(collection, "delete"):
            status = await self.pool.execute(f"DELETE FROM {collection.value} WHERE id = $1", record_id)
        # asyncpg returns the command tag, e.g. "DELETE 1"
        return status.split()[-1] != "0"

    async def query(
        self,
        collection: Collection,
        filters: Filter | None = None,
        *,
        order_by: str | None = "created_at",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Record]:
        collection = Collection(collection)
        where, params = build_where(collection, filters)
        query = f"SELECT * FROM {collection.value}{where}"
        if order_by:
            _columns(collection, [order_by])
            query += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            params.append(int(limit))
            query += f" LIMIT ${len(params)}"
        async with self._guard(collection, "query"):
            records = await self.pool.fetch(query, *params)
        return [_row(record) for record in records]

    async def count(self, collection: Collection, filters: Filter | None = None) -> int:
        collection = Collection(collection)
        where, params = build_where(collection, filters)
        async with self._guard(collection, "count"):
            total = await self.pool.fetchval(f"SELECT COUNT(*) FROM {collection.value}{where}", *params)
        return int(total or 0)

    async def ping(self) -> None:
        async with self._guard(Collection.SUBMISSIONS, "ping"):
            await self.pool.fetchval("SELECT 1")
