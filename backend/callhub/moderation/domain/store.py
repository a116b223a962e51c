"""Storage contract for the content store and its in-memory fallback."""

from __future__ import annotations

import asyncio
import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping, Protocol

from callhub.moderation.domain.exceptions import ConflictError, StoreError
from callhub.moderation.domain.models import Collection, utcnow

Record = dict[str, Any]
Filter = Mapping[str, Any]

# column tuples that must stay unique per collection; rows with a null in
# any of the columns are exempt, matching partial unique indexes in postgres
UNIQUE_KEYS: Mapping[Collection, tuple[tuple[str, ...], ...]] = {
    Collection.BOOKMARKS: (("user_id", "chant_id"), ("user_id", "call_chart_id")),
}


class ContentStore(Protocol):
    """Abstract persistence layer for every collection the pipeline touches.

    Filters are column equality maps. A list, tuple or set value matches any of
    its members; a ``None`` member also matches rows where the column is null.
    Every call may suspend and may raise :class:`StoreError`.
    """

    async def insert(self, collection: Collection, record: Mapping[str, Any]) -> str:
        """Insert a record and return its id. Raises ConflictError on unique violations."""

    async def get(self, collection: Collection, record_id: str) -> Record | None:
        """Fetch a record by id."""

    async def update(self, collection: Collection, record_id: str, patch: Mapping[str, Any]) -> Record | None:
        """Apply ``patch`` to a record. Returns the updated record, or None when absent."""

    async def delete(self, collection: Collection, record_id: str) -> bool:
        """Delete a record. Deleting an absent id succeeds and returns False."""

    async def query(
        self,
        collection: Collection,
        filters: Filter | None = None,
        *,
        order_by: str | None = "created_at",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Record]:
        """List records matching ``filters``."""

    async def count(self, collection: Collection, filters: Filter | None = None) -> int:
        """Count records matching ``filters``."""

    async def ping(self) -> None:
        """Raise StoreError when the backend is unreachable."""


def matches(record: Mapping[str, Any], filters: Filter | None) -> bool:
    if not filters:
        return True
    for column, expected in filters.items():
        actual = record.get(column)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


def _sort_key(value: Any) -> tuple[int, Any]:
    # nulls sort last in ascending order, like postgres
    return (1, "") if value is None else (0, value)


@dataclass
class InMemoryContentStore(ContentStore):
    """Dictionary-backed store used in development and tests.

    Each operation yields to the event loop once so interleavings between
    concurrent callers look like they would against a real database.
    """

    tables: MutableMapping[Collection, dict[str, Record]] = field(default_factory=dict)
    fail_on: MutableMapping[tuple[Collection, str], Exception] = field(default_factory=dict)

    def _table(self, collection: Collection) -> dict[str, Record]:
        return self.tables.setdefault(Collection(collection), {})

    def inject_failure(self, collection: Collection, op: str, exc: Exception | None = None) -> None:
        """Make the next ``op`` on ``collection`` raise. Used for fault injection."""
        self.fail_on[(Collection(collection), op)] = exc or StoreError(Collection(collection).value, op, "injected")

    def clear_failures(self) -> None:
        self.fail_on.clear()

    async def _enter(self, collection: Collection, op: str) -> None:
        await asyncio.sleep(0)
        exc = self.fail_on.pop((Collection(collection), op), None)
        if exc is not None:
            raise exc

    def _check_unique(self, collection: Collection, candidate: Mapping[str, Any], *, skip_id: str | None = None) -> None:
        for columns in UNIQUE_KEYS.get(collection, ()):
            key = tuple(candidate.get(column) for column in columns)
            if any(part is None for part in key):
                continue
            for record_id, existing in self._table(collection).items():
                if record_id == skip_id:
                    continue
                if tuple(existing.get(column) for column in columns) == key:
                    raise ConflictError(collection.value, cause="+".join(columns))

    async def insert(self, collection: Collection, record: Mapping[str, Any]) -> str:
        collection = Collection(collection)
        await self._enter(collection, "insert")
        row = copy.deepcopy(dict(record))
        row_id = str(row.get("id") or uuid.uuid4())
        if row_id in self._table(collection):
            raise ConflictError(collection.value, cause="id")
        row["id"] = row_id
        row.setdefault("created_at", utcnow())
        self._check_unique(collection, row)
        self._table(collection)[row_id] = row
        return row_id

    async def get(self, collection: Collection, record_id: str) -> Record | None:
        collection = Collection(collection)
        await self._enter(collection, "get")
        row = self._table(collection).get(str(record_id))
        return copy.deepcopy(row) if row is not None else None

    async def update(self, collection: Collection, record_id: str, patch: Mapping[str, Any]) -> Record | None:
        collection = Collection(collection)
        await self._enter(collection, "update")
        row = self._table(collection).get(str(record_id))
        if row is None:
            return None
        candidate = {**row, **dict(patch), "id": row["id"]}
        self._check_unique(collection, candidate, skip_id=row["id"])
        row.update(candidate)
        return copy.deepcopy(row)

    async def delete(self, collection: Collection, record_id: str) -> bool:
        collection = Collection(collection)
        await self._enter(collection, "delete")
        return self._table(collection).pop(str(record_id), None) is not None

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
        await self._enter(collection, "query")
        rows = [row for row in self._table(collection).values() if matches(row, filters)]
        if order_by:
            if descending:
                rows.reverse()
            rows.sort(key=lambda row: _sort_key(row.get(order_by)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(row) for row in rows]

    async def count(self, collection: Collection, filters: Filter | None = None) -> int:
        collection = Collection(collection)
        await self._enter(collection, "count")
        return sum(1 for row in self._table(collection).values() if matches(row, filters))

    async def ping(self) -> None:
        await asyncio.sleep(0)

    def snapshot(self, collection: Collection) -> list[Record]:
        """Synchronous view of a collection for assertions."""
        return [copy.deepcopy(row) for row in self._table(Collection(collection)).values()]

