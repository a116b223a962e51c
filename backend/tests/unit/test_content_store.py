from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from callhub.infra import postgres as pg_pool
from callhub.infra.postgres import init_pool
from callhub.moderation.domain.exceptions import ConflictError, StoreError
from callhub.moderation.domain.models import Collection, utcnow
from callhub.moderation.domain.store import InMemoryContentStore, matches
from callhub.moderation.infra.postgres_store import PostgresContentStore, build_where
from callhub.obs import metrics
from callhub.settings import settings


def test_matches_treats_sequences_as_membership():
    row = {"status": None, "kind": "chant"}
    assert matches(row, {"status": ("pending", None)})
    assert not matches(row, {"status": ("pending",)})
    assert matches(row, {"kind": "chant"})
    assert matches(row, None)


@pytest.mark.asyncio
async def test_memory_store_crud_and_ordering():
    store = InMemoryContentStore()
    now = utcnow()
    old = await store.insert(Collection.REPLIES, {"content": "a", "response": "x", "created_at": now - timedelta(hours=1)})
    new = await store.insert(Collection.REPLIES, {"content": "b", "response": "y", "created_at": now})

    assert [row["id"] for row in await store.query(Collection.REPLIES)] == [new, old]
    assert [row["id"] for row in await store.query(Collection.REPLIES, descending=False)] == [old, new]
    assert [row["id"] for row in await store.query(Collection.REPLIES, limit=1)] == [new]

    updated = await store.update(Collection.REPLIES, old, {"response": "z"})
    assert updated["response"] == "z"
    assert await store.update(Collection.REPLIES, "missing", {"response": "z"}) is None

    assert await store.delete(Collection.REPLIES, old) is True
    assert await store.delete(Collection.REPLIES, old) is False
    assert await store.count(Collection.REPLIES) == 1


@pytest.mark.asyncio
async def test_memory_store_returns_copies():
    store = InMemoryContentStore()
    record_id = await store.insert(Collection.BULLETIN_POSTS, {"images": ["a.png"]})

    row = await store.get(Collection.BULLETIN_POSTS, record_id)
    row["images"].append("b.png")

    assert (await store.get(Collection.BULLETIN_POSTS, record_id))["images"] == ["a.png"]


@pytest.mark.asyncio
async def test_memory_store_enforces_bookmark_uniqueness():
    store = InMemoryContentStore()
    await store.insert(Collection.BOOKMARKS, {"user_id": "u", "chant_id": "c", "category": "practice"})
    # a different target column does not collide
    await store.insert(Collection.BOOKMARKS, {"user_id": "u", "call_chart_id": "c", "category": "practice"})

    with pytest.raises(ConflictError):
        await store.insert(Collection.BOOKMARKS, {"user_id": "u", "chant_id": "c", "category": "favorite"})
    assert await store.count(Collection.BOOKMARKS) == 2


@pytest.mark.asyncio
async def test_memory_store_fault_injection_fires_once():
    store = InMemoryContentStore()
    store.inject_failure(Collection.SONGS, "insert")

    with pytest.raises(StoreError):
        await store.insert(Collection.SONGS, {"title": "x"})
    assert await store.insert(Collection.SONGS, {"title": "x"})


def test_build_where_handles_null_membership():
    where, params = build_where(Collection.REPORTS, {"status": ("pending", None), "target_type": "chant"})

    assert where == " WHERE (status = ANY($1) OR status IS NULL) AND target_type = $2"
    assert params == [["pending"], "chant"]


def test_build_where_rejects_unknown_columns():
    with pytest.raises(ValueError):
        build_where(Collection.REPORTS, {"status; DROP TABLE reports": "x"})


def _pool() -> MagicMock:
    pool = MagicMock()
    pool.fetchval = AsyncMock()
    pool.fetchrow = AsyncMock()
    pool.fetch = AsyncMock(return_value=[])
    pool.execute = AsyncMock()
    return pool


@pytest.mark.asyncio
async def test_postgres_store_insert_builds_parameterised_query():
    pool = _pool()
    pool.fetchval.return_value = "art-1"
    store = PostgresContentStore(pool)

    record_id = await store.insert(Collection.ARTISTS, {"id": "art-1", "name": "Band", "reading": None})

    assert record_id == "art-1"
    query, *args = pool.fetchval.await_args.args
    assert query == "INSERT INTO artists (id, name, reading) VALUES ($1, $2, $3) RETURNING id"
    assert args == ["art-1", "Band", None]


@pytest.mark.asyncio
async def test_postgres_store_query_orders_and_limits():
    pool = _pool()
    store = PostgresContentStore(pool)

    await store.query(Collection.SUBMISSIONS, {"kind": "chant", "status": "pending"}, limit=10)

    query, *args = pool.fetch.await_args.args
    assert query == (
        "SELECT * FROM submissions WHERE kind = $1 AND status = $2 ORDER BY created_at DESC LIMIT $3"
    )
    assert args == ["chant", "pending", 10]


@pytest.mark.asyncio
async def test_postgres_store_delete_reports_missing_rows():
    pool = _pool()
    pool.execute.side_effect = ["DELETE 1", "DELETE 0"]
    store = PostgresContentStore(pool)

    assert await store.delete(Collection.SUBMISSIONS, "s1") is True
    assert await store.delete(Collection.SUBMISSIONS, "s1") is False


@pytest.mark.asyncio
async def test_postgres_store_translates_unique_violation():
    pool = _pool()
    pool.fetchval.side_effect = asyncpg.UniqueViolationError("duplicate key value")
    store = PostgresContentStore(pool)

    with pytest.raises(ConflictError):
        await store.insert(Collection.BOOKMARKS, {"user_id": "u", "chant_id": "c", "category": "practice"})


@pytest.mark.asyncio
async def test_postgres_store_wraps_driver_errors_with_cause():
    pool = _pool()
    pool.fetchrow.side_effect = ConnectionRefusedError("connection refused")
    store = PostgresContentStore(pool)
    before = metrics.STORE_ERRORS_TOTAL.labels(collection="submissions", op="get")._value.get()

    with pytest.raises(StoreError) as excinfo:
        await store.get(Collection.SUBMISSIONS, "s1")

    assert "connection refused" in excinfo.value.cause
    assert metrics.STORE_ERRORS_TOTAL.labels(collection="submissions", op="get")._value.get() == before + 1


def test_build_where_mixes_values_and_null():
    where, params = build_where(Collection.REPLIES, {"category": ("other", "", None)})

    assert where == " WHERE (category = ANY($1) OR category IS NULL)"
    assert params == [["other", ""]]


@pytest.mark.asyncio
async def test_init_pool_passes_configured_dsn_through(monkeypatch):
    created = {}
    pool = _pool()

    async def fake_create_pool(**kwargs):
        created.update(kwargs)
        return pool

    monkeypatch.setattr(asyncpg, "create_pool", fake_create_pool)
    monkeypatch.setattr(settings, "postgres_url", "postgresql://callhub:pw@localhost:5432/callhub")
    pg_pool.set_pool(None)
    try:
        assert await init_pool() is pool
    finally:
        pg_pool.set_pool(None)

    assert created["dsn"] == "postgresql://callhub:pw@localhost:5432/callhub"
    assert created["min_size"] == settings.postgres_min_pool_size
