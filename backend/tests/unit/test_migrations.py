from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from callhub.infra.migrations import MIGRATIONS_DIR, apply_migrations, migration_files


class FakePool:
    def __init__(self, conn) -> None:
        self.conn = conn

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


def _conn(execute=None) -> MagicMock:
    conn = MagicMock()
    conn.execute = execute or AsyncMock()
    conn.transactions = 0

    @asynccontextmanager
    async def transaction():
        conn.transactions += 1
        yield

    conn.transaction = transaction
    return conn


def test_shipped_migrations_are_found():
    assert "0001_callhub_core.sql" in [path.name for path in migration_files(MIGRATIONS_DIR)]


def test_migration_files_sorted_and_selectable(tmp_path):
    (tmp_path / "0002_b.sql").write_text("SELECT 2;")
    (tmp_path / "0001_a.sql").write_text("SELECT 1;")
    (tmp_path / "notes.txt").write_text("ignored")

    assert [path.name for path in migration_files(tmp_path)] == ["0001_a.sql", "0002_b.sql"]
    assert [path.name for path in migration_files(tmp_path, only=["0002_b.sql"])] == ["0002_b.sql"]
    with pytest.raises(FileNotFoundError):
        migration_files(tmp_path, only=["0003_missing.sql"])


@pytest.mark.asyncio
async def test_apply_migrations_runs_each_file_in_a_transaction(tmp_path):
    (tmp_path / "0001_a.sql").write_text("SELECT 1;")
    (tmp_path / "0002_b.sql").write_text("SELECT 2;")
    conn = _conn()

    applied = await apply_migrations(FakePool(conn), migration_files(tmp_path))

    assert applied == ["0001_a.sql", "0002_b.sql"]
    assert [call.args[0] for call in conn.execute.await_args_list] == ["SELECT 1;", "SELECT 2;"]
    assert conn.transactions == 2


@pytest.mark.asyncio
async def test_apply_migrations_stops_at_first_failure(tmp_path):
    (tmp_path / "0001_a.sql").write_text("broken")
    (tmp_path / "0002_b.sql").write_text("SELECT 2;")
    conn = _conn(AsyncMock(side_effect=RuntimeError("syntax error")))

    with pytest.raises(RuntimeError):
        await apply_migrations(FakePool(conn), migration_files(tmp_path))

    assert conn.execute.await_count == 1
