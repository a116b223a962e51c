"""Apply the SQL files under ``backend/migrations`` in name order.

Usage: ``python -m callhub.infra.migrations [migration_filename ...]``
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence

import asyncpg

from callhub.infra import postgres

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"


def migration_files(directory: Path = MIGRATIONS_DIR, only: Optional[Iterable[str]] = None) -> list[Path]:
	if not directory.is_dir():
		raise FileNotFoundError(f"migrations directory not found: {directory}")
	files = sorted(path for path in directory.iterdir() if path.suffix == ".sql")
	if only is None:
		return files
	wanted = list(only)
	by_name = {path.name: path for path in files}
	missing = [name for name in wanted if name not in by_name]
	if missing:
		raise FileNotFoundError(f"migration file not found: {', '.join(missing)}")
	return [by_name[name] for name in wanted]


async def apply_migrations(pool: asyncpg.Pool, files: Sequence[Path]) -> list[str]:
	"""Run each file in its own transaction; stop at the first failure."""
	applied: list[str] = []
	async with pool.acquire() as conn:
		for path in files:
			logger.info("applying migration", extra={"migration": path.name})
			async with conn.transaction():
				await conn.execute(path.read_text(encoding="utf-8"))
			applied.append(path.name)
	return applied


async def main(argv: Sequence[str]) -> None:
	files = migration_files(only=argv or None)
	pool = await postgres.init_pool()
	try:
		applied = await apply_migrations(pool, files)
	finally:
		await postgres.close_pool()
	logger.info("migrations applied", extra={"count": len(applied)})


if __name__ == "__main__":
	logging.basicConfig(level=logging.INFO)
	asyncio.run(main(sys.argv[1:]))
