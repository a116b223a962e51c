"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

from callhub.moderation.domain.container import get_store
from callhub.moderation.domain.exceptions import StoreError
from callhub.settings import settings

LOGGER = logging.getLogger(__name__)


async def _store_status(timeout: float = 0.5) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(get_store().ping(), timeout=timeout)
	except (StoreError, asyncio.TimeoutError) as exc:
		LOGGER.warning("Content store readiness check failed", exc_info=True)
		return {"ok": False, "backend": settings.content_store, "error": str(exc) or "timeout"}
	latency = perf_counter() - start
	return {"ok": True, "backend": settings.content_store, "latency_ms": round(latency * 1000, 2)}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	store_state = await _store_status()
	ok = bool(store_state.get("ok"))
	return (
		200 if ok else 503,
		{
			"status": "ok" if ok else "degraded",
			"checks": {"content_store": store_state},
		},
	)
