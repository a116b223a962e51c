"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from callhub.api import ops
from callhub.api.errors import install_error_handlers
from callhub.infra import postgres
from callhub.moderation.api import router as moderation_router
from callhub.moderation.domain.container import configure as configure_moderation
from callhub.moderation.domain.container import configure_postgres as configure_moderation_postgres
from callhub.moderation.domain.store import InMemoryContentStore
from callhub.obs import init as obs_init
from callhub.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.content_store == "postgres":
		pool = await postgres.init_pool()
		configure_moderation_postgres(pool)
	else:
		configure_moderation(store=InMemoryContentStore())
	logger.info(
		"callhub started",
		extra={"content_store": settings.content_store, "environment": settings.environment},
	)
	try:
		yield
	finally:
		if settings.content_store == "postgres":
			await postgres.close_pool()


app = FastAPI(title="callhub", lifespan=lifespan)

if settings.cors_allow_origins:
	app.add_middleware(
		CORSMiddleware,
		allow_origins=list(settings.cors_allow_origins),
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)

obs_init(app)
install_error_handlers(app)

app.include_router(ops.router)
app.include_router(moderation_router)
