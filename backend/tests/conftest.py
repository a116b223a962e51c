import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from callhub.infra import postgres
from callhub.main import app
from callhub.moderation.domain import container
from callhub.moderation.domain.models import Actor
from callhub.moderation.domain.store import InMemoryContentStore
from callhub.settings import settings


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	API tests authenticate via X-User-Id/X-User-Roles headers, which are only
	accepted in dev mode.
	"""
	original_env = settings.environment
	original_store = settings.content_store
	settings.environment = "dev"
	settings.content_store = "memory"
	try:
		yield
	finally:
		settings.environment = original_env
		settings.content_store = original_store


@pytest.fixture(autouse=True)
def store():
	"""Fresh in-memory content store wired into the service container."""
	memory = InMemoryContentStore()
	container.configure(store=memory)
	try:
		yield memory
	finally:
		container.configure()


@pytest.fixture
def user():
	return Actor(id="user-1", role="user")


@pytest.fixture
def other_user():
	return Actor(id="user-2", role="user")


@pytest.fixture
def operator():
	return Actor(id="op-1", role="operator")


@pytest.fixture
def user_headers():
	return {"X-User-Id": "user-1"}


@pytest.fixture
def operator_headers():
	return {"X-User-Id": "op-1", "X-User-Roles": "operator"}


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
