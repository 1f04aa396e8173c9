import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from hauzflow.domain.chat import InMemoryChatRepository
from hauzflow.domain.realtime import InMemoryConnectionRegistry, RedisConnectionRegistry
from hauzflow.infra import postgres
from hauzflow.main import create_app
from hauzflow.settings import settings


class RecordingTransport:
	"""Transport double that keeps every unicast and broadcast in order."""

	def __init__(self) -> None:
		self.delivered: List[Tuple[str, str, Dict[str, Any]]] = []
		self.broadcasts: List[Tuple[str, Dict[str, Any], Optional[str]]] = []
		self.fail_deliveries = False
		self.fail_broadcasts = False

	async def deliver(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None:
		if self.fail_deliveries:
			raise ConnectionError("socket closed")
		self.delivered.append((connection_id, event, payload))

	async def broadcast(self, event: str, payload: Dict[str, Any], *, skip: Optional[str] = None) -> None:
		if self.fail_broadcasts:
			raise ConnectionError("socket closed")
		self.broadcasts.append((event, payload, skip))


class UnreachableRegistry:
	"""Registry double whose backend is down, like Redis refusing connections."""

	async def announce(self, connection_id, user_id):
		raise ConnectionError("redis down")

	async def lookup(self, user_id):
		raise ConnectionError("redis down")

	async def remove_by_connection(self, connection_id):
		raise ConnectionError("redis down")

	async def online_users(self):
		raise ConnectionError("redis down")

	async def count(self):
		raise ConnectionError("redis down")


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from hauzflow.infra.redis import redis_client, set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Keep every test on the in-process backends regardless of the local .env."""
	original = (settings.environment, settings.chat_store, settings.realtime_registry)
	settings.environment = "dev"
	settings.chat_store = "memory"
	settings.realtime_registry = "memory"
	try:
		yield
	finally:
		settings.environment, settings.chat_store, settings.realtime_registry = original


@pytest.fixture
def transport() -> RecordingTransport:
	return RecordingTransport()


@pytest.fixture
def unreachable_registry() -> UnreachableRegistry:
	return UnreachableRegistry()


@pytest.fixture(params=["memory", "redis"])
def registry(request, fake_redis):
	"""Each registry backend, so hub flows run against both."""
	if request.param == "redis":
		return RedisConnectionRegistry(fake_redis, key_prefix="test:hub")
	return InMemoryConnectionRegistry()


@pytest.fixture
def chat_repo() -> InMemoryChatRepository:
	repo = InMemoryChatRepository()
	repo.add_user(1, "ana@acme.test", role="admin", company_id=10)
	repo.add_user(2, "ben@acme.test", role="member", company_id=10)
	repo.add_user(3, "cy@acme.test", role="member", company_id=10)
	repo.add_user(4, "dee@other.test", role="member", company_id=20)
	return repo


@pytest.fixture
def app(chat_repo):
	return create_app(chat_repository=chat_repo)


@pytest_asyncio.fixture
async def api_client(app):
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
