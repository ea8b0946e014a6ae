import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from concorde.domain.channels import ChannelsService
from concorde.domain.friends import FriendsService
from concorde.domain.servers import ServersService
from concorde.domain.users import UsersService
from concorde.infra.auth import ActorContext
from concorde.main import app
from concorde.settings import settings
from concorde.store import USERS, MemoryStore


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	API tests authenticate via the X-User-Id header, which is only accepted
	in dev mode.
	"""
	original_env = settings.environment
	original_attempts = settings.union_update_attempts
	settings.environment = "dev"
	settings.union_update_attempts = 5
	try:
		yield
	finally:
		settings.environment = original_env
		settings.union_update_attempts = original_attempts


@pytest.fixture
def store() -> MemoryStore:
	return MemoryStore()


@pytest.fixture
def friends_service(store) -> FriendsService:
	return FriendsService(store=store)


@pytest.fixture
def servers_service(store) -> ServersService:
	return ServersService(store=store)


@pytest.fixture
def channels_service(store) -> ChannelsService:
	return ChannelsService(store=store)


@pytest.fixture
def users_service(store) -> UsersService:
	return UsersService(store=store)


async def create_user(store: MemoryStore, username: str, **extra) -> ActorContext:
	fields = {
		"username": username,
		"email": f"{username}@example.com",
		"name": username.title(),
		"friends": [],
	}
	fields.update(extra)
	record = await store.collection(USERS).create(fields)
	return ActorContext(id=record["id"], username=username)


@pytest_asyncio.fixture
async def alice(store) -> ActorContext:
	return await create_user(store, "alice")


@pytest_asyncio.fixture
async def bob(store) -> ActorContext:
	return await create_user(store, "bob")


@pytest_asyncio.fixture
async def carol(store) -> ActorContext:
	return await create_user(store, "carol")


def auth_headers(actor: ActorContext) -> dict[str, str]:
	return {"X-User-Id": actor.id}


@pytest_asyncio.fixture
async def api_client(store):
	app.state.store = store
	transport = ASGITransport(app=app)
	try:
		async with AsyncClient(transport=transport, base_url="http://testserver") as client:
			yield client
	finally:
		app.state.store = None
