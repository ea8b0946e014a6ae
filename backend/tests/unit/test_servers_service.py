from __future__ import annotations

import pytest

from concorde.domain import models
from concorde.domain.exceptions import (
	AlreadyMemberError,
	ForbiddenError,
	NotFoundError,
	NotMemberError,
	SelfBanError,
	ValidationError,
)
from concorde.settings import settings
from concorde.store import CHANNELS, SERVER_REQUESTS, SERVERS, USERS


async def _join(servers_service, owner, member, server_id):
	request = await servers_service.request_to_join(member, server_id)
	await servers_service.accept_join_request(owner, request.id)


@pytest.mark.asyncio
async def test_create_server_makes_owner_a_member(servers_service, alice):
	server = await servers_service.create_server(alice, "  Guild  ")
	assert server.name == "Guild"
	assert server.owner == alice.id
	assert server.members == [alice.id]
	assert server.channels == []


@pytest.mark.asyncio
async def test_create_server_validates_name(servers_service, alice):
	with pytest.raises(ValidationError) as excinfo:
		await servers_service.create_server(alice, "x")
	assert "name" in excinfo.value.errors


@pytest.mark.asyncio
async def test_update_and_remove_are_owner_only(servers_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	with pytest.raises(ForbiddenError):
		await servers_service.update_server(bob, server.id, models.ServerPatch(name="Mine"))
	with pytest.raises(ForbiddenError):
		await servers_service.remove_server(bob, server.id)
	with pytest.raises(NotFoundError):
		await servers_service.update_server(alice, "missing", models.ServerPatch(name="Mine"))

	renamed = await servers_service.update_server(alice, server.id, models.ServerPatch(name="Renamed"))
	assert renamed.name == "Renamed"


@pytest.mark.asyncio
async def test_join_request_lifecycle(store, servers_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	request = await servers_service.request_to_join(bob, server.id)
	assert (request.from_id, request.to_id) == (bob.id, server.id)

	with pytest.raises(ForbiddenError):
		await servers_service.accept_join_request(bob, request.id)

	await servers_service.accept_join_request(alice, request.id)
	assert (await servers_service.get_server(bob, server.id)).members == [alice.id, bob.id]
	assert store.snapshot(SERVER_REQUESTS) == {}

	with pytest.raises(AlreadyMemberError):
		await servers_service.request_to_join(bob, server.id)
	with pytest.raises(NotFoundError):
		await servers_service.request_to_join(bob, "missing")


@pytest.mark.asyncio
async def test_duplicate_join_requests_are_allowed(store, servers_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	first = await servers_service.request_to_join(bob, server.id)
	second = await servers_service.request_to_join(bob, server.id)

	await servers_service.accept_join_request(alice, first.id)
	await servers_service.accept_join_request(alice, second.id)

	assert (await servers_service.get_server(alice, server.id)).members == [alice.id, bob.id]


@pytest.mark.asyncio
async def test_decline_and_cancel(store, servers_service, alice, bob, carol):
	server = await servers_service.create_server(alice, "Guild")
	declined = await servers_service.request_to_join(bob, server.id)
	cancelled = await servers_service.request_to_join(carol, server.id)

	await servers_service.decline_join_request(alice, declined.id)
	with pytest.raises(ForbiddenError):
		await servers_service.cancel_join_request(bob, cancelled.id)
	await servers_service.cancel_join_request(carol, cancelled.id)

	assert store.snapshot(SERVER_REQUESTS) == {}
	assert (await servers_service.get_server(alice, server.id)).members == [alice.id]
	with pytest.raises(NotFoundError):
		await servers_service.accept_join_request(alice, declined.id)


@pytest.mark.asyncio
async def test_accept_for_deleted_server_drops_request(store, servers_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	request = await servers_service.request_to_join(bob, server.id)
	await store.collection(SERVERS).delete(server.id)

	with pytest.raises(NotFoundError) as excinfo:
		await servers_service.accept_join_request(alice, request.id)
	assert excinfo.value.detail == "server_not_found"
	assert store.snapshot(SERVER_REQUESTS) == {}


@pytest.mark.asyncio
async def test_only_owner_may_decline(store, servers_service, alice, bob, carol):
	server = await servers_service.create_server(alice, "Guild")
	request = await servers_service.request_to_join(bob, server.id)

	for outsider in (bob, carol):
		with pytest.raises(ForbiddenError):
			await servers_service.decline_join_request(outsider, request.id)
	assert list(store.snapshot(SERVER_REQUESTS)) == [request.id]


@pytest.mark.asyncio
async def test_accept_for_deleted_requester_drops_request(store, servers_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	request = await servers_service.request_to_join(bob, server.id)
	await store.collection(USERS).delete(bob.id)

	with pytest.raises(NotFoundError) as excinfo:
		await servers_service.accept_join_request(alice, request.id)
	assert excinfo.value.detail == "user_not_found"
	assert store.snapshot(SERVER_REQUESTS) == {}
	assert store.snapshot(SERVERS)[server.id]["members"] == [alice.id]


@pytest.mark.asyncio
async def test_list_join_requests_pages_and_skips_missing(store, servers_service, alice, bob, carol):
	server = await servers_service.create_server(alice, "Guild")
	await servers_service.request_to_join(bob, server.id)
	await store.collection(SERVER_REQUESTS).create({"from": "ghost", "to": server.id})
	await servers_service.request_to_join(carol, server.id)

	first = await servers_service.list_join_requests(alice, server.id, 1, 2)
	assert (first.page, first.limit) == (1, 2)
	assert [item.requester.username for item in first.items] == ["bob"]

	second = await servers_service.list_join_requests(alice, server.id, 2, 2)
	assert [item.requester.username for item in second.items] == ["carol"]

	with pytest.raises(ForbiddenError):
		await servers_service.list_join_requests(bob, server.id, 1, 10)


@pytest.mark.asyncio
@pytest.mark.parametrize("page,limit,field", [(0, 10, "page"), (1, 0, "limit"), (1, 10_000, "limit")])
async def test_list_join_requests_validates_paging(servers_service, alice, page, limit, field):
	server = await servers_service.create_server(alice, "Guild")
	with pytest.raises(ValidationError) as excinfo:
		await servers_service.list_join_requests(alice, server.id, page, limit)
	assert field in excinfo.value.errors
	assert settings.join_requests_max_limit < 10_000


@pytest.mark.asyncio
async def test_my_servers_and_requests(servers_service, alice, bob):
	owned = await servers_service.create_server(alice, "Alpha")
	other = await servers_service.create_server(bob, "Beta")
	pending = await servers_service.request_to_join(alice, other.id)

	assert [server.id for server in await servers_service.list_my_servers(alice)] == [owned.id]
	assert [request.id for request in await servers_service.list_my_join_requests(alice)] == [pending.id]


@pytest.mark.asyncio
async def test_list_servers_filters_by_name(servers_service, alice):
	await servers_service.create_server(alice, "Rust Lovers")
	await servers_service.create_server(alice, "Pythonistas")
	await servers_service.create_server(alice, "Rustaceans")

	page = await servers_service.list_servers(alice, 1, 10, name="rust")
	assert [server.name for server in page.items] == ["Rust Lovers", "Rustaceans"]

	everything = await servers_service.list_servers(alice, 1, 2)
	assert len(everything.items) == 2


@pytest.mark.asyncio
async def test_ban_user(servers_service, alice, bob, carol):
	server = await servers_service.create_server(alice, "Guild")
	await _join(servers_service, alice, bob, server.id)

	with pytest.raises(SelfBanError):
		await servers_service.ban_user(alice, server.id, alice.id)
	with pytest.raises(ForbiddenError):
		await servers_service.ban_user(bob, server.id, alice.id)
	with pytest.raises(NotMemberError):
		await servers_service.ban_user(alice, server.id, carol.id)

	banned = await servers_service.ban_user(alice, server.id, bob.id)
	assert banned.members == [alice.id]

	# No deny list: the user may ask again
	request = await servers_service.request_to_join(bob, server.id)
	assert request.from_id == bob.id


@pytest.mark.asyncio
async def test_leave_server(servers_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	await _join(servers_service, alice, bob, server.id)

	with pytest.raises(ForbiddenError) as excinfo:
		await servers_service.leave_server(alice, server.id)
	assert excinfo.value.detail == "owner_cannot_leave"

	left = await servers_service.leave_server(bob, server.id)
	assert left.members == [alice.id]
	with pytest.raises(NotMemberError):
		await servers_service.leave_server(bob, server.id)


@pytest.mark.asyncio
async def test_remove_server_cascades(store, servers_service, channels_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	await channels_service.create_channel(alice, server.id, "general")
	await channels_service.create_channel(alice, server.id, "random")
	await servers_service.request_to_join(bob, server.id)
	kept = await servers_service.create_server(alice, "Other")
	await channels_service.create_channel(alice, kept.id, "lobby")

	removed = await servers_service.remove_server(alice, server.id)

	assert removed.id == server.id
	assert server.id not in store.snapshot(SERVERS)
	assert [row["server"] for row in store.snapshot(CHANNELS).values()] == [kept.id]
	assert store.snapshot(SERVER_REQUESTS) == {}
	assert store.snapshot(USERS)[bob.id]["friends"] == []
