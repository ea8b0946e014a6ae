from __future__ import annotations

import pytest

from concorde.domain import models
from concorde.domain.exceptions import ConcurrentUpdateError, ForbiddenError, NotFoundError, ValidationError
from concorde.store import CHANNELS, SERVERS
from concorde.store.base import StoreUnavailable, VersionConflict


@pytest.mark.asyncio
async def test_create_channel_indexes_it(store, servers_service, channels_service, alice):
	server = await servers_service.create_server(alice, "Guild")
	channel = await channels_service.create_channel(alice, server.id, "general")

	assert channel.owner == alice.id
	assert channel.server == server.id
	assert store.snapshot(SERVERS)[server.id]["channels"] == [channel.id]


@pytest.mark.asyncio
async def test_create_channel_requires_server_owner(store, servers_service, channels_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	with pytest.raises(ForbiddenError):
		await channels_service.create_channel(bob, server.id, "general")
	with pytest.raises(NotFoundError):
		await channels_service.create_channel(alice, "missing", "general")
	with pytest.raises(ValidationError):
		await channels_service.create_channel(alice, server.id, "")
	assert store.snapshot(CHANNELS) == {}


@pytest.mark.asyncio
@pytest.mark.parametrize(
	("failure", "expected"),
	[(VersionConflict, ConcurrentUpdateError), (StoreUnavailable, StoreUnavailable)],
)
async def test_create_channel_rolls_back_when_index_write_fails(
	store, servers_service, channels_service, alice, monkeypatch, failure, expected
):
	server = await servers_service.create_server(alice, "Guild")

	async def failing_update(*args, **kwargs):
		raise failure(collection=SERVERS)

	monkeypatch.setattr(store.collection(SERVERS), "update", failing_update)
	with pytest.raises(expected):
		await channels_service.create_channel(alice, server.id, "general")

	assert store.snapshot(CHANNELS) == {}
	assert store.snapshot(SERVERS)[server.id]["channels"] == []


@pytest.mark.asyncio
async def test_channel_mutations_gate_on_channel_owner(store, servers_service, channels_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	channel = await channels_service.create_channel(alice, server.id, "general")
	# Ownership of the server moves on; the channel keeps its creator
	await store.collection(SERVERS).update(server.id, {"owner": bob.id, "members": [alice.id, bob.id]})

	with pytest.raises(ForbiddenError):
		await channels_service.update_channel(bob, channel.id, models.ChannelPatch(name="renamed"))
	with pytest.raises(ForbiddenError):
		await channels_service.delete_channel(bob, channel.id)
	assert store.snapshot(CHANNELS)[channel.id]["name"] == "general"
	assert store.snapshot(SERVERS)[server.id]["channels"] == [channel.id]

	renamed = await channels_service.update_channel(alice, channel.id, models.ChannelPatch(name="renamed"))
	assert renamed.name == "renamed"


@pytest.mark.asyncio
async def test_delete_channel_removes_index_entry(store, servers_service, channels_service, alice):
	server = await servers_service.create_server(alice, "Guild")
	general = await channels_service.create_channel(alice, server.id, "general")
	random = await channels_service.create_channel(alice, server.id, "random")

	await channels_service.delete_channel(alice, general.id)

	assert store.snapshot(SERVERS)[server.id]["channels"] == [random.id]
	assert list(store.snapshot(CHANNELS)) == [random.id]
	with pytest.raises(NotFoundError):
		await channels_service.delete_channel(alice, general.id)


@pytest.mark.asyncio
async def test_list_channels_has_no_gate(servers_service, channels_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	await channels_service.create_channel(alice, server.id, "general")
	await channels_service.create_channel(alice, server.id, "random")

	channels = await channels_service.list_channels(bob, server.id)
	assert [channel.name for channel in channels] == ["general", "random"]


@pytest.mark.asyncio
async def test_repair_restores_index(store, servers_service, channels_service, alice, bob):
	server = await servers_service.create_server(alice, "Guild")
	general = await channels_service.create_channel(alice, server.id, "general")
	# Interrupted create: the channel exists but was never indexed
	orphan = await store.collection(CHANNELS).create({"name": "orphan", "owner": alice.id, "server": server.id})
	await store.collection(SERVERS).update(server.id, {"channels": [general.id, "stale-id"]})

	with pytest.raises(ForbiddenError):
		await channels_service.repair_channel_index(bob, server.id)

	repaired = await channels_service.repair_channel_index(alice, server.id)
	assert repaired.channels == [general.id, orphan["id"]]
