from __future__ import annotations

import pytest

from concorde.store import (
	CHANNELS,
	SERVERS,
	USERS,
	AuthenticationFailed,
	MemoryStore,
	RecordNotFound,
	StoreError,
	StoreRejected,
	VersionConflict,
)
from concorde.store import filters


@pytest.mark.asyncio
async def test_create_assigns_system_fields():
	store = MemoryStore()
	record = await store.collection(CHANNELS).create({"name": "general", "owner": "u1", "server": "s1"})
	assert len(record["id"]) == 15
	assert record["version"] == 1
	assert record["created"] == record["updated"]
	assert record["collectionName"] == CHANNELS


@pytest.mark.asyncio
async def test_returned_records_are_copies():
	store = MemoryStore()
	servers = store.collection(SERVERS)
	record = await servers.create({"name": "Guild", "owner": "u1", "members": ["u1"]})
	record["members"].append("intruder")
	stored = await servers.get(record["id"])
	assert stored["members"] == ["u1"]


@pytest.mark.asyncio
async def test_update_checks_expected_version():
	store = MemoryStore()
	servers = store.collection(SERVERS)
	record = await servers.create({"name": "Guild", "owner": "u1", "members": ["u1"]})
	updated = await servers.update(record["id"], {"name": "Renamed"}, expected_version=1)
	assert updated["version"] == 2
	with pytest.raises(VersionConflict):
		await servers.update(record["id"], {"name": "Stale"}, expected_version=1)


@pytest.mark.asyncio
async def test_missing_records_raise_not_found():
	store = MemoryStore()
	servers = store.collection(SERVERS)
	with pytest.raises(RecordNotFound):
		await servers.get("nope")
	with pytest.raises(RecordNotFound):
		await servers.update("nope", {"name": "x"})
	with pytest.raises(RecordNotFound):
		await servers.delete("nope")


def test_unknown_collection_is_a_store_error():
	with pytest.raises(StoreError):
		MemoryStore().collection("widgets")


@pytest.mark.asyncio
async def test_query_filters_sorts_and_pages():
	store = MemoryStore()
	channels = store.collection(CHANNELS)
	for name in ("c", "a", "b"):
		await channels.create({"name": name, "owner": "u1", "server": "s1"})
	await channels.create({"name": "other", "owner": "u1", "server": "s2"})

	rows = await channels.query(filters.eq("server", "s1"), sort="name")
	assert [row["name"] for row in rows] == ["a", "b", "c"]

	rows = await channels.query(filters.eq("server", "s1"), sort="-name", page=2, limit=2)
	assert [row["name"] for row in rows] == ["a"]


@pytest.mark.asyncio
async def test_users_are_unique_and_authenticate():
	store = MemoryStore()
	users = store.collection(USERS)
	record = await users.create(
		{"username": "alice", "email": "alice@example.com", "password": "secret123", "passwordConfirm": "secret123"}
	)
	assert "password" not in record

	with pytest.raises(StoreRejected) as excinfo:
		await users.create({"username": "alice", "email": "other@example.com"})
	assert "username" in excinfo.value.errors

	assert (await store.authenticate("alice", "secret123"))["id"] == record["id"]
	assert (await store.authenticate("alice@example.com", "secret123"))["id"] == record["id"]
	with pytest.raises(AuthenticationFailed):
		await store.authenticate("alice", "wrong")


@pytest.mark.asyncio
async def test_password_confirmation_mismatch_rejected():
	store = MemoryStore()
	with pytest.raises(StoreRejected) as excinfo:
		await store.collection(USERS).create(
			{"username": "bob", "email": "bob@example.com", "password": "secret123", "passwordConfirm": "other123"}
		)
	assert "passwordConfirm" in excinfo.value.errors


@pytest.mark.asyncio
async def test_credentials_are_stored_as_argon2_hashes():
	store = MemoryStore()
	record = await store.collection(USERS).create(
		{"username": "dave", "email": "dave@example.com", "password": "secret123", "passwordConfirm": "secret123"}
	)
	stored = store._credentials[record["id"]]
	assert stored.startswith("$argon2id$")
	assert "secret123" not in stored

	# Accounts created without a password can never log in
	await store.collection(USERS).create({"username": "erin", "email": "erin@example.com"})
	with pytest.raises(AuthenticationFailed):
		await store.authenticate("erin", "")
