from __future__ import annotations

import json

import httpx
import pytest

from concorde.store import (
	SERVERS,
	USERS,
	AuthenticationFailed,
	PocketBaseStore,
	RecordNotFound,
	StoreRejected,
	StoreUnavailable,
)

BASE_URL = "http://pb.test"


def _store(handler) -> PocketBaseStore:
	client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
	return PocketBaseStore(BASE_URL, page_size=2, http=client)


@pytest.mark.asyncio
async def test_get_strips_server_fields():
	def handler(request: httpx.Request) -> httpx.Response:
		assert request.url.path == "/api/collections/servers/records/s1"
		return httpx.Response(
			200,
			json={"id": "s1", "name": "Guild", "collectionId": "x", "collectionName": "servers", "expand": {}},
		)

	store = _store(handler)
	record = await store.collection(SERVERS).get("s1")
	assert record == {"id": "s1", "name": "Guild"}
	await store.aclose()


@pytest.mark.asyncio
async def test_full_listing_drains_every_page():
	seen_pages: list[str] = []

	def handler(request: httpx.Request) -> httpx.Response:
		page = request.url.params["page"]
		seen_pages.append(page)
		assert request.url.params["perPage"] == "2"
		assert request.url.params["filter"] == 'owner = "u1"'
		items = {"1": [{"id": "a"}, {"id": "b"}], "2": [{"id": "c"}]}[page]
		return httpx.Response(200, json={"page": int(page), "totalPages": 2, "items": items})

	store = _store(handler)
	rows = await store.collection(SERVERS).query('owner = "u1"')
	assert [row["id"] for row in rows] == ["a", "b", "c"]
	assert seen_pages == ["1", "2"]


@pytest.mark.asyncio
async def test_paged_query_sends_page_and_limit():
	def handler(request: httpx.Request) -> httpx.Response:
		assert request.url.params["page"] == "3"
		assert request.url.params["perPage"] == "10"
		assert request.url.params["sort"] == "-created"
		return httpx.Response(200, json={"items": [{"id": "z"}], "totalPages": 5})

	store = _store(handler)
	rows = await store.collection(SERVERS).query(page=3, limit=10, sort="-created")
	assert rows == [{"id": "z"}]


@pytest.mark.asyncio
async def test_update_patches_fields():
	def handler(request: httpx.Request) -> httpx.Response:
		assert request.method == "PATCH"
		assert json.loads(request.content) == {"members": ["u1", "u2"]}
		return httpx.Response(200, json={"id": "s1", "members": ["u1", "u2"]})

	store = _store(handler)
	record = await store.collection(SERVERS).update("s1", {"members": ["u1", "u2"]}, expected_version=3)
	assert record["members"] == ["u1", "u2"]


@pytest.mark.asyncio
async def test_error_statuses_map_to_store_errors():
	responses = {
		"missing": httpx.Response(404, json={"message": "not found"}),
		"invalid": httpx.Response(
			400,
			json={"message": "Failed to create record.", "data": {"username": {"code": "validation_not_unique", "message": "Value must be unique."}}},
		),
		"broken": httpx.Response(503),
	}

	def handler(request: httpx.Request) -> httpx.Response:
		return responses[request.url.path.rsplit("/", 1)[-1]]

	servers = _store(handler).collection(SERVERS)
	with pytest.raises(RecordNotFound):
		await servers.get("missing")
	with pytest.raises(StoreRejected) as excinfo:
		await servers.get("invalid")
	assert excinfo.value.errors == {"username": "Value must be unique."}
	with pytest.raises(StoreUnavailable):
		await servers.get("broken")


@pytest.mark.asyncio
async def test_transport_failure_is_unavailable():
	def handler(request: httpx.Request) -> httpx.Response:
		raise httpx.ConnectError("refused", request=request)

	with pytest.raises(StoreUnavailable):
		await _store(handler).collection(SERVERS).get("s1")


@pytest.mark.asyncio
async def test_authenticate_returns_record_or_fails():
	def handler(request: httpx.Request) -> httpx.Response:
		assert request.url.path == f"/api/collections/{USERS}/auth-with-password"
		body = json.loads(request.content)
		if body["password"] == "secret123":
			return httpx.Response(200, json={"token": "pb", "record": {"id": "u1", "username": "alice"}})
		return httpx.Response(400, json={"message": "Failed to authenticate."})

	store = _store(handler)
	record = await store.authenticate("alice", "secret123")
	assert record == {"id": "u1", "username": "alice"}
	with pytest.raises(AuthenticationFailed):
		await store.authenticate("alice", "nope")


def test_file_url_points_at_files_endpoint():
	store = PocketBaseStore(BASE_URL + "/")
	assert store.file_url(USERS, {"id": "u1"}, "avatar.png") == f"{BASE_URL}/api/files/users/u1/avatar.png"
