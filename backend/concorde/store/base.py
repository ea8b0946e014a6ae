"""Store adapter contract shared by every relationship engine.

The backend does not own its persistence: records live in an external
document database. Engines only see the narrow per-collection interface
below, so the production HTTP adapter and the in-process fake are
interchangeable.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

USERS = "users"
SERVERS = "servers"
CHANNELS = "channels"
FRIEND_REQUESTS = "friend_requests"
SERVER_REQUESTS = "server_requests"

COLLECTIONS = (USERS, SERVERS, CHANNELS, FRIEND_REQUESTS, SERVER_REQUESTS)

Record = dict[str, Any]


class StoreError(Exception):
	"""Opaque failure raised by the external store."""

	reason: str = "store_error"

	def __init__(self, reason: str | None = None, *, collection: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason
		self.collection = collection


class RecordNotFound(StoreError):
	reason = "not_found"


class VersionConflict(StoreError):
	"""The record changed between read and write."""

	reason = "version_conflict"


class StoreRejected(StoreError):
	"""The store refused the payload; ``errors`` maps field names to messages."""

	reason = "rejected"

	def __init__(
		self,
		reason: str | None = None,
		*,
		collection: str | None = None,
		errors: Optional[dict[str, str]] = None,
	) -> None:
		super().__init__(reason, collection=collection)
		self.errors = dict(errors or {})


class StoreUnavailable(StoreError):
	reason = "unavailable"


class AuthenticationFailed(StoreError):
	reason = "authentication_failed"


class Collection(Protocol):
	"""CRUD + filtered query over one collection."""

	name: str
	supports_versioning: bool

	async def get(self, record_id: str) -> Record: ...

	async def query(
		self,
		filter: str | None = None,
		*,
		page: int | None = None,
		limit: int | None = None,
		sort: str | None = None,
	) -> list[Record]: ...

	async def create(self, fields: Record) -> Record: ...

	async def update(
		self,
		record_id: str,
		fields: Record,
		*,
		expected_version: int | None = None,
	) -> Record: ...

	async def delete(self, record_id: str) -> Record: ...


class Store(Protocol):
	"""Entry point handed to the engines."""

	def collection(self, name: str) -> Collection: ...

	def file_url(self, collection: str, record: Record, filename: str) -> str: ...

	async def authenticate(self, identity: str, password: str) -> Record: ...

	async def aclose(self) -> None: ...
