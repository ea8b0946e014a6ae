"""In-process document store used for local development and tests.

Behaves like the production store at the adapter boundary (ids, timestamps,
filters, pagination, unique usernames, password auth) and additionally keeps
a per-record ``version`` so optimistic updates can be exercised.
"""

from __future__ import annotations

import copy
import secrets
import string
from datetime import datetime, timezone
from typing import Any, Optional

from concorde.infra.password import hash_password, verify_password
from concorde.store import filters
from concorde.store.base import (
	COLLECTIONS,
	USERS,
	AuthenticationFailed,
	Record,
	RecordNotFound,
	StoreError,
	StoreRejected,
	VersionConflict,
)

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_LENGTH = 15
_DEFAULT_PER_PAGE = 30
_RESERVED = ("id", "created", "updated", "version", "collectionName")
_UNIQUE_FIELDS = {USERS: ("username", "email")}


def _new_id() -> str:
	return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


def _now() -> str:
	return datetime.now(timezone.utc).isoformat()


def _sort_records(records: list[Record], sort: str | None) -> list[Record]:
	if not sort:
		return records
	ordered = list(records)
	# Apply keys right-to-left so the first key wins (stable sort)
	for key in reversed([part.strip() for part in sort.split(",") if part.strip()]):
		reverse = key.startswith("-")
		field = key.lstrip("+-")
		ordered.sort(key=lambda rec: str(rec.get(field) or ""), reverse=reverse)
	return ordered


class MemoryCollection:
	"""One collection of the in-memory store."""

	supports_versioning = True

	def __init__(self, store: "MemoryStore", name: str) -> None:
		self._store = store
		self.name = name
		self._records: dict[str, Record] = {}

	def _check_unique(self, fields: Record, *, exclude_id: str | None = None) -> None:
		errors: dict[str, str] = {}
		for field in _UNIQUE_FIELDS.get(self.name, ()):
			value = fields.get(field)
			if value is None:
				continue
			for record in self._records.values():
				if record["id"] != exclude_id and record.get(field) == value:
					errors[field] = "Value must be unique."
		if errors:
			raise StoreRejected("unique", collection=self.name, errors=errors)

	async def get(self, record_id: str) -> Record:
		record = self._records.get(str(record_id))
		if record is None:
			raise RecordNotFound(collection=self.name)
		return copy.deepcopy(record)

	async def query(
		self,
		filter: str | None = None,
		*,
		page: int | None = None,
		limit: int | None = None,
		sort: str | None = None,
	) -> list[Record]:
		clauses = filters.parse(filter)
		found = [record for record in self._records.values() if filters.matches(record, clauses)]
		found = _sort_records(found, sort or "created")
		if page is not None or limit is not None:
			per_page = limit or _DEFAULT_PER_PAGE
			offset = (max(page or 1, 1) - 1) * per_page
			found = found[offset : offset + per_page]
		return [copy.deepcopy(record) for record in found]

	async def create(self, fields: Record) -> Record:
		payload = {key: copy.deepcopy(value) for key, value in fields.items() if key not in _RESERVED}
		password = payload.pop("password", None)
		confirm = payload.pop("passwordConfirm", None)
		if self.name == USERS and password is not None and confirm is not None and password != confirm:
			raise StoreRejected("password_mismatch", collection=self.name, errors={"passwordConfirm": "Values don't match."})
		self._check_unique(payload)
		now = _now()
		record_id = fields.get("id") or _new_id()
		if record_id in self._records:
			raise StoreRejected("duplicate_id", collection=self.name, errors={"id": "Value must be unique."})
		record: Record = {
			"id": record_id,
			"collectionName": self.name,
			"created": now,
			"updated": now,
			"version": 1,
			**payload,
		}
		self._records[record_id] = record
		if self.name == USERS and password is not None:
			self._store._set_password(record_id, password)
		return copy.deepcopy(record)

	async def update(
		self,
		record_id: str,
		fields: Record,
		*,
		expected_version: int | None = None,
	) -> Record:
		record = self._records.get(str(record_id))
		if record is None:
			raise RecordNotFound(collection=self.name)
		if expected_version is not None and record["version"] != expected_version:
			raise VersionConflict(collection=self.name)
		payload = {key: copy.deepcopy(value) for key, value in fields.items() if key not in _RESERVED}
		self._check_unique(payload, exclude_id=record["id"])
		record.update(payload)
		record["version"] += 1
		record["updated"] = _now()
		return copy.deepcopy(record)

	async def delete(self, record_id: str) -> Record:
		record = self._records.pop(str(record_id), None)
		if record is None:
			raise RecordNotFound(collection=self.name)
		if self.name == USERS:
			self._store._credentials.pop(record["id"], None)
		return record


class MemoryStore:
	"""Process-local store holding the five relationship collections."""

	def __init__(self, *, base_url: str = "memory://files") -> None:
		self._base_url = base_url.rstrip("/")
		self._collections = {name: MemoryCollection(self, name) for name in COLLECTIONS}
		self._credentials: dict[str, str] = {}

	def collection(self, name: str) -> MemoryCollection:
		try:
			return self._collections[name]
		except KeyError:
			raise StoreError(f"unknown_collection:{name}", collection=name) from None

	def file_url(self, collection: str, record: Record, filename: str) -> str:
		return f"{self._base_url}/{collection}/{record['id']}/{filename}"

	def _set_password(self, user_id: str, password: str) -> None:
		self._credentials[user_id] = hash_password(password)

	async def authenticate(self, identity: str, password: str) -> Record:
		users = self._collections[USERS]
		candidate: Optional[Record] = None
		for record in users._records.values():
			if identity in (record.get("username"), record.get("email")):
				candidate = record
				break
		if candidate is None or candidate["id"] not in self._credentials:
			raise AuthenticationFailed(collection=USERS)
		if not verify_password(self._credentials[candidate["id"]], password):
			raise AuthenticationFailed(collection=USERS)
		return copy.deepcopy(candidate)

	async def aclose(self) -> None:
		return None

	def snapshot(self, name: str) -> dict[str, Any]:
		"""Deep copy of a collection's records keyed by id (test helper)."""
		return copy.deepcopy(self._collections[name]._records)
