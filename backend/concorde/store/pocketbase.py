"""PocketBase REST adapter for the store contract.

Talks to ``/api/collections/{collection}/records`` over ``httpx``. PocketBase
offers no optimistic versioning, so ``supports_versioning`` is false and the
engines rely on idempotent set updates alone.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote as urlquote

import httpx

from concorde.obs import metrics as obs_metrics
from concorde.store.base import (
	USERS,
	AuthenticationFailed,
	Record,
	RecordNotFound,
	StoreError,
	StoreRejected,
	StoreUnavailable,
)

logger = logging.getLogger(__name__)

_SERVER_FIELDS = ("collectionId", "collectionName", "expand")


def _field_errors(body: Any) -> dict[str, str]:
	"""Flatten PocketBase ``{"data": {"field": {"code", "message"}}}`` bodies."""
	if not isinstance(body, dict):
		return {}
	data = body.get("data")
	if not isinstance(data, dict):
		return {}
	errors: dict[str, str] = {}
	for field, detail in data.items():
		if isinstance(detail, dict):
			errors[field] = str(detail.get("message") or detail.get("code") or "invalid")
		else:
			errors[field] = str(detail)
	return errors


def _clean(record: Record) -> Record:
	return {key: value for key, value in record.items() if key not in _SERVER_FIELDS}


class PocketBaseCollection:
	supports_versioning = False

	def __init__(self, store: "PocketBaseStore", name: str) -> None:
		self._store = store
		self.name = name

	@property
	def _base(self) -> str:
		return f"/api/collections/{self.name}/records"

	async def _request(self, op: str, method: str, url: str, **kwargs: Any) -> Any:
		try:
			response = await self._store.http.request(method, url, **kwargs)
		except httpx.HTTPError as exc:
			obs_metrics.inc_store_error(self.name, op)
			logger.warning("store_transport_error", extra={"collection": self.name, "op": op})
			raise StoreUnavailable(str(exc) or "transport_error", collection=self.name) from exc
		if response.status_code == 404:
			raise RecordNotFound(collection=self.name)
		if response.status_code == 400:
			body = _safe_json(response)
			obs_metrics.inc_store_error(self.name, op)
			raise StoreRejected(
				str(body.get("message", "rejected")) if isinstance(body, dict) else "rejected",
				collection=self.name,
				errors=_field_errors(body),
			)
		if response.status_code >= 400:
			obs_metrics.inc_store_error(self.name, op)
			logger.warning(
				"store_request_failed",
				extra={"collection": self.name, "op": op, "status": response.status_code},
			)
			if response.status_code >= 500:
				raise StoreUnavailable(f"status_{response.status_code}", collection=self.name)
			raise StoreError(f"status_{response.status_code}", collection=self.name)
		if response.status_code == 204 or not response.content:
			return None
		return response.json()

	async def get(self, record_id: str) -> Record:
		body = await self._request("get", "GET", f"{self._base}/{urlquote(str(record_id), safe='')}")
		return _clean(body)

	async def _list_page(
		self,
		*,
		filter: str | None,
		page: int,
		per_page: int,
		sort: str | None,
	) -> dict[str, Any]:
		params: dict[str, Any] = {"page": page, "perPage": per_page}
		if filter:
			params["filter"] = filter
		if sort:
			params["sort"] = sort
		return await self._request("query", "GET", self._base, params=params)

	async def query(
		self,
		filter: str | None = None,
		*,
		page: int | None = None,
		limit: int | None = None,
		sort: str | None = None,
	) -> list[Record]:
		if page is not None or limit is not None:
			body = await self._list_page(filter=filter, page=page or 1, per_page=limit or 30, sort=sort)
			return [_clean(item) for item in body.get("items", [])]
		# Full listing: drain page by page
		items: list[Record] = []
		current = 1
		while True:
			body = await self._list_page(
				filter=filter,
				page=current,
				per_page=self._store.page_size,
				sort=sort,
			)
			items.extend(_clean(item) for item in body.get("items", []))
			total_pages = int(body.get("totalPages") or 0)
			if current >= total_pages or not body.get("items"):
				return items
			current += 1

	async def create(self, fields: Record) -> Record:
		body = await self._request("create", "POST", self._base, json=fields)
		return _clean(body)

	async def update(
		self,
		record_id: str,
		fields: Record,
		*,
		expected_version: int | None = None,
	) -> Record:
		body = await self._request(
			"update",
			"PATCH",
			f"{self._base}/{urlquote(str(record_id), safe='')}",
			json=fields,
		)
		return _clean(body)

	async def delete(self, record_id: str) -> Record:
		record = await self.get(record_id)
		await self._request("delete", "DELETE", f"{self._base}/{urlquote(str(record_id), safe='')}")
		return record


def _safe_json(response: httpx.Response) -> Any:
	try:
		return response.json()
	except ValueError:
		return {}


class PocketBaseStore:
	"""Store backed by a PocketBase instance."""

	def __init__(
		self,
		base_url: str,
		*,
		admin_token: Optional[str] = None,
		timeout: float = 5.0,
		page_size: int = 200,
		http: Optional[httpx.AsyncClient] = None,
	) -> None:
		headers = {"Authorization": admin_token} if admin_token else {}
		self.base_url = base_url.rstrip("/")
		self.page_size = page_size
		self.http = http or httpx.AsyncClient(base_url=self.base_url, headers=headers, timeout=timeout)
		self._collections: dict[str, PocketBaseCollection] = {}

	def collection(self, name: str) -> PocketBaseCollection:
		if name not in self._collections:
			self._collections[name] = PocketBaseCollection(self, name)
		return self._collections[name]

	def file_url(self, collection: str, record: Record, filename: str) -> str:
		return f"{self.base_url}/api/files/{collection}/{record['id']}/{urlquote(filename)}"

	async def authenticate(self, identity: str, password: str) -> Record:
		try:
			response = await self.http.post(
				f"/api/collections/{USERS}/auth-with-password",
				json={"identity": identity, "password": password},
			)
		except httpx.HTTPError as exc:
			obs_metrics.inc_store_error(USERS, "authenticate")
			raise StoreUnavailable(str(exc) or "transport_error", collection=USERS) from exc
		if response.status_code in (400, 401, 403, 404):
			raise AuthenticationFailed(collection=USERS)
		if response.status_code >= 400:
			obs_metrics.inc_store_error(USERS, "authenticate")
			raise StoreUnavailable(f"status_{response.status_code}", collection=USERS)
		body = response.json()
		return _clean(body.get("record") or {})

	async def aclose(self) -> None:
		await self.http.aclose()
