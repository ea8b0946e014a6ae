"""Document store adapters."""

from __future__ import annotations

from concorde.settings import Settings
from concorde.store.base import (  # noqa: F401
	CHANNELS,
	COLLECTIONS,
	FRIEND_REQUESTS,
	SERVER_REQUESTS,
	SERVERS,
	USERS,
	AuthenticationFailed,
	Collection,
	Record,
	RecordNotFound,
	Store,
	StoreError,
	StoreRejected,
	StoreUnavailable,
	VersionConflict,
)
from concorde.store.memory import MemoryStore
from concorde.store.pocketbase import PocketBaseStore


def build_store(config: Settings) -> Store:
	"""Instantiate the adapter selected by ``STORE_BACKEND``."""
	if config.store_backend == "pocketbase":
		return PocketBaseStore(
			config.store_url,
			admin_token=config.store_admin_token,
			timeout=config.store_timeout_seconds,
			page_size=config.store_page_size,
		)
	return MemoryStore()
