"""Typed record loading and profile expansion shared by the engines."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, TypeVar

from pydantic import BaseModel

from concorde.domain import models
from concorde.domain.exceptions import NotFoundError
from concorde.store.base import USERS, Record, RecordNotFound, Store

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


async def fetch(store: Store, collection: str, record_id: str, model: type[ModelT], *, detail: str) -> ModelT:
	"""Load one record as ``model``; a missing record becomes ``NotFoundError(detail)``."""
	try:
		record = await store.collection(collection).get(record_id)
	except RecordNotFound:
		raise NotFoundError(detail) from None
	return model.model_validate(record)


def to_profile(store: Store, record: Record) -> models.UserProfile:
	avatar = record.get("avatar")
	return models.UserProfile(
		id=record["id"],
		username=record.get("username") or "",
		name=record.get("name") or None,
		avatar=store.file_url(USERS, record, avatar) if avatar else None,
	)


async def load_profile(store: Store, user_id: str) -> Optional[models.UserProfile]:
	"""Profile for ``user_id`` or ``None`` when the user no longer exists."""
	try:
		record = await store.collection(USERS).get(user_id)
	except RecordNotFound:
		logger.debug("profile_unresolved", extra={"ref_user_id": user_id})
		return None
	return to_profile(store, record)


async def expand_profiles(store: Store, user_ids: Iterable[str]) -> list[models.UserProfile]:
	"""Resolve ids in order, silently skipping dangling references."""
	profiles: list[models.UserProfile] = []
	for user_id in user_ids:
		profile = await load_profile(store, user_id)
		if profile is not None:
			profiles.append(profile)
	return profiles
