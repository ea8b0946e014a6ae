"""Ownership guard for relationship mutations.

Pure predicates over already-fetched records: no store access, no side
effects. Callers translate a ``False`` into an authorization failure, either
themselves or through the ``require_*`` helpers.
"""

from __future__ import annotations

from concorde.domain import models
from concorde.domain.exceptions import ForbiddenError, SelfTargetError


def is_server_owner(server: models.Server, actor_id: str) -> bool:
	return bool(actor_id) and server.owner == actor_id


def is_channel_owner(channel: models.Channel, actor_id: str) -> bool:
	return bool(actor_id) and channel.owner == actor_id


def is_self(target_id: str, actor_id: str) -> bool:
	return str(target_id) == str(actor_id)


def is_server_member(server: models.Server, actor_id: str) -> bool:
	return actor_id in server.members


def require_server_owner(server: models.Server, actor_id: str) -> models.Server:
	if not is_server_owner(server, actor_id):
		raise ForbiddenError("server_owner_required")
	return server


def require_channel_owner(channel: models.Channel, actor_id: str) -> models.Channel:
	if not is_channel_owner(channel, actor_id):
		raise ForbiddenError("channel_owner_required")
	return channel


def require_not_self(
	target_id: str,
	actor_id: str,
	*,
	error: type[SelfTargetError] = SelfTargetError,
) -> None:
	if is_self(target_id, actor_id):
		raise error()
