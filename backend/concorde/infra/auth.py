"""Identity context: resolve the acting user from a bearer credential.

The relationship engines never see credentials. They receive an immutable
``ActorContext`` built here and passed explicitly into every call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError

from concorde.domain.exceptions import InvalidCredentialError
from concorde.infra import jwt as jwt_helper
from concorde.obs import logging as obs_logging
from concorde.settings import settings


@dataclass(frozen=True, slots=True)
class ActorContext:
	id: str
	username: Optional[str] = None


_bearer_scheme = HTTPBearer(auto_error=False)


def resolve_actor(token: str) -> ActorContext:
	"""Decode an access token into an actor, or raise ``InvalidCredentialError``."""
	try:
		claims = jwt_helper.decode_access(token)
	except InvalidTokenError:
		raise InvalidCredentialError() from None
	return ActorContext(id=claims.sub, username=claims.username)


def issue_access_token(user_id: str, *, username: Optional[str] = None) -> str:
	return jwt_helper.encode_access(user_id, username=username)


async def get_current_actor(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> ActorContext:
	"""Resolve the actor for a request.

	A bearer token always wins. In development the ``X-User-Id`` header is
	accepted so local tools can act as any user.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		actor = resolve_actor(credentials.credentials)
	elif settings.is_dev() and x_user_id:
		actor = ActorContext(id=x_user_id.strip())
	else:
		raise InvalidCredentialError()
	obs_logging.bind_user(actor.id)
	return actor
