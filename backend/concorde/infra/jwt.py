"""Bearer tokens for the relationship API.

HS256 tokens signed with ``SECRET_KEY``. The subject is the user id; the
username rides along so logs and clients need not look it up.
"""

from __future__ import annotations

import time
from typing import Optional

import jwt
from jwt import InvalidTokenError
from pydantic import BaseModel, ConfigDict, field_validator

from concorde.settings import settings

ISSUER = "concorde-api"
AUDIENCE = "concorde-fe"
ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ("sub", "iss", "aud", "iat", "exp")


class AccessClaims(BaseModel):
	model_config = ConfigDict(extra="ignore")

	sub: str
	iat: int
	exp: int
	username: Optional[str] = None

	@field_validator("sub")
	@classmethod
	def _non_blank(cls, value: str) -> str:
		if not value.strip():
			raise ValueError("blank subject")
		return value.strip()


def encode_access(subject: str, *, username: Optional[str] = None, ttl_seconds: Optional[int] = None) -> str:
	issued = int(time.time())
	lifetime = settings.access_ttl_minutes * 60 if ttl_seconds is None else ttl_seconds
	claims: dict[str, object] = {
		"sub": subject,
		"iss": ISSUER,
		"aud": AUDIENCE,
		"iat": issued,
		"exp": issued + lifetime,
	}
	if username:
		claims["username"] = username
	return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_access(token: str) -> AccessClaims:
	"""Verify signature, expiry, issuer and audience.

	Raises ``jwt.InvalidTokenError`` for any token that does not check out,
	including one whose claims have the wrong shape.
	"""
	raw = jwt.decode(
		token,
		settings.secret_key,
		algorithms=[ALGORITHM],
		audience=AUDIENCE,
		issuer=ISSUER,
		leeway=5,
		options={"require": list(_REQUIRED_CLAIMS)},
	)
	try:
		return AccessClaims.model_validate(raw)
	except ValueError as exc:
		raise InvalidTokenError(f"malformed_claims: {exc}") from exc
