"""Typed errors raised by the relationship engines."""

from __future__ import annotations

from typing import Optional

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class RelationshipError(Exception):
	"""Base class for relationship core errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "relationship_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class ValidationError(RelationshipError):
	"""Malformed input; ``errors`` carries one message per offending field."""

	status_code = _HTTP_422
	detail = "validation_error"

	def __init__(self, errors: Optional[dict[str, str]] = None, detail: str | None = None) -> None:
		super().__init__(detail)
		self.errors = dict(errors or {})


class NotFoundError(RelationshipError):
	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class ForbiddenError(RelationshipError):
	status_code = status.HTTP_403_FORBIDDEN
	detail = "forbidden"


class SelfTargetError(RelationshipError):
	"""The actor targeted themself where that is not allowed."""

	detail = "self_target"


class SelfBanError(SelfTargetError):
	detail = "self_ban"


class ConflictError(RelationshipError):
	status_code = status.HTTP_409_CONFLICT
	detail = "conflict"


class DuplicateRequestError(ConflictError):
	detail = "duplicate_request"


class AlreadyFriendsError(ConflictError):
	detail = "already_friends"


class AlreadyMemberError(ConflictError):
	detail = "already_member"


class NotMemberError(ConflictError):
	detail = "not_member"


class ConcurrentUpdateError(ConflictError):
	"""Optimistic retries were exhausted on a contended record."""

	detail = "concurrent_update"


class InvalidCredentialError(RelationshipError):
	status_code = status.HTTP_401_UNAUTHORIZED
	detail = "invalid_token"
