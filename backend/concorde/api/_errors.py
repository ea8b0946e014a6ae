"""Error translation helpers for the relationship API."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status

from concorde.domain import exceptions
from concorde.store.base import RecordNotFound, StoreError

logger = logging.getLogger(__name__)


class FieldHTTPException(HTTPException):
	"""HTTP error that also reports per-field validation messages."""

	def __init__(self, status_code: int, detail: str, errors: Optional[dict[str, str]] = None) -> None:
		super().__init__(status_code=status_code, detail=detail)
		self.errors = dict(errors or {})


def to_http_error(exc: Exception) -> HTTPException:
	"""Translate domain and store exceptions to FastAPI HTTP errors."""
	if isinstance(exc, HTTPException):
		return exc
	if isinstance(exc, exceptions.ValidationError):
		return FieldHTTPException(exc.status_code, exc.detail, exc.errors)
	if isinstance(exc, exceptions.RelationshipError):
		return HTTPException(status_code=exc.status_code, detail=exc.detail)
	if isinstance(exc, RecordNotFound):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")
	if isinstance(exc, StoreError):
		logger.warning("store_error", extra={"collection": exc.collection, "reason": exc.reason})
		return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="store_error")
	logger.exception("unhandled_error")
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal_error")
