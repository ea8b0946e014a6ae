"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from concorde.api._errors import to_http_error
from concorde.domain.exceptions import RelationshipError
from concorde.obs import logging as obs_logging
from concorde.store.base import StoreError


def get_request_id(request: Request) -> Optional[str]:
	return getattr(request.state, "request_id", None) or obs_logging.current_context().request_id


def _field_errors(errors: list[dict[str, Any]]) -> dict[str, str]:
	fields: dict[str, str] = {}
	for error in errors:
		names = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
		fields.setdefault(".".join(names) or "body", str(error.get("msg", "invalid")))
	return fields


def _error_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
	payload: dict[str, Any] = {"detail": exc.detail, "request_id": get_request_id(request)}
	errors = getattr(exc, "errors", None)
	if errors:
		payload["errors"] = errors
	return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
		return _error_response(request, exc)

	@app.exception_handler(RelationshipError)
	async def relationship_exc_handler(request: Request, exc: RelationshipError):  # type: ignore[override]
		return _error_response(request, to_http_error(exc))

	@app.exception_handler(StoreError)
	async def store_exc_handler(request: Request, exc: StoreError):  # type: ignore[override]
		return _error_response(request, to_http_error(exc))

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		payload = {
			"detail": "validation_error",
			"errors": _field_errors(list(exc.errors())),
			"request_id": get_request_id(request),
		}
		return JSONResponse(status_code=422, content=payload)
