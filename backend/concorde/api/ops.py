"""Liveness, store readiness and the Prometheus scrape endpoint."""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from concorde.api.deps import get_store
from concorde.settings import settings
from concorde.store.base import USERS, Store, StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["ops"])


def _presented_token(x_admin_token: Optional[str], authorization: Optional[str]) -> str:
	if x_admin_token:
		return x_admin_token
	scheme, _, credentials = (authorization or "").partition(" ")
	if scheme.lower() == "bearer":
		return credentials.strip()
	return ""


async def require_metrics_access(
	x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	"""Open when ``OBS_METRICS_PUBLIC`` is set, otherwise gated on ``OBS_ADMIN_TOKEN``.

	An unset token closes the endpoint instead of opening it.
	"""
	if settings.obs_metrics_public:
		return
	expected = settings.obs_admin_token
	if not expected:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	presented = _presented_token(x_admin_token, authorization)
	if not hmac.compare_digest(presented.encode(), expected.encode()):
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return {"status": "ok"}


@router.get("/health/ready")
async def health_ready(store: Store = Depends(get_store)) -> Response:
	try:
		await store.collection(USERS).query(page=1, limit=1)
	except StoreError as exc:
		logger.warning("health.store_unreachable", extra={"reason": exc.reason})
		return JSONResponse(
			status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
			content={"status": "unavailable", "store": exc.reason},
		)
	return JSONResponse(content={"status": "ok", "store": settings.store_backend})


@router.get("/metrics")
async def prometheus_metrics(_: None = Depends(require_metrics_access)) -> Response:
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
