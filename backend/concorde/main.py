"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from concorde import __version__, obs
from concorde.api import channels, friends, ops, server_requests, servers, users
from concorde.api.errors import install_error_handlers
from concorde.settings import settings
from concorde.store import build_store

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
	owns_store = getattr(app.state, "store", None) is None
	if owns_store:
		app.state.store = build_store(settings)
	logger.info("startup", extra={"store_backend": settings.store_backend, "version": __version__})
	try:
		yield
	finally:
		if owns_store:
			await app.state.store.aclose()
			app.state.store = None


def _allowed_origins() -> list[str]:
	allow_origins = list(getattr(settings, "cors_allow_origins", []))
	if not allow_origins:
		allow_origins = ["http://localhost:3000"] if settings.is_dev() else []
	# Starlette disallows wildcard '*' with allow_credentials=True
	if "*" in allow_origins:
		allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else []
	return allow_origins


def create_app() -> FastAPI:
	app = FastAPI(title="Concorde Relationship Core", version=__version__, lifespan=lifespan)
	install_error_handlers(app)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=_allowed_origins(),
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	obs.init(app)

	app.include_router(ops.router)
	for module in (users, friends, servers, server_requests, channels):
		app.include_router(module.router, prefix=API_PREFIX)
	return app


app = create_app()
