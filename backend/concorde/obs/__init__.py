"""Observability package bootstrap."""

from __future__ import annotations

from fastapi import FastAPI

from concorde.obs import logging as obs_logging
from concorde.obs import middleware
from concorde.settings import settings


def init(app: FastAPI) -> None:
	if not settings.obs_enabled:
		return
	obs_logging.configure_logging()
	middleware.install(app)


__all__ = ["init"]
