"""JSON logging with request-scoped context.

Every record carries the request id, route and acting user of the request
that produced it. Engine events (``friend.accept``, ``server.ban``, ...) are
the audit trail of relationship changes and are never sampled away.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from typing import Any, Optional

from concorde.settings import settings

_LOGGER_NAME = "concorde"
_AUDIT_PREFIX = "concorde.domain"

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

_REDACTED_KEYS = ("password", "token", "secret", "authorization", "email", "cookie")
_MAX_TEXT = 256
_MAX_IDS = 20


@dataclass(frozen=True)
class LogContext:
	request_id: Optional[str] = None
	route: Optional[str] = None
	user_id: Optional[str] = None


_CONTEXT: ContextVar[LogContext] = ContextVar("concorde_log_context", default=LogContext())


def bind_context(**fields: Optional[str]) -> Token:
	"""Overlay ``fields`` on the current context; undo with ``reset_context``."""
	current = _CONTEXT.get()
	return _CONTEXT.set(replace(current, **{key: value for key, value in fields.items() if value is not None}))


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def bind_user(user_id: str) -> None:
	"""Attach the resolved actor to the current request context."""
	_CONTEXT.set(replace(_CONTEXT.get(), user_id=user_id))


def current_context() -> LogContext:
	return _CONTEXT.get()


def _scrub(key: str, value: Any) -> Any:
	if any(word in key.lower() for word in _REDACTED_KEYS):
		return "[redacted]"
	if isinstance(value, str) and len(value) > _MAX_TEXT:
		return value[:_MAX_TEXT] + "..."
	if isinstance(value, (list, tuple, set)):
		# friends/members lists can be long; the count is what matters
		items = list(value)
		if len(items) > _MAX_IDS:
			return items[:_MAX_IDS] + [f"+{len(items) - _MAX_IDS} more"]
		return items
	if isinstance(value, dict):
		return {name: _scrub(str(name), nested) for name, nested in value.items()}
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per line: envelope, request context, then extras."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003
		payload: dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"event": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
		}
		if settings.git_commit:
			payload["commit"] = settings.git_commit
		payload.update({key: value for key, value in asdict(_CONTEXT.get()).items() if value})
		for key, value in record.__dict__.items():
			if key not in _RESERVED_ATTRS and key not in payload:
				payload[key] = _scrub(key, value)
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Sample info records at ``OBS_LOG_SAMPLING_RATE_INFO``, except engine events."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO or record.name.startswith(_AUDIT_PREFIX):
			return True
		rate = settings.obs_log_sampling_rate_info
		return rate >= 1.0 or random.random() < max(rate, 0.0)


def configure_logging() -> logging.Logger:
	"""Route the root logger through one JSON handler on stderr."""
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	root.handlers[:] = [handler]
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
