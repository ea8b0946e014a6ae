"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNTER = Counter(
	"concorde_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"concorde_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

RELATIONSHIP_OPS = Counter(
	"concorde_relationship_ops_total",
	"Relationship engine operations by outcome",
	["engine", "op", "result"],
)

UNION_UPDATE_CONFLICTS = Counter(
	"concorde_union_update_conflicts_total",
	"Optimistic version conflicts hit while updating set-valued fields",
	["collection", "field"],
)

STORE_ERRORS = Counter(
	"concorde_store_errors_total",
	"Failures returned by the document store",
	["collection", "op"],
)

USERS_REGISTERED = Counter(
	"concorde_users_registered_total",
	"Successful user registrations",
)

LOGINS = Counter(
	"concorde_logins_total",
	"Login attempts by outcome",
	["result"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_relationship_op(engine: str, op: str, result: str = "ok") -> None:
	RELATIONSHIP_OPS.labels(engine=engine, op=op, result=result).inc()


def inc_union_conflict(collection: str, field: str) -> None:
	UNION_UPDATE_CONFLICTS.labels(collection=collection, field=field).inc()


def inc_store_error(collection: str, op: str) -> None:
	STORE_ERRORS.labels(collection=collection, op=op).inc()


def inc_user_registered() -> None:
	USERS_REGISTERED.inc()


def inc_login(result: str) -> None:
	LOGINS.labels(result=result).inc()
