"""Idempotent updates of set-valued record fields.

The store has no multi-document transactions, so every relationship change
is a sequence of single-record writes. Each write here is a union or a
difference on one list field: repeating it is harmless, and a write that
would not change anything is skipped. When the collection supports
optimistic versioning the write is conditional on the version that was read
and re-applied on conflict.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from concorde.domain.exceptions import ConcurrentUpdateError
from concorde.obs import metrics as obs_metrics
from concorde.settings import settings
from concorde.store.base import Collection, Record, VersionConflict

logger = logging.getLogger(__name__)

Transform = Callable[[list[str]], list[str]]


def union(values: list[str], *additions: str) -> list[str]:
	"""Order-preserving union; also collapses duplicates already stored."""
	return list(dict.fromkeys([*values, *additions]))


def difference(values: list[str], *removals: str) -> list[str]:
	dropped = set(removals)
	return [value for value in dict.fromkeys(values) if value not in dropped]


async def apply_set_update(
	collection: Collection,
	record_id: str,
	field: str,
	transform: Transform,
	*,
	attempts: Optional[int] = None,
) -> Record:
	"""Read ``record_id``, rewrite ``field`` through ``transform`` and persist it.

	Raises ``RecordNotFound`` if the record disappears and
	``ConcurrentUpdateError`` once the retry budget is spent.
	"""
	budget = max(1, attempts if attempts is not None else settings.union_update_attempts)
	for attempt in range(1, budget + 1):
		record = await collection.get(record_id)
		current = [str(value) for value in record.get(field) or []]
		updated = transform(current)
		if updated == current:
			return record
		expected = record.get("version") if collection.supports_versioning else None
		try:
			return await collection.update(record_id, {field: updated}, expected_version=expected)
		except VersionConflict:
			obs_metrics.inc_union_conflict(collection.name, field)
			logger.info(
				"union_update_conflict",
				extra={"collection": collection.name, "record_id": record_id, "field": field, "attempt": attempt},
			)
	raise ConcurrentUpdateError()


async def add_to_set(
	collection: Collection,
	record_id: str,
	field: str,
	*values: str,
	attempts: Optional[int] = None,
) -> Record:
	return await apply_set_update(
		collection,
		record_id,
		field,
		lambda current: union(current, *values),
		attempts=attempts,
	)


async def remove_from_set(
	collection: Collection,
	record_id: str,
	field: str,
	*values: str,
	attempts: Optional[int] = None,
) -> Record:
	return await apply_set_update(
		collection,
		record_id,
		field,
		lambda current: difference(current, *values),
		attempts=attempts,
	)
