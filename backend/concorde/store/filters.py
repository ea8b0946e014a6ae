"""Filter expressions understood by the document store.

The grammar is the small subset the engines need::

	expr   := clause ( "&&" clause )*
	clause := field ( "=" | "~" ) "literal"

Builders quote and escape literals so ids coming from requests can never
break out of the expression. ``parse``/``matches`` evaluate the same
language in process for the in-memory store.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")
_CLAUSE_RE = re.compile(r'^\s*([A-Za-z_][A-Za-z0-9_.]*)\s*(=|~)\s*"((?:[^"\\]|\\.)*)"\s*$')


class FilterSyntaxError(ValueError):
	"""Raised when an expression does not follow the grammar."""


@dataclass(frozen=True, slots=True)
class Clause:
	field: str
	op: str
	value: str


def quote(value: Any) -> str:
	text = str(value).replace("\\", "\\\\").replace('"', '\\"')
	return f'"{text}"'


def _unquote(text: str) -> str:
	return re.sub(r"\\(.)", r"\1", text)


def _clause(field: str, op: str, value: Any) -> str:
	if not _FIELD_RE.match(field):
		raise FilterSyntaxError(f"invalid field name: {field!r}")
	return f"{field} {op} {quote(value)}"


def eq(field: str, value: Any) -> str:
	return _clause(field, "=", value)


def like(field: str, value: Any) -> str:
	return _clause(field, "~", value)


def and_(*exprs: str) -> str:
	return " && ".join(expr for expr in exprs if expr)


def _split_and(expr: str) -> list[str]:
	parts: list[str] = []
	current: list[str] = []
	in_string = False
	escaped = False
	idx = 0
	while idx < len(expr):
		char = expr[idx]
		if in_string:
			current.append(char)
			if escaped:
				escaped = False
			elif char == "\\":
				escaped = True
			elif char == '"':
				in_string = False
		elif char == '"':
			in_string = True
			current.append(char)
		elif expr.startswith("&&", idx):
			parts.append("".join(current))
			current = []
			idx += 1
		else:
			current.append(char)
		idx += 1
	if in_string:
		raise FilterSyntaxError("unterminated literal")
	parts.append("".join(current))
	return parts


def parse(expr: str | None) -> list[Clause]:
	if expr is None or not expr.strip():
		return []
	clauses: list[Clause] = []
	for part in _split_and(expr):
		match = _CLAUSE_RE.match(part)
		if not match:
			raise FilterSyntaxError(f"invalid clause: {part.strip()!r}")
		field, op, raw = match.groups()
		clauses.append(Clause(field=field, op=op, value=_unquote(raw)))
	return clauses


def _lookup(record: Mapping[str, Any], field: str) -> Any:
	value: Any = record
	for key in field.split("."):
		if not isinstance(value, Mapping):
			return None
		value = value.get(key)
	return value


def _clause_matches(record: Mapping[str, Any], clause: Clause) -> bool:
	value = _lookup(record, clause.field)
	if clause.op == "=":
		if isinstance(value, (list, tuple)):
			return False
		if value is None:
			return clause.value == ""
		if isinstance(value, bool):
			return str(value).lower() == clause.value.lower()
		return str(value) == clause.value
	# "~": substring match, element-wise for list fields
	if value is None:
		return False
	if isinstance(value, (list, tuple, set)):
		return any(clause.value in str(item) for item in value)
	return clause.value.lower() in str(value).lower()


def matches(record: Mapping[str, Any], clauses: Iterable[Clause]) -> bool:
	return all(_clause_matches(record, clause) for clause in clauses)


__all__ = [
	"Clause",
	"FilterSyntaxError",
	"and_",
	"eq",
	"like",
	"matches",
	"parse",
	"quote",
]
