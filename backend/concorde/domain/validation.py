"""Field constraints shared by request models and the engines.

The constrained types are declared once here and used both as pydantic
field annotations and, through ``TypeAdapter``, by engine calls that take
plain values. Failures surface as one ``ValidationError`` keyed by field.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from concorde.domain.exceptions import ValidationError

NAME_MIN = 2
NAME_MAX = 50
PASSWORD_MIN = 6
PASSWORD_MAX = 72

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=NAME_MIN, max_length=NAME_MAX)]
Password = Annotated[str, StringConstraints(min_length=PASSWORD_MIN, max_length=PASSWORD_MAX)]
Identifier = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_NAME = TypeAdapter(Name)
_IDENTIFIER = TypeAdapter(Identifier)


def _validate(adapter: TypeAdapter, value: Any, field: str) -> Any:
	try:
		return adapter.validate_python(value)
	except PydanticValidationError as exc:
		raise ValidationError({field: exc.errors()[0]["msg"]}) from None


def clean_name(value: Optional[str], *, field: str = "name") -> str:
	return _validate(_NAME, value, field)


def clean_identifier(value: Optional[str], *, field: str) -> str:
	return _validate(_IDENTIFIER, value, field)


def check_page(page: int, limit: int, *, max_limit: int) -> None:
	errors: dict[str, str] = {}
	if page < 1:
		errors["page"] = "must be greater than or equal to 1"
	if not 1 <= limit <= max_limit:
		errors["limit"] = f"must be between 1 and {max_limit}"
	if errors:
		raise ValidationError(errors)
