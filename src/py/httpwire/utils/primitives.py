from typing import Any
from decimal import Decimal
from datetime import date, datetime
from dataclasses import is_dataclass, fields
from pathlib import Path
from enum import Enum

TLiteral = bool | int | float | str | bytes
TComposite = (
	list[TLiteral] | dict[TLiteral, TLiteral] | set[TLiteral] | tuple[TLiteral, ...]
)
TPrimitive = TLiteral | TComposite


def asPrimitive(value: Any) -> Any:
	"""Converts the given value to a primitive value that can be encoded
	as JSON. Values that have no primitive counterpart are returned as-is,
	so that the encoder gets a chance to reject them."""
	if value is None or type(value) in (bool, float, int, str):
		return value
	elif isinstance(value, tuple) and hasattr(value, "_fields"):
		return {k: asPrimitive(getattr(value, k)) for k in value._fields}
	elif isinstance(value, list) or isinstance(value, tuple):
		return [asPrimitive(v) for v in value]
	elif is_dataclass(value) and not isinstance(value, type):
		return {f.name: asPrimitive(getattr(value, f.name)) for f in fields(value)}
	elif isinstance(value, Enum):
		return asPrimitive(value.value)
	elif isinstance(value, dict):
		return {k: asPrimitive(v) for k, v in value.items()}
	elif isinstance(value, Decimal):
		return str(value)
	elif isinstance(value, Path):
		return str(value)
	elif isinstance(value, datetime) or isinstance(value, date):
		return value.isoformat()
	else:
		return value


# EOF
