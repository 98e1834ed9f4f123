from typing import Any, TypeAlias, cast
import json as basejson
from .primitives import asPrimitive

TJSON: TypeAlias = None | int | float | bool | str | list[Any] | dict[str, Any]


def json(value: Any) -> bytes:
	"""Converts the value to compact JSON bytes."""
	return basejson.dumps(asPrimitive(value), separators=(",", ":")).encode("utf8")


def unjson(value: bytes | str) -> TJSON:
	"""Parses JSON-encoded bytes or string."""
	return cast(TJSON, basejson.loads(value))


# EOF
