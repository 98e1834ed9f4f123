from typing import Any
from .json import json

DEFAULT_ENCODING: str = "utf8"


def asBytes(
	value: str | bytes | bytearray | memoryview | None, encoding: str | None = None
) -> bytes:
	"""Converts raw data (as written by a client) to bytes."""
	if isinstance(value, bytes):
		return value
	elif isinstance(value, bytearray) or isinstance(value, memoryview):
		return bytes(value)
	elif isinstance(value, str):
		return value.encode(encoding or DEFAULT_ENCODING)
	elif value is None:
		return b""
	else:
		raise ValueError(f"Expected bytes or str, got: {value!r}")


def asWritable(value: Any) -> bytes:
	"""Converts a response chunk to bytes: strings are encoded, binary data
	is passed through and anything else is serialized as JSON. `None` and
	values that JSON can't represent yield no bytes at all."""
	if value is None:
		return b""
	elif isinstance(value, bytes):
		return value
	elif isinstance(value, bytearray) or isinstance(value, memoryview):
		return bytes(value)
	elif isinstance(value, str):
		return value.encode(DEFAULT_ENCODING)
	else:
		try:
			return json(value)
		except (TypeError, ValueError, RecursionError):
			return b""


# EOF
