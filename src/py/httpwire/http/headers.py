from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any, TypeAlias

THeaderValue: TypeAlias = str | list[str]
THeadersInput: TypeAlias = (
	"Mapping[str, Any] | Iterable[tuple[str, Any]] | list[str] | Headers | None"
)

# -----------------------------------------------------------------------------
#
# HELPERS
#
# -----------------------------------------------------------------------------


def headername(name: str, *, headers: dict[str, str] = {}) -> str:
	"""Normalizes the header name as `Kebab-Case`."""
	if name in headers:
		return headers[name]
	key: str = name.lower()
	if key in headers:
		return headers[key]
	else:
		normalized: str = "-".join(_.capitalize() for _ in name.split("-"))
		headers[key] = normalized
		return normalized


def headervalue(value: Any) -> THeaderValue:
	"""Header values are kept as strings, or as a list of strings for
	headers that repeat (like `Set-Cookie`)."""
	if isinstance(value, list) or isinstance(value, tuple):
		return [str(_) for _ in value]
	elif isinstance(value, bytes):
		return value.decode("latin1")
	else:
		return str(value)


# -----------------------------------------------------------------------------
#
# HEADERS
#
# -----------------------------------------------------------------------------


class Headers(MutableMapping[str, THeaderValue]):
	"""A case-insensitive header map that remembers insertion order. Setting
	an existing header replaces its value (last write wins) but keeps its
	original position."""

	__slots__ = ["_items", "lower"]

	@staticmethod
	def Make(headers: THeadersInput = None, *, lower: bool = False) -> "Headers":
		"""Creates headers from a mapping, a list of `(name, value)` pairs or
		a flat `[name, value, name, value…]` raw list."""
		res = Headers(lower=lower)
		if headers is None:
			pass
		elif isinstance(headers, Mapping):
			for k, v in headers.items():
				res[k] = v
		elif isinstance(headers, list) and all(isinstance(_, str) for _ in headers):
			if len(headers) % 2:
				raise ValueError(f"Raw headers must come in pairs, got: {headers}")
			for i in range(0, len(headers), 2):
				res.add(headers[i], headers[i + 1])
		else:
			for k, v in headers:
				res.add(k, v)
		return res

	def __init__(self, *, lower: bool = False) -> None:
		# Maps the lowercase name to the name as given and the value
		self._items: dict[str, tuple[str, THeaderValue]] = {}
		# Request headers keep their names lowercased
		self.lower: bool = lower

	def __getitem__(self, name: str) -> THeaderValue:
		return self._items[name.lower()][1]

	def __setitem__(self, name: str, value: Any) -> None:
		if value is None:
			self._items.pop(name.lower(), None)
		else:
			key = name.lower()
			self._items[key] = (key if self.lower else name, headervalue(value))

	def __delitem__(self, name: str) -> None:
		del self._items[name.lower()]

	def __contains__(self, name: object) -> bool:
		return isinstance(name, str) and name.lower() in self._items

	def __iter__(self) -> Iterator[str]:
		return (name for name, _ in self._items.values())

	def __len__(self) -> int:
		return len(self._items)

	def add(self, name: str, value: Any) -> "Headers":
		"""Adds a value to the header, turning it into a list when the header
		is already defined."""
		if name in self:
			existing = self[name]
			values = existing if isinstance(existing, list) else [existing]
			added = headervalue(value)
			self[name] = values + (added if isinstance(added, list) else [added])
		else:
			self[name] = value
		return self

	def first(self, name: str) -> str | None:
		"""Returns the first value of the header, if any."""
		value = self.get(name)
		if isinstance(value, list):
			return value[0] if value else None
		return value

	def raw(self) -> list[str]:
		"""Returns the flattened `[name, value, name, value…]` projection,
		with repeated headers yielding one pair per value."""
		res: list[str] = []
		for name, value in self._items.values():
			for v in value if isinstance(value, list) else (value,):
				res.append(name)
				res.append(v)
		return res

	def copy(self) -> "Headers":
		res = Headers(lower=self.lower)
		res._items = dict(self._items)
		return res

	def asDict(self) -> dict[str, THeaderValue]:
		return {name: value for name, value in self._items.values()}

	def __eq__(self, other: object) -> bool:
		if isinstance(other, Mapping):
			return len(other) == len(self) and all(
				k in self and self[k] == v for k, v in other.items()
			)
		return NotImplemented

	def __repr__(self) -> str:
		return f"Headers({self.asDict()!r})"


# EOF
