from typing import Any, Callable
from urllib.parse import parse_qs

from ..utils.events import TListener
from ..utils.io import DEFAULT_ENCODING, asWritable
from ..utils.json import TJSON, unjson
from ..utils.logging import warning
from .body import BodyStream
from .headers import Headers, THeaderValue, headername
from .options import RequestOptions
from .status import HTTP_STATUS

# Headers describing how the body is delimited, which is the transport's job
FRAMING_HEADERS: frozenset[str] = frozenset(("content-length", "transfer-encoding"))

# -----------------------------------------------------------------------------
#
# REQUEST
#
# -----------------------------------------------------------------------------


class SyntheticRequest:
	"""A request as seen by the handler, synthesized from the parameters of
	an intercepted call. Headers are lowercased and the body is exposed as a
	stream that the caller may still be writing to until the call is
	flushed."""

	__slots__ = [
		"protocol",
		"method",
		"url",
		"path",
		"query",
		"headers",
		"params",
		"body",
		"options",
	]

	@staticmethod
	def Create(
		options: RequestOptions, body: BodyStream | None = None
	) -> "SyntheticRequest":
		# The target is split by hand, as `urlsplit` reads a leading `//` as
		# a network location
		path, _, query = options.path.partition("#")[0].partition("?")
		return SyntheticRequest(
			method=options.method,
			url=options.href,
			path=path or "/",
			query={k: v[0] for k, v in parse_qs(query, keep_blank_values=True).items()},
			headers=Headers.Make(options.headers, lower=True),
			body=BodyStream() if body is None else body,
			protocol=options.protocol,
			options=options,
		)

	def __init__(
		self,
		method: str,
		url: str,
		path: str,
		query: dict[str, str],
		headers: Headers,
		body: BodyStream,
		protocol: str = "http",
		options: RequestOptions | None = None,
	):
		self.method: str = method
		self.url: str = url
		self.path: str = path
		self.query: dict[str, str] = query
		self.headers: Headers = headers
		# Routing layers put the path parameters there
		self.params: dict[str, str] = {}
		self.body: BodyStream = body
		self.protocol: str = protocol
		self.options: RequestOptions | None = options

	def header(self, name: str) -> str | None:
		return self.headers.first(name)

	# Same accessor name as on the response, for handlers that use both
	def getHeader(self, name: str) -> str | None:
		return self.header(name)

	def param(self, name: str, default: str | None = None) -> str | None:
		"""Returns the path parameter, or the query parameter with the
		given name."""
		if name in self.params:
			return self.params[name]
		return self.query.get(name, default)

	@property
	def contentType(self) -> str | None:
		return self.header("content-type")

	@property
	def contentLength(self) -> int | None:
		value = self.header("content-length")
		return int(value) if value is not None else None

	def read(self, size: int = -1) -> bytes:
		return self.body.read(size)

	def text(self, encoding: str = DEFAULT_ENCODING) -> str:
		return self.body.payload.decode(encoding)

	def json(self) -> TJSON:
		payload = self.body.payload
		return unjson(payload) if payload else None

	def __str__(self) -> str:
		return f"Request({self.method} {self.url} {self.headers})"


# -----------------------------------------------------------------------------
#
# RESPONSE
#
# -----------------------------------------------------------------------------


class SyntheticResponse:
	"""Captures what a handler writes as its response. The handler sees the
	writable side (`setHeader`, `status`, `write`, `end`) while the caller
	receives the very same object once it is complete, and reads it using
	`statusCode`, `headers`, `rawHeaders` and either the stream events or
	`read()`."""

	__slots__ = ["headers", "_status", "stream", "onEnd"]

	def __init__(self, onEnd: Callable[[], Any] | None = None) -> None:
		self.headers: Headers = Headers()
		self._status: int = 200
		self.stream: BodyStream = BodyStream()
		self.onEnd: Callable[[], Any] | None = onEnd

	# =========================================================================
	# HANDLER API
	# =========================================================================

	def setHeader(self, name: str, value: Any) -> "SyntheticResponse":
		self.headers[name] = value
		return self

	def getHeader(self, name: str) -> THeaderValue | None:
		return self.headers.get(name)

	def hasHeader(self, name: str) -> bool:
		return name in self.headers

	def removeHeader(self, name: str) -> "SyntheticResponse":
		self.headers.pop(name, None)
		return self

	def status(self, code: int) -> "SyntheticResponse":
		self._status = int(code)
		return self

	@property
	def statusCode(self) -> int:
		return self._status

	@statusCode.setter
	def statusCode(self, code: int) -> None:
		self._status = int(code)

	@property
	def statusMessage(self) -> str:
		return HTTP_STATUS.get(self._status, "Unknown status")

	@property
	def rawHeaders(self) -> list[str]:
		return self.headers.raw()

	@property
	def finished(self) -> bool:
		return self.stream.isEnded

	def write(self, chunk: Any) -> bool:
		"""Buffers a chunk of the body without completing the response."""
		return self.stream.write(asWritable(chunk))

	def end(self, chunk: Any = None) -> "SyntheticResponse":
		"""Writes the last chunk and completes the response, which notifies
		the call that it can be delivered."""
		if self.stream.isEnded:
			warning("Response was already ended, ignoring", Status=self._status)
			return self
		self.stream.end(asWritable(chunk))
		if self.onEnd:
			self.onEnd()
		return self

	# =========================================================================
	# CALLER API
	# =========================================================================

	def on(self, event: str, callback: TListener) -> "SyntheticResponse":
		self.stream.on(event, callback)
		return self

	def once(self, event: str, callback: TListener) -> "SyntheticResponse":
		self.stream.once(event, callback)
		return self

	def removeAllListeners(self, event: str | None = None) -> "SyntheticResponse":
		self.stream.removeAllListeners(event)
		return self

	@property
	def body(self) -> bytes:
		return self.stream.payload

	def read(self, size: int = -1) -> bytes:
		return self.stream.read(size)

	def text(self, encoding: str = DEFAULT_ENCODING) -> str:
		return self.stream.payload.decode(encoding)

	def json(self) -> TJSON:
		payload = self.stream.payload
		return unjson(payload) if payload else None

	def head(self, protocol: str = "HTTP/1.1") -> bytes:
		"""Serializes the status line and headers. The body is complete by
		then, so it is always framed by its actual length."""
		lines: list[str] = [f"{protocol} {self._status} {self.statusMessage}"]
		for name, value in self.headerPairs():
			lines.append(f"{name}: {value}")
		lines.append(f"Content-Length: {self.stream.length}")
		lines.append("")
		lines.append("")
		return "\r\n".join(lines).encode("latin1")

	def headerPairs(self) -> list[tuple[str, str]]:
		"""Returns the `(Kebab-Case name, value)` pairs to send, without the
		headers framing the body (`Content-Length`, `Transfer-Encoding`)."""
		raw = self.headers.raw()
		return [
			(headername(raw[i]), raw[i + 1])
			for i in range(0, len(raw), 2)
			if raw[i].lower() not in FRAMING_HEADERS
		]

	def __str__(self) -> str:
		return f"Response({self._status} {self.statusMessage} {self.headers} {self.stream})"


# EOF
