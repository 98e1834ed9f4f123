import http.client
from io import BytesIO
from typing import Any, ClassVar, Iterable

from .client import Handle, Transports
from .http.headers import Headers
from .http.model import SyntheticResponse

# --
# Wires `http.client` (and thus `urllib.request`) to the current transport.
# While wired, `http.client.HTTPConnection` and `HTTPSConnection` are replaced
# by the classes below: they never connect, the request line, headers and body
# are turned into an outgoing call, and the delivered response is parsed back
# into a genuine `http.client.HTTPResponse`.


class FakeSocket:
	"""Gives `http.client.HTTPResponse` an in-memory response to parse."""

	def __init__(self, data: bytes) -> None:
		self.data: bytes = data

	def makefile(self, mode: str = "rb", *args: Any, **kwargs: Any) -> BytesIO:
		return BytesIO(self.data)

	def close(self) -> None:
		pass


def asResponse(
	response: SyntheticResponse, method: str | None = None
) -> http.client.HTTPResponse:
	"""Parses a delivered response as an `http.client.HTTPResponse`."""
	res = http.client.HTTPResponse(
		FakeSocket(response.head() + response.body),  # type: ignore[arg-type]
		method=method,
	)
	res.begin()
	return res


class WiredHTTPConnection(http.client.HTTPConnection):
	PROTOCOL: ClassVar[str] = "http"

	def __init__(
		self,
		host: str,
		port: int | None = None,
		*args: Any,
		context: Any = None,
		check_hostname: Any = None,
		**kwargs: Any,
	) -> None:
		super().__init__(host, port, *args, **kwargs)
		self.wiredMethod: str | None = None
		self.wiredPath: str | None = None
		self.wiredHeaders: Headers = Headers()
		self.wiredHandle: Handle | None = None

	def connect(self) -> None:
		# There is nothing to connect to
		pass

	def putrequest(
		self,
		method: str,
		url: str,
		skip_host: bool = False,
		skip_accept_encoding: bool = False,
	) -> None:
		self.wiredMethod = method
		self.wiredPath = url or "/"
		self.wiredHeaders = Headers()
		self.wiredHandle = None
		if not skip_host:
			host = f"[{self.host}]" if ":" in self.host else self.host
			self.wiredHeaders["Host"] = (
				host if self.port == self.default_port else f"{host}:{self.port}"
			)
		if not skip_accept_encoding:
			self.wiredHeaders["Accept-Encoding"] = "identity"

	def putheader(self, header: str | bytes, *values: Any) -> None:
		if self.wiredMethod is None or self.wiredHandle is not None:
			raise http.client.CannotSendHeader()
		name = header.decode("latin1") if isinstance(header, bytes) else header
		self.wiredHeaders.add(
			name,
			", ".join(
				_.decode("latin1") if isinstance(_, bytes) else str(_) for _ in values
			),
		)

	def endheaders(
		self, message_body: Any = None, *, encode_chunked: bool = False
	) -> None:
		if self.wiredMethod is None or self.wiredHandle is not None:
			raise http.client.CannotSendHeader()
		path = self.wiredPath or "/"
		options: dict[str, Any] = {
			"method": self.wiredMethod,
			"protocol": self.PROTOCOL,
			"headers": self.wiredHeaders,
		}
		# Requests sent to a proxy use an absolute URL
		if path.startswith("/"):
			options.update(host=self.host, port=self.port, path=path)
		else:
			options["url"] = path
		self.wiredHandle = Transports.Get().request(self.PROTOCOL, options)
		if message_body is not None:
			self.send(message_body)

	def send(self, data: Any) -> None:
		handle = self.wiredHandle
		if handle is None:
			raise http.client.CannotSendRequest()
		if hasattr(data, "read"):
			while chunk := data.read(self.blocksize):
				handle.write(self._encode(chunk))
		elif isinstance(data, (bytes, bytearray, memoryview, str)):
			handle.write(self._encode(data))
		else:
			for chunk in data:
				handle.write(self._encode(chunk))

	@staticmethod
	def _encode(data: str | bytes | bytearray | memoryview) -> bytes:
		# Like `http.client`, string bodies are sent as ISO-8859-1
		return data.encode("iso-8859-1") if isinstance(data, str) else bytes(data)

	def getresponse(self) -> http.client.HTTPResponse:
		handle = self.wiredHandle
		if handle is None:
			raise http.client.ResponseNotReady()
		self.wiredHandle = None
		handle.end()
		return asResponse(handle.wait(), self.wiredMethod)

	def close(self) -> None:
		self.wiredHandle = None
		self.wiredMethod = None
		super().close()


class WiredHTTPSConnection(WiredHTTPConnection):
	PROTOCOL: ClassVar[str] = "https"
	default_port = http.client.HTTPS_PORT


def patch() -> tuple[type[Any], type[Any]]:
	"""Replaces the `http.client` connection classes, returning the ones
	that were in place."""
	saved = (http.client.HTTPConnection, http.client.HTTPSConnection)
	http.client.HTTPConnection = WiredHTTPConnection  # type: ignore[misc]
	http.client.HTTPSConnection = WiredHTTPSConnection  # type: ignore[misc]
	return saved


def restore(saved: Iterable[type[Any]]) -> None:
	http.client.HTTPConnection, http.client.HTTPSConnection = saved  # type: ignore[misc]


# EOF
