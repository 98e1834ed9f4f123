import contextvars
import http.client
import ssl
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar

import certifi

from . import config
from .errors import CallStateError
from .http.body import BodyStream
from .http.headers import THeaderValue
from .http.model import SyntheticResponse
from .http.options import RequestOptions, normalizeRequestArgs
from .utils.events import Events
from .utils.logging import event

# --
# The outgoing-call API: `request()` returns a handle the caller writes the
# body to and ends, the callback then receives the response. Calls are served
# by the current transport, which is the network unless a handler has been
# wired in its place.

# Captured at import, so that the network transport keeps using the real
# connection classes when `http.client` is wired.
HTTPConnection: type[http.client.HTTPConnection] = http.client.HTTPConnection
HTTPSConnection: type[http.client.HTTPSConnection] = http.client.HTTPSConnection

SSL_CLIENT_CONTEXT: ssl.SSLContext = ssl.create_default_context(
	ssl.Purpose.SERVER_AUTH, cafile=certifi.where()
)

# Methods for which an empty body is not sent at all
BODYLESS_METHODS: frozenset[str] = frozenset(("GET", "HEAD", "DELETE", "OPTIONS"))

TCallback = Callable[[SyntheticResponse], Any]

# -----------------------------------------------------------------------------
#
# HANDLE
#
# -----------------------------------------------------------------------------


class Handle(Events, ABC):
	"""What a caller gets back from an outgoing call. Besides `on` and
	`removeAllListeners`, this is the whole surface available to callers."""

	__slots__: list[str] = []

	@abstractmethod
	def write(self, chunk: Any, encoding: str | None = None) -> bool:
		"""Appends a chunk to the request body."""

	@abstractmethod
	def end(self, chunk: Any = None, encoding: str | None = None) -> "Handle":
		"""Completes the request body, which sends the call."""

	@abstractmethod
	def destroy(self) -> "Handle":
		...

	@abstractmethod
	def getHeader(self, name: str) -> THeaderValue | None:
		"""Returns the header of the response, once delivered."""

	@abstractmethod
	def setHeader(self, name: str, value: Any) -> "Handle":
		"""Sets a header of the request."""

	@abstractmethod
	def wait(self) -> SyntheticResponse:
		"""Blocks until the response is delivered and returns it."""


# -----------------------------------------------------------------------------
#
# NETWORK TRANSPORT
#
# -----------------------------------------------------------------------------


class NetworkHandle(Handle):
	"""A call sent over the network with `http.client`, once ended."""

	__slots__ = ["options", "callback", "body", "response", "context"]

	def __init__(self, options: RequestOptions, callback: TCallback | None) -> None:
		super().__init__()
		self.options: RequestOptions = options
		self.callback: TCallback | None = callback
		self.body: BodyStream = BodyStream()
		self.response: SyntheticResponse | None = None
		self.context: contextvars.Context = contextvars.copy_context()

	def write(self, chunk: Any, encoding: str | None = None) -> bool:
		return self.body.write(chunk, encoding)

	def end(self, chunk: Any = None, encoding: str | None = None) -> "NetworkHandle":
		self.body.end(chunk, encoding)
		try:
			response = self.send()
		except OSError as e:
			# Like any emitter, errors are raised unless listened to
			if self.emit("error", e):
				return self
			raise e from e
		self.response = response
		if self.callback:
			self.context.run(self.callback, response)
		self.emit("response", response)
		return self

	def send(self) -> SyntheticResponse:
		o = self.options
		cxn: http.client.HTTPConnection = (
			HTTPSConnection(o.host, o.port, context=SSL_CLIENT_CONTEXT)
			if o.protocol == "https"
			else HTTPConnection(o.host, o.port)
		)
		payload = self.body.payload
		headers: dict[str, str] = {
			k: ", ".join(v) if isinstance(v, list) else v for k, v in o.headers.items()
		}
		config.LOG_CALLS and event("Request", o.method, URL=o.href)
		try:
			cxn.request(
				o.method,
				o.path,
				body=payload if payload or o.method not in BODYLESS_METHODS else None,
				headers=headers,
			)
			res = cxn.getresponse()
			response = SyntheticResponse()
			response.status(res.status)
			for k, v in res.getheaders():
				response.headers.add(k, v)
			response.end(res.read())
		finally:
			cxn.close()
		return response

	def destroy(self) -> "NetworkHandle":
		return self

	def getHeader(self, name: str) -> THeaderValue | None:
		return self.response.getHeader(name) if self.response else None

	def setHeader(self, name: str, value: Any) -> "NetworkHandle":
		self.options.headers[name] = value
		return self

	def wait(self) -> SyntheticResponse:
		if self.response is None:
			raise CallStateError("Call must be ended before waiting for its response")
		return self.response


# -----------------------------------------------------------------------------
#
# TRANSPORTS
#
# -----------------------------------------------------------------------------


class Transport(ABC):
	"""Serves outgoing calls."""

	@abstractmethod
	def request(self, protocol: str | None, *args: Any) -> Handle:
		...


class NetworkTransport(Transport):
	def request(self, protocol: str | None, *args: Any) -> Handle:
		options, callback = normalizeRequestArgs(*args, protocol=protocol)
		return NetworkHandle(options, callback)


class Transports:
	"""The registry of the transport currently serving outgoing calls."""

	DEFAULT: ClassVar[Transport] = NetworkTransport()
	CURRENT: ClassVar[Transport] = DEFAULT

	@classmethod
	def Get(cls) -> Transport:
		return cls.CURRENT

	@classmethod
	def Set(cls, transport: Transport | None) -> Transport:
		"""Sets the current transport (or resets it to the default when
		`None`), returning the previous one."""
		previous = cls.CURRENT
		cls.CURRENT = cls.DEFAULT if transport is None else transport
		return previous


# -----------------------------------------------------------------------------
#
# API
#
# -----------------------------------------------------------------------------


def request(*args: Any) -> Handle:
	"""Issues an outgoing call, see `normalizeRequestArgs` for the accepted
	arguments. The returned handle must be ended for the call to be sent."""
	return Transports.Get().request(None, *args)


def get(*args: Any) -> Handle:
	"""Like `request`, but ends the call right away."""
	handle = request(*args)
	handle.end()
	return handle


# EOF
