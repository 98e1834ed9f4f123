from base64 import b64encode
from collections.abc import Mapping
from typing import Any, Callable, NamedTuple
from urllib.parse import SplitResult, ParseResult, urlsplit, unquote

from .. import config
from .headers import Headers

DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

# -----------------------------------------------------------------------------
#
# REQUEST OPTIONS
#
# -----------------------------------------------------------------------------


class RequestOptions(NamedTuple):
	"""The normalized parameters of an outgoing call."""

	method: str
	protocol: str
	host: str
	port: int
	path: str
	headers: Headers

	@property
	def href(self) -> str:
		"""The absolute URL targeted by the call."""
		port = "" if DEFAULT_PORTS.get(self.protocol) == self.port else f":{self.port}"
		# IPv6 addresses are bracketed in URLs
		host = f"[{self.host}]" if ":" in self.host else self.host
		return f"{self.protocol}://{host}{port}{self.path}"


def asProtocol(value: Any) -> str:
	"""Normalizes `https:`, `HTTPS` and `https` alike."""
	protocol = str(value).lower().rstrip(":")
	if protocol not in DEFAULT_PORTS:
		raise ValueError(f"Unsupported protocol: {value!r}")
	return protocol


def normalizeRequestArgs(
	*args: Any, protocol: str | None = None
) -> tuple[RequestOptions, Callable[..., Any] | None]:
	"""Normalizes the arguments given to an outgoing call. Like most client
	APIs, calls can be made with a URL, an options mapping, a URL and an
	options mapping overriding it, each optionally followed by a callback
	that receives the response."""
	rest: list[Any] = list(args)
	callback: Callable[..., Any] | None = (
		rest.pop() if rest and callable(rest[-1]) else None
	)
	url: SplitResult | None = None
	options: Mapping[str, Any] = {}
	for value in rest:
		if isinstance(value, str):
			if url is not None:
				raise TypeError(f"Call takes a single URL, got: {args}")
			url = urlsplit(value)
			if not url.scheme or not url.netloc:
				raise ValueError(f"Invalid URL: {value!r}")
		elif isinstance(value, SplitResult) or isinstance(value, ParseResult):
			url = urlsplit(value.geturl())
		elif isinstance(value, Mapping):
			options = {**options, **value}
		elif value is not None:
			raise TypeError(f"Unsupported call argument {type(value)}: {value!r}")
	if "url" in options:
		url = urlsplit(str(options["url"]))
	# --
	# The protocol is taken from the options first, then the URL and then the
	# protocol of the entry point that was called.
	proto: str = asProtocol(
		options.get("protocol")
		or (url.scheme if url and url.scheme else None)
		or protocol
		or "http"
	)
	host: str | None = options.get("hostname") or options.get("host")
	port: Any = options.get("port")
	# A `host:port` or `[address]:port` host is split, an explicit port still
	# wins. Bare IPv6 addresses have more than one colon and no port.
	hostport: str | None = None
	if host and host.startswith("["):
		host, _, rest = host[1:].partition("]")
		hostport = rest[1:] if rest.startswith(":") else None
	elif host and host.count(":") == 1:
		host, hostport = host.split(":")
	if hostport and port is None:
		port = hostport
	if not host:
		host = (url.hostname if url else None) or config.HOST
	if port is None:
		port = url.port if url and url.port else DEFAULT_PORTS[proto]
	port = int(port)
	path: str = options.get("path") or (
		((url.path or "/") + (f"?{url.query}" if url.query else "")) if url else "/"
	)
	if not path.startswith("/") or any(_.isspace() for _ in path):
		raise ValueError(f"Invalid request path: {path!r}")
	headers = Headers.Make(options.get("headers"))
	# Credentials in the URL become a basic authorization header
	auth: str | None = options.get("auth") or (
		f"{unquote(url.username)}:{unquote(url.password or '')}"
		if url and url.username
		else None
	)
	if auth and "Authorization" not in headers:
		headers["Authorization"] = f"Basic {b64encode(auth.encode()).decode()}"
	return (
		RequestOptions(
			method=str(options.get("method") or "GET").upper(),
			protocol=proto,
			host=host,
			port=port,
			path=path,
			headers=headers,
		),
		callback,
	)


# EOF
