import asyncio
import inspect
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, NamedTuple

from .http.body import BodyStream
from .http.model import SyntheticRequest, SyntheticResponse
from .http.options import normalizeRequestArgs
from .interceptor import THandler
from .utils.logging import debug, error, exception, info, logged

# --
# A real HTTP server for the `handler(request, response)` contract. Handlers
# get the same synthetic request and response as when wired, which makes it
# possible to run a test suite both through the bridge and over an actual
# socket, and compare.


class ServerOptions(NamedTuple):
	host: str = "127.0.0.1"
	# The default lets the system pick an available port
	port: int = 0
	logRequests: bool = False


OPTIONS: ServerOptions = ServerOptions()


class RequestHandler(BaseHTTPRequestHandler):
	"""Adapts `http.server` requests to the handler contract."""

	protocol_version = "HTTP/1.1"
	server: "WireHTTPServer"

	def process(self) -> None:
		body = BodyStream()
		length = int(self.headers.get("Content-Length") or 0)
		if length:
			body.write(self.rfile.read(length))
		body.end()
		host, port = self.server.server_address[:2]
		options, _ = normalizeRequestArgs(
			{
				"method": self.command,
				"protocol": "http",
				"host": self.headers.get("Host") or f"[{host}]:{port}",
				"path": self.path,
				"headers": list(self.headers.items()),
			}
		)
		request = SyntheticRequest.Create(options, body)
		finished = threading.Event()
		response = SyntheticResponse(onEnd=finished.set)
		try:
			result = self.server.handler(request, response)
			if inspect.isawaitable(result):
				asyncio.run(self.awaiting(result))
		except Exception as e:
			# The caller gets a 500, but only if the handler did not answer yet
			error(
				f"Handler failed: {request.method} {request.path}",
				"HANDLERERR",
				Error=str(e),
			)
			exception(e)
			if not response.finished:
				response.status(500).end(response.statusMessage)
		# Like with the bridge, a handler that never ends its response keeps
		# the client waiting.
		finished.wait()
		payload = response.body
		self.send_response(response.statusCode, response.statusMessage)
		for name, value in response.headerPairs():
			self.send_header(name, value)
		self.send_header("Content-Length", str(len(payload)))
		self.end_headers()
		if self.command != "HEAD":
			self.wfile.write(payload)

	@staticmethod
	async def awaiting(awaitable: Any) -> Any:
		return await awaitable

	do_GET = process
	do_HEAD = process
	do_POST = process
	do_PUT = process
	do_PATCH = process
	do_DELETE = process
	do_OPTIONS = process

	def log_message(self, format: str, *args: Any) -> None:
		if self.server.options.logRequests and logged(debug):
			debug(format % args, Client=self.address_string())


class WireHTTPServer(ThreadingHTTPServer):
	daemon_threads = True

	def __init__(self, handler: THandler, options: ServerOptions) -> None:
		super().__init__((options.host, options.port), RequestHandler)
		self.handler: THandler = handler
		self.options: ServerOptions = options


@dataclass
class Server:
	"""A running server, which stops when used as a context manager."""

	httpd: WireHTTPServer
	thread: threading.Thread

	@property
	def host(self) -> str:
		return str(self.httpd.server_address[0])

	@property
	def port(self) -> int:
		return int(self.httpd.server_address[1])

	@property
	def url(self) -> str:
		return f"http://{self.host}:{self.port}"

	def close(self) -> None:
		self.httpd.shutdown()
		self.httpd.server_close()
		self.thread.join()
		info("Server stopped", Port=self.port)

	def __enter__(self) -> "Server":
		return self

	def __exit__(self, type: Any, value: Any, traceback: Any) -> None:
		self.close()


def serve(
	handler: THandler,
	*,
	host: str = OPTIONS.host,
	port: int = OPTIONS.port,
	logRequests: bool = OPTIONS.logRequests,
) -> Server:
	"""Serves the handler over HTTP from a background thread."""
	options = ServerOptions(host=host, port=port, logRequests=logRequests)
	httpd = WireHTTPServer(handler, options)
	thread = threading.Thread(
		target=httpd.serve_forever, name="httpwire-server", daemon=True
	)
	thread.start()
	server = Server(httpd, thread)
	info("Server listening", icon="🚀", Host=server.host, Port=server.port)
	return server


# EOF
