import contextvars
import inspect
import threading
from concurrent.futures import Future
from typing import Any, Callable, NamedTuple

from . import config
from .client import Handle, TCallback, Transport
from .coordinator import CallState, Coordinator
from .errors import CallSetupError, CallStateError
from .http.body import BodyStream
from .http.headers import THeaderValue
from .http.model import SyntheticRequest, SyntheticResponse
from .http.options import RequestOptions, normalizeRequestArgs
from .scheduler import Scheduler
from .utils.logging import event, exception

THandler = Callable[[SyntheticRequest, SyntheticResponse], Any]

# -----------------------------------------------------------------------------
#
# CALLS
#
# -----------------------------------------------------------------------------


class InterceptedCall(NamedTuple):
	"""The parameters of an outgoing call, as captured."""

	protocol: str
	options: RequestOptions
	args: tuple[Any, ...]


class CallHandle(Handle):
	"""Stands in for the transport of an intercepted call. The body written
	by the caller goes to the synthetic request; ending the handle flushes
	the call to the handler, and the handler ending its response delivers
	it to the callback."""

	__slots__ = [
		"call",
		"request",
		"response",
		"coordinator",
		"callback",
		"context",
		"delivered",
	]

	def __init__(
		self,
		call: InterceptedCall,
		handler: Callable[[], THandler],
		callback: TCallback | None = None,
	) -> None:
		super().__init__()
		self.call: InterceptedCall = call
		self.request: SyntheticRequest = SyntheticRequest.Create(
			call.options, BodyStream()
		)
		self.response: SyntheticResponse = SyntheticResponse(onEnd=self._done)
		self.callback: TCallback | None = callback
		# The callback runs in the context of the call, even when the
		# response is completed from the scheduler's thread.
		self.context: contextvars.Context = contextvars.copy_context()
		self.delivered: threading.Event = threading.Event()

		def dispatch() -> "Future[Any] | None":
			result = handler()(self.request, self.response)
			if inspect.isawaitable(result):
				return Scheduler.Get().submit(result)
			return None

		self.coordinator: Coordinator = Coordinator(dispatch, self._deliver)

	@property
	def state(self) -> CallState:
		return self.coordinator.state

	def write(self, chunk: Any, encoding: str | None = None) -> bool:
		return self.request.body.write(chunk, encoding)

	def end(self, chunk: Any = None, encoding: str | None = None) -> "CallHandle":
		# The body is complete before the handler gets to see it
		if not self.request.body.isEnded:
			self.request.body.end(chunk, encoding)
		self.coordinator.flush()
		return self

	def destroy(self) -> "CallHandle":
		# Calls can't be cancelled
		return self

	def getHeader(self, name: str) -> THeaderValue | None:
		return self.response.getHeader(name)

	def setHeader(self, name: str, value: Any) -> "CallHandle":
		self.request.headers[name] = value
		return self

	def wait(self) -> SyntheticResponse:
		"""Waits for the response to be delivered. Like a real server that
		does not answer, a handler that never ends its response blocks this
		forever. Exceptions raised by asynchronous handlers are re-raised
		here."""
		if self.coordinator.state is CallState.Collecting:
			raise CallStateError("Call must be ended before waiting for its response")
		if self.coordinator.pending is not None:
			self.coordinator.pending.result()
		self.delivered.wait()
		return self.response

	def _done(self) -> None:
		self.coordinator.done()

	def _deliver(self) -> None:
		if self.callback:
			self.context.run(self.callback, self.response)
		self.context.run(self.emit, "response", self.response)
		self.delivered.set()


class StalledHandle(Handle):
	"""Returned for calls that could not be intercepted: it accepts
	everything and never delivers anything."""

	__slots__ = ["args"]

	def __init__(self, args: tuple[Any, ...]) -> None:
		super().__init__()
		self.args: tuple[Any, ...] = args

	def write(self, chunk: Any, encoding: str | None = None) -> bool:
		return True

	def end(self, chunk: Any = None, encoding: str | None = None) -> "StalledHandle":
		return self

	def destroy(self) -> "StalledHandle":
		return self

	def getHeader(self, name: str) -> THeaderValue | None:
		return None

	def setHeader(self, name: str, value: Any) -> "StalledHandle":
		return self

	def wait(self) -> SyntheticResponse:
		threading.Event().wait()
		raise CallStateError("Stalled call can't be waited on")


# -----------------------------------------------------------------------------
#
# INTERCEPTOR
#
# -----------------------------------------------------------------------------


class Interceptor(Transport):
	"""Serves outgoing calls with a handler instead of the network."""

	def __init__(self, handler: THandler) -> None:
		self.handler: THandler = handler

	def request(self, protocol: str | None, *args: Any) -> Handle:
		return self.intercept(protocol, *args)

	def intercept(self, protocol: str | None, *args: Any) -> Handle:
		try:
			options, callback = normalizeRequestArgs(*args, protocol=protocol)
			call = InterceptedCall(options.protocol, options, args)
			# The handler is looked up when dispatching, so that calls made
			# before a rewiring go to the latest handler.
			handle = CallHandle(call, lambda: self.handler, callback)
		except Exception as e:
			if config.STRICT:
				raise CallSetupError(f"Could not intercept call: {e}", args) from e
			exception(e, "Could not intercept call, it will never complete")
			return StalledHandle(args)
		config.LOG_CALLS and event(
			"Intercepted", options.method, URL=options.href, Protocol=call.protocol
		)
		return handle


# EOF
