import threading
from concurrent.futures import Future
from enum import Enum
from typing import Any, Callable

from .utils.logging import warning


class CallState(Enum):
	"""The lifecycle of an intercepted call"""

	Collecting = 0  # The caller is writing the request body
	Dispatched = 1  # The handler has been invoked
	Completed = 2  # The handler ended the response, which was delivered


TRANSITIONS: dict[CallState, CallState] = {
	CallState.Collecting: CallState.Dispatched,
	CallState.Dispatched: CallState.Completed,
}


class Coordinator:
	"""Sequences the two halves of a call. `flush` signals that the caller
	is done writing the body and dispatches to the handler, `done` signals
	that the handler is done writing the response and delivers it. Each
	transition happens at most once and only in that order; there is no
	timeout, so a handler that never ends its response leaves the call
	`Dispatched` forever."""

	__slots__ = ["state", "onDispatch", "onDeliver", "pending", "lock"]

	def __init__(
		self,
		onDispatch: Callable[[], "Future[Any] | None"],
		onDeliver: Callable[[], Any],
	) -> None:
		self.state: CallState = CallState.Collecting
		self.onDispatch: Callable[[], Future[Any] | None] = onDispatch
		self.onDeliver: Callable[[], Any] = onDeliver
		# Set when the handler is asynchronous and still running
		self.pending: Future[Any] | None = None
		self.lock: threading.Lock = threading.Lock()

	@property
	def isDispatched(self) -> bool:
		return self.state is not CallState.Collecting

	@property
	def isCompleted(self) -> bool:
		return self.state is CallState.Completed

	def advance(self, origin: CallState) -> bool:
		"""Moves to the state following `origin`, if the call is currently
		in `origin`."""
		with self.lock:
			if self.state is not origin:
				return False
			self.state = TRANSITIONS[origin]
			return True

	def flush(self) -> bool:
		# The state moves before the handler runs, as the handler may very
		# well end the response (and call `done`) before returning.
		if not self.advance(CallState.Collecting):
			return False
		self.pending = self.onDispatch()
		return True

	def done(self) -> bool:
		if not self.advance(CallState.Dispatched):
			warning("Ignoring completion of a call", State=self.state.name)
			return False
		self.onDeliver()
		return True


# EOF
