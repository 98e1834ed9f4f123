from typing import Any, Callable
from mypy_extensions import VarArg

TListener = Callable[[VarArg(Any)], Any]


class Events:
	"""A minimal synchronous event emitter, listeners are invoked in
	registration order from within `emit`."""

	__slots__ = ["listeners"]

	def __init__(self) -> None:
		self.listeners: dict[str, list[tuple[TListener, bool]]] = {}

	def on(self, event: str, callback: TListener) -> "Events":
		"""Binds the callback to the given event."""
		self.listeners.setdefault(event, []).append((callback, False))
		return self

	def once(self, event: str, callback: TListener) -> "Events":
		"""Binds the callback to the next occurrence of the event only."""
		self.listeners.setdefault(event, []).append((callback, True))
		return self

	def off(self, event: str, callback: TListener) -> "Events":
		listeners = self.listeners.get(event)
		if listeners:
			self.listeners[event] = [_ for _ in listeners if _[0] is not callback]
		return self

	def removeAllListeners(self, event: str | None = None) -> "Events":
		if event is None:
			self.listeners.clear()
		else:
			self.listeners.pop(event, None)
		return self

	def listenerCount(self, event: str) -> int:
		return len(self.listeners.get(event) or ())

	def emit(self, event: str, *args: Any) -> bool:
		"""Invokes the listeners bound to the event, returning `True` when
		there was at least one."""
		listeners = self.listeners.get(event)
		if not listeners:
			return False
		# Once listeners are dropped before being called, so that an
		# emission from within a listener doesn't trigger them twice.
		self.listeners[event] = [_ for _ in listeners if not _[1]]
		for callback, _ in listeners:
			callback(*args)
		return True


# EOF
