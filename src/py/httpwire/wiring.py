from contextlib import contextmanager
from typing import Any, ClassVar, Iterator

from . import connection
from .client import Transport, Transports
from .interceptor import Interceptor, THandler
from .scheduler import Scheduler
from .utils.logging import debug, warning

# -----------------------------------------------------------------------------
#
# WIRING
#
# -----------------------------------------------------------------------------


class Wiring:
	"""The process-wide registry of the handler that outgoing calls are
	wired to. There is a single wired handler at a time: wiring again while
	wired rebinds the handler (last wins) and is logged, calls are never
	multiplexed between handlers."""

	INSTANCE: ClassVar["Wiring | None"] = None

	@classmethod
	def Install(cls, handler: THandler) -> "Wiring":
		if cls.INSTANCE is not None:
			warning(
				"Outgoing calls are already wired, rebinding to the new handler",
				Previous=repr(cls.INSTANCE.handler),
				Handler=repr(handler),
			)
			cls.INSTANCE.interceptor.handler = handler
			return cls.INSTANCE
		wiring = Wiring(handler)
		# The instance is registered once installed, so that a failure
		# leaves nothing half-wired.
		wiring.install()
		cls.INSTANCE = wiring
		return wiring

	@classmethod
	def Uninstall(cls) -> bool:
		wiring = cls.INSTANCE
		if wiring is None:
			return False
		cls.INSTANCE = None
		wiring.uninstall()
		return True

	@classmethod
	def IsWired(cls) -> bool:
		return cls.INSTANCE is not None

	@classmethod
	def Handler(cls) -> THandler | None:
		return cls.INSTANCE.handler if cls.INSTANCE else None

	def __init__(self, handler: THandler) -> None:
		self.interceptor: Interceptor = Interceptor(handler)
		self.previousTransport: Transport | None = None
		self.previousConnections: tuple[type[Any], type[Any]] | None = None

	@property
	def handler(self) -> THandler:
		return self.interceptor.handler

	def install(self) -> "Wiring":
		# Asynchronous handlers need the scheduler's loop to make progress
		Scheduler.Get()
		self.previousTransport = Transports.Set(self.interceptor)
		self.previousConnections = connection.patch()
		debug("Outgoing calls wired", Handler=repr(self.handler))
		return self

	def uninstall(self) -> "Wiring":
		if self.previousConnections is not None:
			connection.restore(self.previousConnections)
			self.previousConnections = None
		Transports.Set(self.previousTransport)
		self.previousTransport = None
		Scheduler.Stop()
		debug("Outgoing calls unwired")
		return self


# -----------------------------------------------------------------------------
#
# API
#
# -----------------------------------------------------------------------------


def wire(handler: THandler) -> Wiring:
	"""Routes every outgoing call made with `httpwire.client` or
	`http.client` (and so `urllib.request`) to `handler(request, response)`
	instead of the network. Wiring again replaces the handler."""
	return Wiring.Install(handler)


def unwire() -> bool:
	"""Restores the network as the destination of outgoing calls, returning
	`False` when nothing was wired."""
	return Wiring.Uninstall()


@contextmanager
def wired(handler: THandler) -> Iterator[Wiring]:
	"""Wires the handler for the duration of the block."""
	wiring = wire(handler)
	try:
		yield wiring
	finally:
		unwire()


# EOF
