from typing import Any


class WireError(Exception):
	"""Base class for errors raised by the bridge itself. Errors raised by
	handlers are never wrapped."""


class CallSetupError(WireError):
	"""Raised in strict mode when an outgoing call can't be intercepted,
	typically because its arguments are malformed."""

	def __init__(self, message: str, args: tuple[Any, ...] = ()):
		super().__init__(message)
		self.message: str = message
		self.rawArgs: tuple[Any, ...] = args


class CallStateError(WireError):
	"""Raised when a call is used in a way its current state does not
	allow, like writing a body chunk after the call has ended."""


# EOF
