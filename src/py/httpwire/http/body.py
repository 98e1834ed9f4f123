from typing import Any, Iterator

from ..errors import CallStateError
from ..utils.events import Events, TListener
from ..utils.io import asBytes

# --
# A body stream is the in-memory equivalent of a socket half: one side writes
# chunks and ends it, the other side reads them either by pulling (`read`)
# or by listening to `data` and `end` events.


class BodyStream(Events):
	"""An in-memory pass-through byte stream. Everything written is kept, so
	that `payload` always returns the complete body, while `read` and the
	`data` events consume it only once."""

	__slots__ = ["data", "offset", "isEnded", "isFlowing", "hasEmittedEnd"]

	def __init__(self) -> None:
		super().__init__()
		self.data: bytearray = bytearray()
		# Number of bytes already consumed by readers
		self.offset: int = 0
		self.isEnded: bool = False
		self.isFlowing: bool = False
		self.hasEmittedEnd: bool = False

	@property
	def payload(self) -> bytes:
		return bytes(self.data)

	@property
	def length(self) -> int:
		return len(self.data)

	@property
	def remaining(self) -> int:
		return len(self.data) - self.offset

	def write(self, chunk: Any, encoding: str | None = None) -> bool:
		if self.isEnded:
			raise CallStateError("Can't write to a body stream that has ended")
		data = asBytes(chunk, encoding)
		if data:
			self.data += data
			self._flow()
		return True

	def end(self, chunk: Any = None, encoding: str | None = None) -> "BodyStream":
		if chunk is not None:
			self.write(chunk, encoding)
		self.isEnded = True
		self._flow()
		return self

	def read(self, size: int = -1) -> bytes:
		"""Reads up to `size` of the available bytes, or all of them. This
		never blocks: an empty result means either that nothing was written
		yet or that the stream is exhausted (see `isEnded`)."""
		end = len(self.data) if size < 0 else min(len(self.data), self.offset + size)
		chunk = bytes(self.data[self.offset : end])
		self.offset = end
		self._flow()
		return chunk

	def readable(self) -> bool:
		return not (self.isEnded and self.remaining == 0)

	def resume(self) -> "BodyStream":
		"""Switches the stream to flowing mode, emitting the pending data."""
		self.isFlowing = True
		self._flow()
		return self

	def on(self, event: str, callback: TListener) -> "BodyStream":
		super().on(event, callback)
		return self._listen(event)

	def once(self, event: str, callback: TListener) -> "BodyStream":
		super().once(event, callback)
		return self._listen(event)

	def _listen(self, event: str) -> "BodyStream":
		# Listening to data switches the stream to flowing mode
		if event == "data":
			self.isFlowing = True
		if event in ("data", "end"):
			self._flow()
		return self

	def _flow(self) -> None:
		if self.isFlowing and self.remaining and self.listenerCount("data"):
			chunk = bytes(self.data[self.offset :])
			self.offset = len(self.data)
			self.emit("data", chunk)
		if (
			self.isEnded
			and not self.remaining
			and not self.hasEmittedEnd
			and self.listenerCount("end")
		):
			self.hasEmittedEnd = True
			self.emit("end")

	def __iter__(self) -> Iterator[bytes]:
		"""Iterates on the chunks available so far."""
		while self.remaining:
			yield self.read()

	def __repr__(self) -> str:
		return f"BodyStream(length={self.length}, offset={self.offset}, ended={self.isEnded})"


# EOF
