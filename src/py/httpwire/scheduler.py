import asyncio
import threading
import time
from concurrent.futures import Future
from typing import Any, Awaitable, Callable, ClassVar

from .utils.logging import debug, exception

# --
# Asynchronous handlers are run on an event loop of our own, in a dedicated
# thread. Test suites often fake time (`freezegun`, `time-machine`,
# monkeypatched `time.monotonic`), which would stall any `asyncio.sleep` or
# timer of a regular loop. The loop below reads the clock captured when this
# module was imported instead.

REAL_MONOTONIC: Callable[[], float] = time.monotonic


class RealClockEventLoop(asyncio.SelectorEventLoop):
	"""An event loop whose timers always follow the real clock."""

	def time(self) -> float:
		return REAL_MONOTONIC()


class Scheduler:
	"""Runs awaitables on a background real-clock event loop."""

	INSTANCE: ClassVar["Scheduler | None"] = None

	@classmethod
	def Get(cls) -> "Scheduler":
		"""Returns the running scheduler, starting it if needed."""
		if cls.INSTANCE is None or not cls.INSTANCE.isRunning:
			cls.INSTANCE = Scheduler().start()
		return cls.INSTANCE

	@classmethod
	def Stop(cls) -> bool:
		scheduler = cls.INSTANCE
		cls.INSTANCE = None
		if scheduler:
			scheduler.stop()
			return True
		return False

	def __init__(self) -> None:
		self.loop: RealClockEventLoop | None = None
		self.thread: threading.Thread | None = None
		self.ready: threading.Event = threading.Event()

	@property
	def isRunning(self) -> bool:
		return bool(self.thread and self.thread.is_alive())

	def start(self) -> "Scheduler":
		if self.isRunning:
			return self
		self.loop = RealClockEventLoop()
		self.loop.set_exception_handler(self.onException)
		self.thread = threading.Thread(
			target=self.run, name="httpwire-scheduler", daemon=True
		)
		self.thread.start()
		self.ready.wait()
		debug("Scheduler started")
		return self

	def run(self) -> None:
		loop = self.loop
		if not loop:
			return
		asyncio.set_event_loop(loop)
		loop.call_soon(self.ready.set)
		try:
			loop.run_forever()
		finally:
			tasks = asyncio.all_tasks(loop)
			for task in tasks:
				task.cancel()
			if tasks:
				loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))
			loop.close()

	def submit(self, awaitable: Awaitable[Any]) -> "Future[Any]":
		"""Schedules the awaitable on the loop, returning a future that can
		be waited on from any thread."""
		if not self.loop or not self.isRunning:
			raise RuntimeError("Scheduler is not running")
		return asyncio.run_coroutine_threadsafe(self.awaiting(awaitable), self.loop)

	@staticmethod
	async def awaiting(awaitable: Awaitable[Any]) -> Any:
		return await awaitable

	def stop(self) -> "Scheduler":
		if self.loop and self.isRunning:
			self.loop.call_soon_threadsafe(self.loop.stop)
		if self.thread and self.thread is not threading.current_thread():
			self.thread.join()
		self.thread = None
		self.ready.clear()
		debug("Scheduler stopped")
		return self

	def onException(
		self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
	) -> None:
		e = context.get("exception")
		if e:
			exception(e)


# EOF
