import os
import sys
import time
from contextvars import ContextVar
from enum import Enum
from types import TracebackType
from typing import Any, Callable, ClassVar, NamedTuple

from .primitives import TPrimitive
from .. import config

# --
# Structured logs written to stderr, one line per entry. Calls going through
# the bridge happen in the middle of test runs, so entries are short and
# coloured by level to stand out of the test runner's own output.

ERR = sys.stderr

# The component emitting entries, `httpwire` unless overridden in a context
LogOrigin: ContextVar[str] = ContextVar("LogOrigin", default="httpwire")


class LogType(Enum):
	Message = 0
	Event = 1


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Warning = 30
	Error = 40  # A managed error
	Exception = 50  # An un-managed error


class Colors:
	"""ANSI sequences for the terminal, see https://no-color.org/"""

	ENABLED: ClassVar[bool] = "FORCE_COLOR" in os.environ or (
		"NO_COLOR" not in os.environ and ERR.isatty()
	)
	BOLD: ClassVar[str] = "\033[1m" if ENABLED else ""
	RESET: ClassVar[str] = "\033[0m" if ENABLED else ""
	LEVELS: ClassVar[dict[LogLevel, int]] = {
		LogLevel.Debug: 31,
		LogLevel.Info: 75,
		LogLevel.Warning: 202,
		LogLevel.Error: 160,
		LogLevel.Exception: 124,
	}

	@classmethod
	def Level(cls, level: LogLevel) -> str:
		return f"\033[0;38;5;{cls.LEVELS[level]}m" if cls.ENABLED else ""


LOG_LEVEL: LogLevel = LogLevel.__members__.get(config.LOG_LEVEL, LogLevel.Info)


class LogEntry(NamedTuple):
	origin: str
	time: float
	type: LogType = LogType.Message
	level: LogLevel = LogLevel.Info
	message: str | None = None
	name: str | None = None
	value: TPrimitive | None = None
	context: dict[str, TPrimitive] | None = None
	icon: str | None = None


def formatValue(value: Any) -> str:
	if value is None or value == () or value == [] or value == {}:
		return "◌"
	elif isinstance(value, bool):
		return "✓" if value else "✗"
	elif isinstance(value, dict):
		return " ".join(
			f"{Colors.BOLD}{k}{Colors.RESET}={formatValue(v)}" for k, v in value.items()
		)
	elif isinstance(value, list) or isinstance(value, tuple):
		return ",".join(formatValue(_) for _ in value)
	elif isinstance(value, str):
		return repr(value) if " " in value else value
	elif isinstance(value, float):
		return f"{value:0.2f}"
	else:
		return str(value)


def send(entry: LogEntry) -> LogEntry:
	"""Writes the entry to stderr, unless it is below the configured level."""
	if entry.level.value < LOG_LEVEL.value:
		return entry
	clr = Colors.Level(entry.level)
	origin = f"{clr}{Colors.BOLD}[{entry.origin}]{Colors.RESET}{clr}"
	context = f" {formatValue(entry.context)}" if entry.context else ""
	if entry.type is LogType.Event:
		line = f"{origin} {Colors.BOLD}{entry.name}{Colors.RESET}{clr} {formatValue(entry.value)}{context}"
	else:
		icon = f" {entry.icon}" if entry.icon else ""
		code = f" {entry.value}" if entry.value is not None else ""
		line = f"{origin}{icon}{code} {entry.message}{context}"
	ERR.write(f"{line}{Colors.RESET}\n")
	ERR.flush()
	return entry


def log(
	level: LogLevel,
	message: str,
	*,
	origin: str | None,
	icon: str | None = None,
	value: TPrimitive | None = None,
	context: dict[str, TPrimitive],
) -> LogEntry:
	return send(
		LogEntry(
			origin=origin or LogOrigin.get(),
			time=time.time(),
			level=level,
			message=message,
			value=value,
			context=context,
			icon=icon,
		)
	)


def debug(
	message: str, *, origin: str | None = None, icon: str | None = None, **context: Any
) -> LogEntry:
	return log(LogLevel.Debug, message, origin=origin, icon=icon, context=context)


def info(
	message: str, *, origin: str | None = None, icon: str | None = None, **context: Any
) -> LogEntry:
	return log(LogLevel.Info, message, origin=origin, icon=icon, context=context)


def warning(
	message: str, *, origin: str | None = None, icon: str | None = None, **context: Any
) -> LogEntry:
	return log(LogLevel.Warning, message, origin=origin, icon=icon, context=context)


def error(
	message: str,
	code: int | str | None,
	*,
	origin: str | None = None,
	icon: str | None = None,
	**context: Any,
) -> LogEntry:
	"""Logs a managed error, identified by its `code`."""
	return log(
		LogLevel.Error, message, origin=origin, icon=icon, value=code, context=context
	)


def event(
	event: str, value: Any = None, *, origin: str | None = None, **context: Any
) -> LogEntry:
	"""Logs a named occurrence, like an intercepted call."""
	return send(
		LogEntry(
			origin=origin or LogOrigin.get(),
			time=time.time(),
			type=LogType.Event,
			name=event,
			value=value,
			context=context,
		)
	)


def frames(tb: TracebackType | None) -> list[str]:
	res: list[str] = []
	while tb:
		code = tb.tb_frame.f_code
		res.append(f"... in {code.co_name:15s} at {tb.tb_lineno:4d} in {code.co_filename}")
		tb = tb.tb_next
	return res


def exception(e: BaseException, message: str | None = None) -> BaseException:
	"""Logs an un-managed exception with its traceback, and returns it so
	that it can be used as `raise exception(e)`."""
	if LOG_LEVEL.value > LogLevel.Exception.value:
		return e
	clr = Colors.Level(LogLevel.Exception)
	summary = f"[{e.__class__.__name__}] {e}"
	try:
		ERR.write(
			f"{clr}{Colors.BOLD}[{LogOrigin.get()}]{Colors.RESET}{clr} !!! {f'{message}: {summary}' if message else summary}{Colors.RESET}\n"
		)
		for line in frames(e.__traceback__):
			ERR.write(f"{clr}{line}{Colors.RESET}\n")
		ERR.flush()
	except Exception:  # nosec: B110
		# This is called from exception handlers, where failing to write
		# must not mask the original error.
		pass
	return e


LEVELS: dict[Callable[..., Any], LogLevel] = {
	debug: LogLevel.Debug,
	info: LogLevel.Info,
	warning: LogLevel.Warning,
	error: LogLevel.Error,
	event: LogLevel.Info,
}


def logged(item: Callable[..., Any]) -> bool:
	"""Tells if entries of the given logging function are currently written,
	to skip building costly entries otherwise."""
	return LEVELS.get(item, LogLevel.Info).value >= LOG_LEVEL.value


# EOF
