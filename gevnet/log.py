"""Levelled logging with a replaceable backend and a message prefix."""

from __future__ import annotations

import os
import sys
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Protocol


class Level(IntEnum):
    """Log levels; a message is written when its level is <= the current one."""

    FATAL = 1
    INFO = 2
    ERROR = 3
    DEBUG = 4


class Logger(Protocol):
    def log(self, *args: Any) -> None: ...

    def logf(self, format: str, *args: Any) -> None: ...


def _sprint(args: tuple[Any, ...]) -> str:
    """Join operands, adding a space between two neighbours that are not strings."""
    parts: list[str] = []
    previous: Any = None
    for position, arg in enumerate(args):
        if position and not isinstance(arg, str) and not isinstance(previous, str):
            parts.append(" ")
        parts.append(str(arg))
        previous = arg
    return "".join(parts)


def _format(format: str, args: tuple[Any, ...]) -> str:
    return format % args if args else format


class DefaultLogger:
    """Writes timestamped lines to standard error."""

    def _write(self, message: str) -> None:
        stamp = time.strftime("%Y/%m/%d %H:%M:%S")
        if not message.endswith("\n"):
            message += "\n"
        sys.stderr.write(f"{stamp} {message}")
        sys.stderr.flush()

    def log(self, *args: Any) -> None:
        self._write(_sprint(args))

    def logf(self, format: str, *args: Any) -> None:
        self._write(_format(format, args))


_LEVELS_FROM_ENV = {
    "debug": Level.DEBUG,
    "info": Level.INFO,
    "error": Level.ERROR,
    "fatal": Level.FATAL,
}


@dataclass
class _LogState:
    logger: Logger = field(default_factory=DefaultLogger)
    level: Level = Level.INFO
    prefix: str = "[Gev]"


_state = _LogState(
    level=_LEVELS_FROM_ENV.get(os.environ.get("GEV_LOG_LEVEL", ""), Level.INFO)
)


def log(*args: Any) -> None:
    """Log the operands through the current logger, prefixed."""
    if _state.prefix:
        _state.logger.log(_state.prefix, " ", *args)
    else:
        _state.logger.log(*args)


def logf(format: str, *args: Any) -> None:
    """Log a %-format message through the current logger, prefixed."""
    if _state.prefix:
        format = f"{_state.prefix} {format}"
    _state.logger.logf(format, *args)


def with_level(level: Level, *args: Any) -> None:
    if level > _state.level:
        return
    log(*args)


def with_levelf(level: Level, format: str, *args: Any) -> None:
    if level > _state.level:
        return
    logf(format, *args)


def debug(*args: Any) -> None:
    with_level(Level.DEBUG, *args)


def debugf(format: str, *args: Any) -> None:
    with_levelf(Level.DEBUG, format, *args)


def info(*args: Any) -> None:
    with_level(Level.INFO, *args)


def infof(format: str, *args: Any) -> None:
    with_levelf(Level.INFO, format, *args)


def error(*args: Any) -> None:
    with_level(Level.ERROR, *args)


def errorf(format: str, *args: Any) -> None:
    with_levelf(Level.ERROR, format, *args)


def fatal(*args: Any) -> None:
    """Log at fatal level, then exit with status 1."""
    with_level(Level.FATAL, *args)
    sys.exit(1)


def fatalf(format: str, *args: Any) -> None:
    """Log a formatted message at fatal level, then exit with status 1."""
    with_levelf(Level.FATAL, format, *args)
    sys.exit(1)


def set_logger(logger: Logger) -> None:
    """Replace the backend that receives every message."""
    if logger is None:
        raise ValueError("logger must not be None")
    _state.logger = logger


def get_logger() -> Logger:
    return _state.logger


def set_level(level: Level) -> None:
    _state.level = Level(level)


def get_level() -> Level:
    return _state.level


def set_prefix(prefix: str) -> None:
    """Set the text written before every message; empty disables it."""
    _state.prefix = str(prefix)


def name(name: str) -> None:
    """Use the service name, in brackets, as the prefix."""
    set_prefix(f"[{name}]")