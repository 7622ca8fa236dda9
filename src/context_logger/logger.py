"""
Loggers.

ContextLogger ties the pieces together: look up a LogContext, assemble a
LogRecord from the call's arguments, hand it to the Emitter.

Two ways to supply the context:

    # Implicit: whatever is bound by run_with_context()/bound_context()
    log = get_logger()
    log.info("Processing user request")

    # Explicit: pinned at construction, ignores scope bindings
    log = get_logger(ctx)
    log.info("Processing user request")

The module-level debug/info/warn/error functions use a single default
logger created at import with no pinned context and a default Emitter.
"""

from __future__ import annotations

from typing import Any

from context_logger.context import LogContext
from context_logger.emitter import Emitter
from context_logger.record import LogLevel, assemble_record
from context_logger.scope import current_context


class ContextLogger:
    """Logger that stamps every record with a LogContext."""

    __slots__ = ("_context", "_emitter")

    def __init__(self, context: LogContext | None = None, emitter: Emitter | None = None):
        self._context = context
        self._emitter = emitter if emitter is not None else Emitter()

    @property
    def context(self) -> LogContext:
        """The pinned context, or the currently bound one."""
        if self._context is not None:
            return self._context
        return current_context()

    def with_context(self, context: LogContext) -> ContextLogger:
        """Return a logger pinned to ``context`` sharing this emitter."""
        return ContextLogger(context, self._emitter)

    def log(self, level: LogLevel | str, *args: Any) -> None:
        self._emitter.emit(assemble_record(level, self.context, args))

    def debug(self, *args: Any) -> None:
        self.log(LogLevel.DEBUG, *args)

    def info(self, *args: Any) -> None:
        self.log(LogLevel.INFO, *args)

    def warn(self, *args: Any) -> None:
        self.log(LogLevel.WARN, *args)

    warning = warn

    def error(self, *args: Any) -> None:
        self.log(LogLevel.ERROR, *args)

    def __repr__(self) -> str:
        return f"ContextLogger(context={self._context!r})"


def get_logger(context: LogContext | None = None, emitter: Emitter | None = None) -> ContextLogger:
    """
    Get a logger.

    Args:
        context: Pin this context. ``None`` follows scope bindings.
        emitter: Output for records. ``None`` writes to stdout.
    """
    if context is None and emitter is None:
        return _default_logger
    return ContextLogger(context, emitter)


_default_logger = ContextLogger()


def debug(*args: Any) -> None:
    """Log at debug level with the currently bound context."""
    _default_logger.debug(*args)


def info(*args: Any) -> None:
    """Log at info level with the currently bound context."""
    _default_logger.info(*args)


def warn(*args: Any) -> None:
    """Log at warn level with the currently bound context."""
    _default_logger.warn(*args)


warning = warn


def error(*args: Any) -> None:
    """Log at error level with the currently bound context."""
    _default_logger.error(*args)
