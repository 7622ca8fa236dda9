"""
Log record assembly.

Turns the active LogContext plus the positional arguments of a log call
into a LogRecord. Two pieces of logic live here:

1. Context fields. Empty fields are left out, tags are sorted so output is
   reproducible, metadata is copied.

2. Message/stack extraction from the argument list:

   ======================  ======================================  ==========
   args                    message                                 stack
   ======================  ======================================  ==========
   ()                      None                                    None
   (value,)                str(value)                              None
   (err,)                  str(err)                                trace(err)
   (a, b, ..., z)          "a b ... z"                             None
   (a, err)                "a " + str(err)                         trace(err)
   (a, b, c, err)          "abc " + str(err)                       trace(err)
   ======================  ======================================  ==========

   With a trailing error, the middle arguments are concatenated without a
   separator and a single space goes before the error text. Existing log
   consumers depend on this exact shape.
"""

from __future__ import annotations

import traceback
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from context_logger.context import LogContext


class LogLevel(str, Enum):
    """Record levels as they appear on the wire."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@runtime_checkable
class ErrorLike(Protocol):
    """
    Anything that is not an exception but should be logged like one.

    ``str(value)`` is used as the display string and ``format_trace()`` as
    the extended representation placed in ``details.stack``.
    """

    def format_trace(self) -> str: ...


def utc_now_rfc3339() -> str:
    """Return current UTC time in RFC3339 format with Z suffix."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def is_error_like(value: Any) -> bool:
    """Exceptions, or instances (not classes) with a callable ``format_trace``."""
    if isinstance(value, BaseException):
        return True
    if isinstance(value, type):
        return False
    return callable(getattr(value, "format_trace", None))


def format_trace(error: Any) -> str | None:
    """
    Extended representation of an error-like value (traceback if it has one).

    Returns None when ``format_trace()`` does not produce a string, in which
    case the value is logged as a plain value.
    """
    if isinstance(error, BaseException):
        return "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip("\n")
    if not is_error_like(error):
        return None
    trace = error.format_trace()
    return trace if isinstance(trace, str) else None


@dataclass(frozen=True)
class LogRecord:
    """One fully assembled log event, ready for serialization."""

    level: LogLevel
    timestamp: str
    message: str | None = None
    session_id: str | None = None
    tags: tuple[str, ...] = ()
    category: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    stack: str | None = None

    def details(self) -> dict[str, Any]:
        """The ``details`` object, empty fields omitted, timestamp last."""
        details: dict[str, Any] = {}
        if self.tags:
            details["tags"] = list(self.tags)
        if self.category:
            details["category"] = self.category
        if self.metadata:
            details["metadata"] = dict(self.metadata)
        if self.stack:
            details["stack"] = self.stack
        details["timestamp"] = self.timestamp
        return details

    def to_wire(self) -> dict[str, Any]:
        """Wire-format dict with keys in output order."""
        wire: dict[str, Any] = {"level": self.level.value}
        if self.message is not None:
            wire["message"] = self.message
        if self.session_id:
            wire["sessionId"] = self.session_id
        wire["details"] = self.details()
        return wire


def extract_message(args: Sequence[Any]) -> tuple[str | None, str | None]:
    """
    Split logged values into ``(message, stack)``.

    See the module docstring for the exact rules.
    """
    if not args:
        return None, None

    if len(args) == 1:
        value = args[0]
        return str(value), format_trace(value)

    first = str(args[0])
    last = args[-1]
    stack = format_trace(last)
    if stack is not None:
        if len(args) == 2:
            return f"{first} {last!s}", stack
        middle = "".join(str(arg) for arg in args[1:-1])
        return f"{first}{middle} {last!s}", stack

    return " ".join(str(arg) for arg in args), None


def assemble_record(level: LogLevel | str, context: LogContext, args: Sequence[Any]) -> LogRecord:
    """
    Build a LogRecord from a context and the positional args of a log call.

    The context is only read. Tags are sorted by their string form so
    the order does not depend on set iteration.
    """
    message, stack = extract_message(args)
    data = context.data
    return LogRecord(
        level=LogLevel(level),
        timestamp=utc_now_rfc3339(),
        message=message,
        session_id=data.session_id or None,
        tags=tuple(sorted(data.tags, key=str)),
        category=data.category or None,
        metadata=dict(data.metadata),
        stack=stack,
    )
