"""
JSON line emitter.

Rendering is a small structlog processor chain wrapped around a
ReturnLogger, so the same pipeline that would normally feed a log sink
hands back the finished JSON string instead:

    {"record": LogRecord}
        -> render_wire_fields   (LogRecord -> ordered wire dict)
        -> JSONRenderer         (dict -> str, no repr() fallback)

The line is then written with a structlog PrintLogger, which holds a
per-file lock around each print so concurrent records never interleave.

A record that cannot be serialized is not written. A single diagnostic
line goes to stderr instead and the caller never sees an exception.

Nothing here calls ``structlog.configure``; host applications keep their
own structlog and stdlib logging setup.
"""

from __future__ import annotations

import json
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, WrappedLogger

from context_logger.errors import SerializationError
from context_logger.record import LogRecord

RECORD_KEY = "record"


def render_wire_fields(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Structlog processor that replaces the event dict with the wire shape.

    Expects the LogRecord under ``event_dict["record"]``. Any other keys
    are dropped so output only ever contains the documented fields.
    """
    record: LogRecord = event_dict[RECORD_KEY]
    return record.to_wire()


class Emitter:
    """
    Serializes LogRecords to one JSON object per line.

    Args:
        stream: Output for records. ``None`` means whatever ``sys.stdout``
            is at write time.
        error_stream: Output for serialization diagnostics. ``None`` means
            ``sys.stderr`` at write time.
    """

    def __init__(self, stream: TextIO | None = None, error_stream: TextIO | None = None):
        self._stream = stream
        self._error_stream = error_stream
        self._renderer = structlog.wrap_logger(
            structlog.ReturnLogger(),
            processors=[
                render_wire_fields,
                # default=None: fail on non-JSON values instead of repr()-ing them
                # allow_nan=False: NaN/Infinity are not valid JSON
                structlog.processors.JSONRenderer(
                    serializer=json.dumps,
                    default=None,
                    ensure_ascii=False,
                    allow_nan=False,
                ),
            ],
            wrapper_class=structlog.BoundLogger,
            context_class=dict,
        )

    def render(self, record: LogRecord) -> str:
        """
        Render ``record`` to a JSON string (no trailing newline).

        Raises:
            SerializationError: the record holds a value JSON cannot encode.
        """
        try:
            return getattr(self._renderer, record.level.value)(**{RECORD_KEY: record})
        except (TypeError, ValueError, RecursionError) as e:
            raise SerializationError(str(e), level=record.level.value) from e

    def emit(self, record: LogRecord) -> None:
        """Write ``record`` as one line, or a diagnostic if it cannot be rendered."""
        try:
            line = self.render(record)
        except SerializationError as e:
            self._printer(self._error_stream, sys.stderr).msg(f"Failed to serialize log record: {e}")
            return
        self._printer(self._stream, sys.stdout).msg(line)

    @staticmethod
    def _printer(stream: TextIO | None, fallback: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(stream if stream is not None else fallback)
