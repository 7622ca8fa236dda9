"""
context_logger - Context-scoped structured JSON logging.

This package provides:
- Immutable, copy-on-write log contexts (tags, category, metadata, session id)
- Context propagation via contextvars (threads and asyncio tasks)
- One JSON object per line on stdout, rendered through structlog

Usage:
    from context_logger import create_context, run_with_context, info

    ctx = create_context().with_session_id("req-1").with_tags("api")

    def handle():
        info("Processing user request")

    run_with_context(ctx, handle)
    # {"level": "info", "message": "Processing user request", "sessionId": "req-1",
    #  "details": {"tags": ["api"], "timestamp": "2025-01-01T00:00:00.000Z"}}
"""

from context_logger.context import ContextData, LogContext, create_context
from context_logger.emitter import Emitter
from context_logger.errors import ContextLoggerError, SerializationError
from context_logger.logger import ContextLogger, debug, error, get_logger, info, warn, warning
from context_logger.record import ErrorLike, LogLevel, LogRecord, assemble_record, extract_message
from context_logger.scope import (
    ContextToken,
    bound_context,
    current_context,
    push_context,
    run_with_context,
    with_log_context,
)

__all__ = [
    # Context
    "ContextData",
    "LogContext",
    "create_context",
    # Scope
    "run_with_context",
    "current_context",
    "bound_context",
    "push_context",
    "ContextToken",
    "with_log_context",
    # Records
    "LogLevel",
    "LogRecord",
    "ErrorLike",
    "assemble_record",
    "extract_message",
    # Output
    "Emitter",
    "ContextLogger",
    "get_logger",
    "debug",
    "info",
    "warn",
    "warning",
    "error",
    # Errors
    "ContextLoggerError",
    "SerializationError",
]
