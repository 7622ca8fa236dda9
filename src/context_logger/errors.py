"""
Error types for context_logger.

The logger itself is total: building contexts, binding scopes and logging
never raise for any input. The one failure the package models is a record
that cannot be serialized, which the emitter reports on stderr and drops.
"""


class ContextLoggerError(Exception):
    """Base class for all context_logger errors."""


class SerializationError(ContextLoggerError):
    """A log record could not be rendered to JSON.

    The original ``TypeError``/``ValueError`` from the JSON encoder is
    chained as ``__cause__``.
    """

    def __init__(self, reason: str, level: str | None = None):
        super().__init__(reason)
        self.reason = reason
        self.level = level

    def __str__(self) -> str:
        if self.level:
            return f"{self.reason} (level={self.level})"
        return self.reason
