"""
Shared pytest fixtures for context_logger tests.

This module provides:
- Scope isolation (no binding leaks between tests)
- In-memory output streams and an Emitter wired to them
- A sample request context and a helper to parse emitted lines
"""

import io
import json
from typing import Any, Generator

import pytest

from context_logger import ContextLogger, Emitter, LogContext, create_context
from context_logger.scope import _current


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_scope_fixture() -> Generator[None, None, None]:
    """
    Start and end every test with no context bound.

    A test that forgets to restore a push_context() token would otherwise
    leak its binding into later tests.
    """
    token = _current.set(None)
    yield
    _current.reset(token)


# =============================================================================
# Output Fixtures
# =============================================================================


@pytest.fixture
def out_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def err_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def emitter(out_stream: io.StringIO, err_stream: io.StringIO) -> Emitter:
    """Emitter writing records and diagnostics to in-memory streams."""
    return Emitter(stream=out_stream, error_stream=err_stream)


@pytest.fixture
def logger(emitter: Emitter) -> ContextLogger:
    """Logger that follows scope bindings and writes to ``out_stream``."""
    return ContextLogger(emitter=emitter)


def read_lines(stream: io.StringIO) -> list[dict[str, Any]]:
    """Parse every JSON line written to ``stream``."""
    return [json.loads(line) for line in stream.getvalue().splitlines()]


@pytest.fixture
def read_records(out_stream: io.StringIO):
    return lambda: read_lines(out_stream)


# =============================================================================
# Sample Contexts
# =============================================================================


@pytest.fixture
def request_context() -> LogContext:
    """Context for a typical API request."""
    return (
        create_context()
        .with_session_id("req-123")
        .with_category("http-request")
        .with_tags("user-service", "api")
        .with_metadata({"userId": "456", "endpoint": "/api/users"})
    )
