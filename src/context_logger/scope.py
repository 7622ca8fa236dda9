"""
Scope binding for LogContext using contextvars.

The active LogContext is held in a ContextVar, so it follows the logical
unit of work rather than the call signature:

- Threads: each thread starts with its own empty binding stack.
- asyncio: every Task runs in a copy of the context it was created in, so
  a binding made inside a task survives ``await`` and is invisible to
  sibling tasks.

Bindings nest. Entering a scope sets the var and keeps the reset token;
leaving the scope resets to that token in a ``finally`` block, so the
previous binding is restored on normal return and on exceptions alike.

Usage:
    run_with_context(ctx, handle_request, request)

    with bound_context(ctx.with_tags("database")):
        log.debug("Executing query")

    @with_log_context(ctx)
    async def job():
        await step()
        log.info("still bound after await")
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, TypeVar

from context_logger.context import LogContext

F = TypeVar("F", bound=Callable[..., Any])

_current: ContextVar[LogContext | None] = ContextVar("context_logger_current", default=None)


def current_context() -> LogContext:
    """Return the innermost bound LogContext, or a fresh empty one."""
    ctx = _current.get()
    if ctx is None:
        return LogContext()
    return ctx


class ContextToken:
    """Token for restoring the previous binding after push_context()."""

    __slots__ = ("_token", "context")

    def __init__(self, token: Token[LogContext | None], context: LogContext):
        self._token = token
        self.context = context

    def restore(self) -> None:
        """Restore the binding that was active before the push."""
        _current.reset(self._token)


def push_context(context: LogContext) -> ContextToken:
    """
    Bind ``context`` until the returned token is restored.

    Usage:
        token = push_context(ctx)
        try:
            do_work()
        finally:
            token.restore()
    """
    return ContextToken(_current.set(context), context)


@contextmanager
def bound_context(context: LogContext) -> Iterator[LogContext]:
    """Bind ``context`` for the body of a ``with`` block."""
    token = _current.set(context)
    try:
        yield context
    finally:
        _current.reset(token)


async def _await_bound(context: LogContext, awaitable: Awaitable[Any]) -> Any:
    token = _current.set(context)
    try:
        return await awaitable
    finally:
        _current.reset(token)


def run_with_context(context: LogContext, callback: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """
    Run ``callback(*args, **kwargs)`` with ``context`` bound.

    The callback's return value and exceptions pass through untouched.
    If the callback is an ``async def`` (it returns a coroutine), an
    awaitable is returned instead; awaiting it runs the coroutine with
    ``context`` bound for its whole extent, across suspension points.
    Futures and Tasks are returned as-is: a Task copies the bound context
    when it is created.

        result = run_with_context(ctx, compute, 21)
        result = await run_with_context(ctx, fetch_user, "u-1")
    """
    with bound_context(context):
        result = callback(*args, **kwargs)
    if inspect.iscoroutine(result):
        return _await_bound(context, result)
    return result


def with_log_context(context: LogContext) -> Callable[[F], F]:
    """
    Decorator that runs every call of the function with ``context`` bound.

    Works for plain functions and ``async def`` coroutine functions.
    """

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with bound_context(context):
                    return await func(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with bound_context(context):
                return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
