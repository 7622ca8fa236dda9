"""
Tests for scope binding.

Tests verify:
- current_context() is empty outside any binding
- Bindings nest and restore on normal and error exit
- Results and exceptions pass through run_with_context unchanged
- Bindings stay attached across await and are isolated per task/thread
"""

import asyncio
import threading

import pytest

from context_logger import (
    LogContext,
    bound_context,
    create_context,
    current_context,
    push_context,
    run_with_context,
    with_log_context,
)


class BoomError(Exception):
    pass


class TestCurrentContext:
    def test_empty_outside_binding(self):
        ctx = current_context()
        assert isinstance(ctx, LogContext)
        assert ctx.is_empty()

    def test_returns_bound_context(self, request_context):
        seen = run_with_context(request_context, current_context)
        assert seen == request_context

    def test_reverts_after_return(self, request_context):
        run_with_context(request_context, lambda: None)
        assert current_context().is_empty()


class TestRunWithContext:
    def test_returns_callback_result(self):
        ctx = create_context().with_session_id("calc-123")
        assert run_with_context(ctx, lambda: 42) == 42

    def test_passes_arguments(self):
        ctx = create_context()
        assert run_with_context(ctx, lambda a, b=0: a + b, 1, b=2) == 3

    def test_propagates_exception_unchanged(self):
        ctx = create_context().with_session_id("s-1")
        error = BoomError("boom")

        def fail():
            raise error

        with pytest.raises(BoomError) as exc_info:
            run_with_context(ctx, fail)
        assert exc_info.value is error

    def test_restores_after_error(self):
        outer = create_context().with_session_id("outer")

        def fail():
            raise BoomError("inner")

        def body():
            with pytest.raises(BoomError):
                run_with_context(create_context().with_session_id("inner"), fail)
            return current_context()

        assert run_with_context(outer, body) == outer
        assert current_context().is_empty()

    def test_nested_binding_shadows_outer(self):
        c1 = create_context().with_session_id("c1")
        c2 = c1.with_tags("inner")
        seen = []

        def inner():
            seen.append(current_context())

        def outer():
            seen.append(current_context())
            run_with_context(c2, inner)
            seen.append(current_context())

        run_with_context(c1, outer)
        assert seen == [c1, c2, c1]

    def test_binding_does_not_mutate_context(self, request_context):
        before = request_context.to_dict()
        run_with_context(request_context, lambda: run_with_context(create_context(), lambda: None))
        assert request_context.to_dict() == before


class TestBoundContext:
    def test_with_block(self, request_context):
        with bound_context(request_context) as ctx:
            assert ctx is request_context
            assert current_context() == request_context
        assert current_context().is_empty()

    def test_restores_on_exception(self, request_context):
        with pytest.raises(BoomError):
            with bound_context(request_context):
                raise BoomError()
        assert current_context().is_empty()


class TestPushContext:
    def test_restore(self, request_context):
        token = push_context(request_context)
        try:
            assert current_context() == request_context
            assert token.context is request_context
        finally:
            token.restore()
        assert current_context().is_empty()

    def test_nested_restore_order(self):
        c1 = create_context().with_category("one")
        c2 = create_context().with_category("two")
        t1 = push_context(c1)
        t2 = push_context(c2)
        assert current_context() == c2
        t2.restore()
        assert current_context() == c1
        t1.restore()
        assert current_context().is_empty()


class TestWithLogContext:
    def test_sync_function(self, request_context):
        @with_log_context(request_context)
        def handler(x):
            return x, current_context()

        result, seen = handler(7)
        assert result == 7
        assert seen == request_context
        assert current_context().is_empty()

    def test_preserves_metadata(self, request_context):
        @with_log_context(request_context)
        def handler():
            """Handle it."""

        assert handler.__name__ == "handler"
        assert handler.__doc__ == "Handle it."

    @pytest.mark.asyncio
    async def test_async_function(self, request_context):
        @with_log_context(request_context)
        async def handler():
            await asyncio.sleep(0)
            return current_context()

        assert await handler() == request_context
        assert current_context().is_empty()


class TestAsyncPropagation:
    @pytest.mark.asyncio
    async def test_binding_survives_await(self, request_context):
        async def work():
            before = current_context()
            await asyncio.sleep(0.01)
            return before, current_context()

        before, after = await run_with_context(request_context, work)
        assert before == request_context
        assert after == request_context
        assert current_context().is_empty()

    @pytest.mark.asyncio
    async def test_async_result_and_error_propagate(self):
        ctx = create_context()

        async def ok():
            return "success"

        async def fail():
            await asyncio.sleep(0)
            raise BoomError("async")

        assert await run_with_context(ctx, ok) == "success"
        with pytest.raises(BoomError, match="async"):
            await run_with_context(ctx, fail)
        assert current_context().is_empty()

    @pytest.mark.asyncio
    async def test_future_returned_as_is(self):
        fut = asyncio.get_running_loop().create_future()

        result = run_with_context(create_context(), lambda: fut)

        assert result is fut
        assert not result.done()
        fut.cancel()
        assert result.cancelled()

    @pytest.mark.asyncio
    async def test_task_returned_as_is_and_keeps_binding(self, request_context):
        async def body():
            await asyncio.sleep(0)
            return current_context()

        task = run_with_context(request_context, lambda: asyncio.create_task(body()))

        assert isinstance(task, asyncio.Task)
        assert await task == request_context
        assert current_context().is_empty()

    @pytest.mark.asyncio
    async def test_concurrent_tasks_are_isolated(self):
        async def work(name: str):
            ctx = create_context().with_session_id(name)

            async def body():
                seen = []
                for _ in range(5):
                    seen.append(current_context().session_id)
                    await asyncio.sleep(0)
                return seen

            return await run_with_context(ctx, body)

        results = await asyncio.gather(*(work(f"task-{i}") for i in range(5)))
        for i, seen in enumerate(results):
            assert seen == [f"task-{i}"] * 5


class TestThreadIsolation:
    def test_threads_do_not_see_each_other(self):
        barrier = threading.Barrier(4)
        results: dict[str, list[str | None]] = {}

        def worker(name: str):
            def body():
                seen = []
                for _ in range(3):
                    barrier.wait()
                    seen.append(current_context().session_id)
                return seen

            results[name] = run_with_context(create_context().with_session_id(name), body)

        threads = [threading.Thread(target=worker, args=(f"t{i}",)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == {f"t{i}": [f"t{i}"] * 3 for i in range(4)}

