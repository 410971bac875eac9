"""Tests for the background event loop thread and the callback adapter."""
import asyncio
import threading

import pytest

from nativebridge.core.exceptions import CapabilityError
from nativebridge.utils import AsyncLoopThread, wrap_callback


class TestWrapCallback:

    @pytest.mark.asyncio
    async def test_result_from_another_thread(self):
        def native_call(value, done):
            threading.Thread(target=lambda: done(value * 2)).start()

        assert await wrap_callback(native_call, 21) == 42

    @pytest.mark.asyncio
    async def test_only_first_completion_counts(self):
        def native_call(done):
            done("first")
            done("second")

        assert await wrap_callback(native_call) == "first"

    @pytest.mark.asyncio
    async def test_error_values_become_capability_errors(self):
        def native_call(done):
            done(error="permission denied")

        with pytest.raises(CapabilityError, match="permission denied"):
            await wrap_callback(native_call)

    @pytest.mark.asyncio
    async def test_exceptions_are_raised_as_is(self):
        def native_call(done):
            done(error=TimeoutError("no answer"))

        with pytest.raises(TimeoutError):
            await wrap_callback(native_call)


class TestAsyncLoopThread:

    def test_submit_runs_on_the_loop_thread(self):
        runner = AsyncLoopThread(name="test-loop")
        runner.start()
        try:
            async def where():
                await asyncio.sleep(0)
                return threading.current_thread().name

            assert runner.submit(where()).result(timeout=2) == "test-loop"
        finally:
            runner.stop()

        assert not runner.is_running
        assert runner.loop is None

    def test_submit_requires_a_running_loop(self):
        runner = AsyncLoopThread()

        async def nothing():
            return None

        coro = nothing()
        with pytest.raises(RuntimeError):
            runner.submit(coro)
        coro.close()

    def test_stop_cancels_pending_work(self):
        runner = AsyncLoopThread()
        runner.start()
        future = runner.submit(asyncio.sleep(60))

        runner.stop()

        assert future.cancelled() or future.done()
