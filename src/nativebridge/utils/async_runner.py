# -*- coding: utf-8 -*-
"""
src/nativebridge/utils/async_runner.py

Runs the bridge's asyncio event loop on a background thread, next to the Qt
GUI thread, and adapts callback-style native APIs into awaitables.

The GUI thread hands inbound messages to the loop with `submit`; handlers
suspend on providers without blocking the UI; responses travel back to the
GUI thread through a Qt signal emitted by the transport.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any, Awaitable, Callable, Optional

from ..core.exceptions import CapabilityError

logger = logging.getLogger(__name__)


class AsyncLoopThread:
    """
    Owns an asyncio event loop running forever in a daemon thread.

    Attributes:
        name (str): Thread name, shown in logs.
        loop (Optional[asyncio.AbstractEventLoop]): The running loop, or None
            before start() / after stop().
    """

    def __init__(self, name: str = "bridge-loop"):
        self.name = name
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> asyncio.AbstractEventLoop:
        """Starts the loop thread and waits until the loop is accepting work."""
        if self.is_running:
            logger.warning(f"Loop thread '{self.name}' is already running.")
            return self.loop

        self._ready.clear()
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        self._ready.wait()
        logger.info(f"Event loop thread '{self.name}' started.")
        return self.loop

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.call_soon(self._ready.set)
        try:
            self.loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self.loop)
            for task in pending:
                task.cancel()
            if pending:
                self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self.loop.close()

    def submit(self, coro: Awaitable[Any]) -> Future:
        """Schedules a coroutine on the loop from any thread."""
        if not self.is_running:
            raise RuntimeError(f"Loop thread '{self.name}' is not running")
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def stop(self, timeout: float = 2.0) -> None:
        if not self.is_running:
            logger.debug("Attempted to stop the loop thread, but it was not running.")
            return
        logger.info(f"Stopping event loop thread '{self.name}'.")
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout)
        self._thread = None
        self.loop = None


async def wrap_callback(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """
    Awaits a callback-style call.

    `fn` is called as `fn(*args, done, **kwargs)`; it must eventually call
    `done(result)` or `done(error=...)`, from any thread. Only the first call
    counts. A non-exception error value is raised as CapabilityError.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def done(result: Any = None, error: Any = None) -> None:
        def settle() -> None:
            if future.done():
                return
            if error is not None:
                exc = error if isinstance(error, BaseException) else CapabilityError(str(error))
                future.set_exception(exc)
            else:
                future.set_result(result)

        loop.call_soon_threadsafe(settle)

    fn(*args, done, **kwargs)
    return await future
