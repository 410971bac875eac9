# -*- coding: utf-8 -*-
"""
The Utilities Package for NativeBridge.

Helpers shared by the GUI shell and the bridge core that belong to neither,
currently the background asyncio loop and the callback-to-awaitable adapter.
"""

from .async_runner import AsyncLoopThread, wrap_callback

__all__ = [
    "AsyncLoopThread",
    "wrap_callback",
]
