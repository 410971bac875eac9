# -*- coding: utf-8 -*-
"""
src/nativebridge/bridge.py

One bridge session: the screen controller, both handler registries and the
dispatcher, wired together around an injected transport.

The registries are built once here and never mutated afterwards. Creating a
new Bridge (e.g. after the page reloads) gives a fresh session with no state
shared with the previous one.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .core.dispatcher import MessageDispatcher
from .core.envelope import ResponseEnvelope
from .core.registry import SCREENS, HandlerRegistry, ScreenConfig, create_screen_handlers
from .core.screens import ScreenController, ScreenPresenter
from .handlers import BluetoothCallbacks, create_handlers
from .providers import Providers, stub_providers

logger = logging.getLogger(__name__)


class Bridge:
    """
    Args:
        deliver (Callable[[str], None]): Sends serialized responses to the page.
        providers (Providers, optional): Capability providers; in-memory stubs
            when omitted.
        screens (Mapping[str, ScreenConfig]): Screen configuration.
        notify (Callable, optional): Pushes `(callback_id, data)` status events
            to the page (bluetooth status callbacks).
        escape_newlines (bool): Pre-escape line breaks in response data.
    """

    def __init__(
        self,
        deliver: Callable[[str], None],
        providers: Optional[Providers] = None,
        screens: Mapping[str, ScreenConfig] = SCREENS,
        notify: Optional[Callable[[str, Dict[str, Any]], None]] = None,
        escape_newlines: bool = True,
    ):
        self.providers = providers or stub_providers()
        self.bluetooth_callbacks = BluetoothCallbacks(notify)
        self.screens = ScreenController(self._respond)
        self.registry = HandlerRegistry(
            function_handlers=create_handlers(self.providers, self.bluetooth_callbacks),
            screen_handlers=create_screen_handlers(self.screens, screens),
        )
        self.dispatcher = MessageDispatcher(self.registry, deliver, escape_newlines=escape_newlines)
        logger.info(f"Bridge session ready with {len(self.registry.message_types)} message types.")

    def _respond(self, response: ResponseEnvelope) -> None:
        self.dispatcher.respond(response)

    def register_presenter(self, screen: str, presenter: ScreenPresenter) -> None:
        self.screens.register_presenter(screen, presenter)

    async def handle_message(self, raw: Any) -> None:
        await self.dispatcher.handle_message(raw)

    def dispatch(self, raw: Any, loop: Optional[asyncio.AbstractEventLoop] = None):
        return self.dispatcher.dispatch(raw, loop)

    def shutdown(self) -> None:
        """Resolves every open screen as cancelled so no request is left pending."""
        self.screens.close_all()
