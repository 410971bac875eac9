# -*- coding: utf-8 -*-
"""
src/nativebridge/core/dispatcher.py

The message dispatcher: the native end of the bridge.

Raw text from the web page is decoded into a request envelope, routed to a
screen handler or a function handler, and turned into exactly one response
envelope, which is handed to the injected `deliver` callable (the
transport). Nothing raised while doing so crosses the boundary: parse
failures, unknown types and handler exceptions all become `success: false`
responses.
"""

import asyncio
import inspect
import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Optional, Set

from .envelope import (
    PARSE_ERROR_ID,
    MessageEnvelope,
    ResponseEnvelope,
    error_response,
    parse_message,
    serialize_response,
    success_response,
)
from .exceptions import CapabilityError, EnvelopeParseError
from .registry import FunctionHandler, HandlerRegistry

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """
    Routes inbound messages and sends their responses.

    Each message is handled independently; async handlers may complete in
    any order and the responses go out in completion order.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        deliver: Callable[[str], None],
        escape_newlines: bool = True,
    ):
        """
        Args:
            registry (HandlerRegistry): The session's handler maps.
            deliver (Callable[[str], None]): Transport; receives serialized
                response envelopes.
            escape_newlines (bool): Pre-escape line breaks in response data
                for script-injection transports.
        """
        self.registry = registry
        self._deliver = deliver
        self._escape_newlines = escape_newlines
        self._in_flight: Set[str] = set()
        self._lock = threading.Lock()

    # --- Outbound ---

    def respond(self, response: ResponseEnvelope) -> None:
        """
        Serializes and delivers one response. Shared with the screen controller.

        Sending the response releases its request id, so the page may reuse it.
        """
        self._release(response.id)
        serialized = serialize_response(response, escape_newlines=self._escape_newlines)
        if response.success:
            logger.debug(f"Response {response.id}: success")
        else:
            logger.debug(f"Response {response.id}: error '{response.error}'")
        try:
            self._deliver(serialized)
        except Exception as e:
            logger.error(f"Transport failed to deliver response {response.id}: {e}", exc_info=True)

    # --- Inbound ---

    def in_flight(self, request_id: str) -> bool:
        with self._lock:
            return request_id in self._in_flight

    async def handle_message(self, raw: Any) -> None:
        """
        Handles one raw inbound message end to end.

        Exactly one of the following happens: screen dispatch (the controller
        answers later), function dispatch, an "unsupported message type"
        error, or a parse error with the sentinel id.
        """
        try:
            message = parse_message(raw)
        except EnvelopeParseError as e:
            logger.warning(f"Dropping malformed message: {e}")
            self.respond(error_response(PARSE_ERROR_ID, f"failed to parse message: {e}"))
            return

        logger.debug(f"Dispatching {message.type} (id={message.id})")

        if not self._claim(message.id):
            # The first request with this id still owes its response.
            logger.warning(f"Ignoring duplicate request id {message.id} while it is in flight.")
            return

        screen_handler = self.registry.screen_handler(message.type)
        if screen_handler is not None:
            try:
                screen_handler(message.id, message.payload)
            except Exception as e:
                logger.error(f"Screen handler for {message.type} failed: {e}", exc_info=True)
                self.respond(error_response(message.id, f"error while handling {message.type}: {e}"))
            return

        handler = self.registry.function_handler(message.type)
        if handler is None:
            logger.warning(f"No handler registered for {message.type}")
            self.respond(error_response(message.id, f"unsupported message type: {message.type}"))
            return

        try:
            response = await self._invoke(handler, message)
        except asyncio.CancelledError:
            self._release(message.id)
            raise
        self.respond(response)

    def dispatch(self, raw: Any, loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Schedules `handle_message` without waiting for it.

        Called from the loop's own thread, pass no loop: a Task is returned.
        Called from another thread (e.g. the GUI thread), pass the loop: a
        concurrent.futures.Future is returned.
        """
        if loop is None:
            return asyncio.get_running_loop().create_task(self.handle_message(raw))
        return asyncio.run_coroutine_threadsafe(self.handle_message(raw), loop)

    # --- Internals ---

    def _claim(self, request_id: str) -> bool:
        """Marks an id as awaiting its response. False if it already is."""
        with self._lock:
            if request_id in self._in_flight:
                return False
            self._in_flight.add(request_id)
            return True

    def _release(self, request_id: str) -> None:
        with self._lock:
            self._in_flight.discard(request_id)

    async def _invoke(self, handler: FunctionHandler, message: MessageEnvelope) -> ResponseEnvelope:
        try:
            result = handler(message.id, message.payload)
            if inspect.isawaitable(result):
                result = await result
        except CapabilityError as e:
            logger.warning(f"{message.type} (id={message.id}) failed: {e}")
            return error_response(message.id, str(e))
        except Exception as e:
            logger.error(f"Handler for {message.type} raised: {e}", exc_info=True)
            return error_response(message.id, f"error while handling {message.type}: {e}")

        if not isinstance(result, ResponseEnvelope):
            result = success_response(message.id, result)
        if result.id != message.id:
            logger.warning(f"Handler for {message.type} answered with id {result.id}; using {message.id}.")
            result = replace(result, id=message.id)
        return result
