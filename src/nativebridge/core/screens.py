# -*- coding: utf-8 -*-
"""
src/nativebridge/core/screens.py

Screen controller: the lifecycle of full-screen native flows (camera
viewfinder, ID-card scan) that resolve a bridge request through user
interaction.

Each screen identity is a small state machine, Idle -> Visible -> Idle. A
screen handler moves it to Visible and records the id of the request that
opened it; the presenter's completion moves it back to Idle and produces the
one response for that request: success with the presenter's result, or a
cancellation error when the presenter closed without one.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from .envelope import ResponseEnvelope, error_response, success_response
from .exceptions import ScreenAlreadyOpenError, ScreenError

logger = logging.getLogger(__name__)

ScreenListener = Callable[[str, Optional["ScreenState"]], None]


@dataclass(frozen=True)
class ScreenState:
    """The pending state of a visible screen."""
    callback_id: str
    options: Dict[str, Any] = field(default_factory=dict)
    visible: bool = True


class ScreenPresenter(ABC):
    """
    A UI flow that shows a screen and later reports its outcome.

    `complete` must be called exactly once: with the result, or with None when
    the user cancelled.
    """

    @abstractmethod
    def show(self, request_id: str, options: Dict[str, Any],
             complete: Callable[[Optional[Any]], None]) -> None:
        ...


class ScreenController:
    """
    Owns the single active state per screen identity.

    A second show for a screen that is already visible is rejected with an
    "already open" error response; the first request keeps waiting for its
    own result. Transitions are atomic under a lock, and closing a screen that
    is not visible (or whose request already resolved) does nothing, so no
    request is answered twice.
    """

    def __init__(self, respond: Callable[[ResponseEnvelope], None]):
        """
        Args:
            respond (Callable): Sends a response envelope back to the web page.
        """
        self._respond = respond
        self._lock = threading.Lock()
        self._states: Dict[str, ScreenState] = {}
        self._presenters: Dict[str, ScreenPresenter] = {}
        self._listeners: List[ScreenListener] = []

    # --- Wiring ---

    def register_presenter(self, screen: str, presenter: ScreenPresenter) -> None:
        self._presenters[screen] = presenter
        logger.debug(f"Presenter registered for screen '{screen}'.")

    def add_listener(self, listener: ScreenListener) -> None:
        """Listeners observe every transition; they get None when a screen goes idle."""
        self._listeners.append(listener)

    # --- Queries ---

    def state(self, screen: str) -> Optional[ScreenState]:
        with self._lock:
            return self._states.get(screen)

    def is_visible(self, screen: str) -> bool:
        return self.state(screen) is not None

    @property
    def visible_screens(self) -> List[str]:
        with self._lock:
            return list(self._states)

    # --- Transitions ---

    def show(self, screen: str, request_id: str, options: Optional[Dict[str, Any]] = None) -> bool:
        """
        Idle -> Visible.

        Always returns True: the response for `request_id` is now this
        controller's responsibility, whether it comes later from the presenter
        or right away as an "already open" / presentation error.
        """
        try:
            state = self._activate(screen, request_id, dict(options or {}))
        except ScreenAlreadyOpenError as e:
            logger.warning(f"Rejecting request {request_id}: {e}")
            self._send(error_response(request_id, str(e)))
            return True

        logger.info(f"Showing screen '{screen}' for request {request_id}.")
        self._notify(screen, state)

        presenter = self._presenters.get(screen)
        if presenter is None:
            logger.debug(f"No presenter for '{screen}'; waiting for an external close.")
            return True

        try:
            presenter.show(request_id, dict(state.options), partial(self.close, screen, callback_id=request_id))
        except Exception as e:
            logger.error(f"Presenter for '{screen}' failed to show: {e}", exc_info=True)
            self._abort(screen, request_id, ScreenError(f"{screen} could not be presented: {e}"))
        return True

    def close(self, screen: str, result: Optional[Any] = None, callback_id: Optional[str] = None) -> bool:
        """
        Visible -> Idle, sending the response for the pending request.

        Args:
            screen (str): Screen identity.
            result: The presenter's result, or None for a cancellation.
            callback_id (str, optional): When given, only the state opened by
                this request is closed; a late completion from an earlier
                presentation is ignored.

        Returns:
            bool: True if a response was sent, False if the close was a no-op.
        """
        with self._lock:
            state = self._states.get(screen)
            if state is None or (callback_id is not None and state.callback_id != callback_id):
                stale = True
            else:
                stale = False
                del self._states[screen]

        if stale:
            logger.debug(f"Ignoring close for '{screen}': no matching pending request.")
            return False

        self._notify(screen, None)
        if result is not None:
            self._send(success_response(state.callback_id, result))
        else:
            logger.info(f"Screen '{screen}' cancelled (request {state.callback_id}).")
            self._send(error_response(state.callback_id, f"{screen} was cancelled"))
        return True

    def close_all(self) -> None:
        """Cancels every visible screen, e.g. when the bridge shuts down."""
        for screen in self.visible_screens:
            self.close(screen)

    # --- Internals ---

    def _activate(self, screen: str, request_id: str, options: Dict[str, Any]) -> ScreenState:
        with self._lock:
            active = self._states.get(screen)
            if active is not None:
                raise ScreenAlreadyOpenError(f"{screen} is already open")
            state = ScreenState(callback_id=request_id, options=options)
            self._states[screen] = state
            return state

    def _abort(self, screen: str, request_id: str, error: ScreenError) -> None:
        with self._lock:
            state = self._states.get(screen)
            if state is None or state.callback_id != request_id:
                return
            del self._states[screen]
        self._notify(screen, None)
        self._send(error_response(request_id, str(error)))

    def _notify(self, screen: str, state: Optional[ScreenState]) -> None:
        for listener in list(self._listeners):
            try:
                listener(screen, state)
            except Exception as e:
                logger.error(f"Screen listener failed: {e}", exc_info=True)

    def _send(self, response: ResponseEnvelope) -> None:
        self._respond(response)
