# -*- coding: utf-8 -*-
"""
src/nativebridge/gui/presenters.py

Screen presenters that open Qt windows. The screen controller calls
`show` from the bridge's event-loop thread; windows can only be created on
the GUI thread, so the call is forwarded through a queued signal.
"""

import logging
from typing import Any, Callable, Dict, Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from ..core.screens import ScreenPresenter
from .viewfinder import Viewfinder

logger = logging.getLogger(__name__)

Complete = Callable[[Optional[Any]], None]
WindowFactory = Callable[[Complete, Dict[str, Any]], Viewfinder]


class GuiInvoker(QObject):
    """Runs callables on the thread that created it (the GUI thread)."""

    invoke = pyqtSignal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.invoke.connect(self._run)

    @pyqtSlot(object)
    def _run(self, fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception as e:
            logger.error(f"GUI call failed: {e}", exc_info=True)


class WindowPresenter(ScreenPresenter):
    """
    Presents a screen by opening a Viewfinder window built by `factory`.

    Create on the GUI thread.
    """

    def __init__(self, name: str, factory: WindowFactory):
        self.name = name
        self.factory = factory
        self.window: Optional[Viewfinder] = None
        self._invoker = GuiInvoker()

    def show(self, request_id: str, options: Dict[str, Any], complete: Complete) -> None:
        self._invoker.invoke.emit(lambda: self._open(request_id, options, complete))

    def _open(self, request_id: str, options: Dict[str, Any], complete: Complete) -> None:
        logger.info(f"Opening {self.name} window for request {request_id}.")
        try:
            window = self.factory(complete, options)
        except Exception as e:
            logger.error(f"Could not create the {self.name} window: {e}", exc_info=True)
            complete(None)
            return
        if not window.start():
            # No camera: the request resolves as cancelled.
            window.finish(None)
            return
        self.window = window
        window.destroyed.connect(lambda *_: self._forget())

    def _forget(self) -> None:
        self.window = None
