# -*- coding: utf-8 -*-
"""
src/nativebridge/gui/dialogs.py

ALERT rendered as a QMessageBox. The dialog handler awaits the provider on
the bridge's event-loop thread; the box itself must be shown on the GUI
thread, so the request crosses over through a queued signal and the answer
comes back through `wrap_callback`.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot
from PyQt6.QtWidgets import QMessageBox, QWidget

from ..providers.base import DialogProvider
from ..utils.async_runner import wrap_callback

logger = logging.getLogger(__name__)

_ROLES = {
    "cancel": QMessageBox.ButtonRole.RejectRole,
    "destructive": QMessageBox.ButtonRole.DestructiveRole,
}


class _AlertPresenter(QObject):
    requested = pyqtSignal(str, str, list, object)

    def __init__(self, parent_widget: Optional[QWidget] = None):
        super().__init__()
        self.parent_widget = parent_widget
        self.requested.connect(self._show)

    @pyqtSlot(str, str, list, object)
    def _show(self, title: str, message: str, buttons: List[Dict[str, Any]], done: Callable[..., None]) -> None:
        box = QMessageBox(self.parent_widget)
        box.setWindowTitle(title)
        box.setText(message)

        added = []
        for button in buttons:
            button = button if isinstance(button, dict) else {"text": str(button)}
            role = _ROLES.get(button.get("style"), QMessageBox.ButtonRole.AcceptRole)
            added.append(box.addButton(str(button.get("text", "")), role))

        box.exec()
        clicked = box.clickedButton()
        index = added.index(clicked) if clicked in added else self._cancel_index(buttons)
        logger.debug(f"Alert '{title}' answered with button {index}.")
        done(index)

    @staticmethod
    def _cancel_index(buttons: List[Dict[str, Any]]) -> int:
        for i, button in enumerate(buttons):
            if isinstance(button, dict) and button.get("style") == "cancel":
                return i
        return 0


class QtDialogProvider(DialogProvider):
    """Create on the GUI thread; `alert` may be awaited from any event loop."""

    def __init__(self, parent_widget: Optional[QWidget] = None):
        self._presenter = _AlertPresenter(parent_widget)

    async def alert(self, title: str, message: str, buttons: List[Dict[str, Any]]) -> int:
        return await wrap_callback(self._presenter.requested.emit, title, message, list(buttons))
