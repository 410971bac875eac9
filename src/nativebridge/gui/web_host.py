# -*- coding: utf-8 -*-
"""
src/nativebridge/gui/web_host.py

Hosts the web application in a Qt WebEngine view and carries bridge
messages both ways.

Inbound, the page calls `window.ReactNativeWebView.postMessage(json)`; an
injected shim forwards that to the `BridgeChannel.postMessage` slot over
QWebChannel. Outbound, `WebViewTransport.deliver` dispatches a `message`
event on the page's window with the serialized response as `event.data`.
Deliveries may come from the bridge's event-loop thread, so they are
marshalled to the GUI thread through a queued Qt signal.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from PyQt6.QtCore import QFile, QIODevice, QObject, QUrl, pyqtSignal, pyqtSlot
from PyQt6.QtWebChannel import QWebChannel
from PyQt6.QtWebEngineCore import QWebEnginePage, QWebEngineScript
from PyQt6.QtWebEngineWidgets import QWebEngineView
from PyQt6.QtWidgets import QMainWindow

from ..core.envelope import message_event_script, status_change_script

logger = logging.getLogger(__name__)

CHANNEL_OBJECT_NAME = "nativeBridge"

# Defines window.ReactNativeWebView before any page script runs. Messages
# posted before the channel is connected are queued and flushed on connect.
BRIDGE_SHIM_JS = """
(function () {
  if (window.ReactNativeWebView) { return; }
  var queue = [];
  var target = null;
  window.ReactNativeWebView = {
    postMessage: function (message) {
      message = String(message);
      if (target) { target.postMessage(message); } else { queue.push(message); }
    }
  };
  new QWebChannel(qt.webChannelTransport, function (channel) {
    target = channel.objects.%s;
    queue.splice(0).forEach(function (m) { target.postMessage(m); });
  });
})();
""" % CHANNEL_OBJECT_NAME


def _read_qrc_text(path: str) -> str:
    """Reads a Qt resource file as UTF-8 text."""
    f = QFile(path)
    if f.open(QIODevice.OpenModeFlag.ReadOnly):
        data = bytes(f.readAll()).decode("utf-8", errors="replace")
        f.close()
        return data
    return ""


class BridgePage(QWebEnginePage):
    """Forwards the page's console output to Python logging."""

    _LEVELS = {
        QWebEnginePage.JavaScriptConsoleMessageLevel.InfoMessageLevel: logging.INFO,
        QWebEnginePage.JavaScriptConsoleMessageLevel.WarningMessageLevel: logging.WARNING,
        QWebEnginePage.JavaScriptConsoleMessageLevel.ErrorMessageLevel: logging.ERROR,
    }

    def javaScriptConsoleMessage(self, level, message, line, source):
        logger.log(self._LEVELS.get(level, logging.INFO), f"[page] {message} ({source}:{line})")


class WebViewTransport(QObject):
    """
    Outbound side of the bridge. `deliver` and `notify` are safe to call from
    any thread.
    """

    script_requested = pyqtSignal(str)

    def __init__(self, page: QWebEnginePage, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.page = page
        self.script_requested.connect(self._run_script)

    def deliver(self, serialized: str) -> None:
        self.script_requested.emit(message_event_script(serialized))

    def notify(self, callback_id: str, data: Dict[str, Any]) -> None:
        """
        Reports a bluetooth status to the page. Status pushes are not
        responses, so nothing is sent under `callback_id`.
        """
        logger.debug(f"Bluetooth status {data.get('status')} for callback {callback_id}.")
        self.script_requested.emit(status_change_script(data.get("status"), data.get("message")))

    @pyqtSlot(str)
    def _run_script(self, script: str) -> None:
        self.page.runJavaScript(script)


class BridgeChannel(QObject):
    """
    Inbound side of the bridge, registered on the page's QWebChannel.

    Args:
        submit (Callable[[str], Any]): Receives every raw message; the app
            hands it to the bridge on the event-loop thread.
    """

    def __init__(self, submit: Callable[[str], Any], parent: Optional[QObject] = None):
        super().__init__(parent)
        self._submit = submit

    @pyqtSlot(str)
    def postMessage(self, message: str) -> None:
        logger.debug(f"Inbound bridge message ({len(message)} chars).")
        try:
            self._submit(message)
        except Exception as e:
            logger.error(f"Could not hand the message to the bridge: {e}", exc_info=True)


class WebHostWindow(QMainWindow):
    """
    Main window: a web view with the bridge channel and shim installed.

    Subscribed to the screen controller, it greys out the page and names the
    open screen in the status bar while a native screen is visible.
    """

    screen_changed = pyqtSignal(str, bool)

    def __init__(self, submit: Callable[[str], Any], title: str = "NativeBridge"):
        super().__init__()
        self.setWindowTitle(title)
        self.resize(420, 860)

        self.view = QWebEngineView(self)
        self.page = BridgePage(self.view)
        self.view.setPage(self.page)
        self.setCentralWidget(self.view)

        self.channel_object = BridgeChannel(submit, self)
        self.channel = QWebChannel(self.page)
        self.channel.registerObject(CHANNEL_OBJECT_NAME, self.channel_object)
        self.page.setWebChannel(self.channel)
        self._install_shim()

        self.transport = WebViewTransport(self.page, self)

        self._open_screens: List[str] = []
        self.screen_changed.connect(self._on_screen_changed)

    def _install_shim(self) -> None:
        qwc_js = _read_qrc_text(":/qtwebchannel/qwebchannel.js")
        if not qwc_js:
            logger.error("qwebchannel.js not found in Qt resources; the page cannot reach the bridge.")
        script = QWebEngineScript()
        script.setName("nativebridge_shim")
        script.setSourceCode(qwc_js + "\n" + BRIDGE_SHIM_JS)
        script.setInjectionPoint(QWebEngineScript.InjectionPoint.DocumentCreation)
        script.setWorldId(QWebEngineScript.ScriptWorldId.MainWorld)
        script.setRunsOnSubFrames(False)
        self.page.scripts().insert(script)

    def on_screen_state(self, screen: str, state: Optional[Any]) -> None:
        """Screen controller listener. Called from the bridge's loop thread."""
        self.screen_changed.emit(screen, state is not None)

    @pyqtSlot(str, bool)
    def _on_screen_changed(self, screen: str, visible: bool) -> None:
        if visible and screen not in self._open_screens:
            self._open_screens.append(screen)
        elif not visible and screen in self._open_screens:
            self._open_screens.remove(screen)

        self.view.setEnabled(not self._open_screens)
        if self._open_screens:
            self.statusBar().showMessage(f"Native screen open: {', '.join(self._open_screens)}")
        else:
            self.statusBar().clearMessage()

    def load(self, url: str) -> None:
        logger.info(f"Loading web app from {url}")
        self.view.load(QUrl.fromUserInput(url))
