# -*- coding: utf-8 -*-
"""
src/nativebridge/app.py

Core application controller for NativeBridge.

`BridgeApp` owns the pieces of a running shell: the asyncio loop thread the
bridge runs on, the web host window, the bridge session with its capability
providers, and the screen presenters for the camera and the ID-card scan.
"""

import logging
from typing import Any, Dict, Optional

from PyQt6.QtWidgets import QApplication

from .bridge import Bridge
from .config import APP_NAME, Config, config as default_config
from .core.recognizer import IDCardRecognizer
from .core.registry import CAMERA_SCREEN, OCR_SCREEN
from .core.scan_session import OcrScanSession
from .core.stability import FrameSampler
from .gui.camera_window import CameraWindow
from .gui.dialogs import QtDialogProvider
from .gui.presenters import WindowPresenter
from .gui.scan_window import ScanWindow
from .gui.web_host import WebHostWindow
from .providers import InMemoryUserStore, Providers, stub_providers
from .providers.desktop import OpenCVCameraPermissionProvider
from .utils.async_runner import AsyncLoopThread

logger = logging.getLogger(__name__)


class BridgeApp:
    """
    The main application controller.

    Args:
        app (QApplication): The running Qt application.
        config (Config, optional): Settings; the module singleton by default.
        start_url (str, optional): Overrides `config.start_url`.
    """

    def __init__(self, app: QApplication, config: Optional[Config] = None, start_url: Optional[str] = None):
        self.app = app
        self.config = config or default_config
        self.start_url = start_url or self.config.start_url

        # One recognizer for the app's lifetime; the OCR model loads on first use.
        self.recognizer = IDCardRecognizer(self.config.languages, gpu=self.config.gpu)

        self.loop_thread = AsyncLoopThread()
        self.loop_thread.start()

        self.window = WebHostWindow(self.submit, title=APP_NAME)
        self.bridge = Bridge(
            self.window.transport.deliver,
            providers=self._build_providers(),
            notify=self.window.transport.notify,
        )
        self.bridge.register_presenter(CAMERA_SCREEN, WindowPresenter("camera", self._camera_window))
        self.bridge.register_presenter(OCR_SCREEN, WindowPresenter("scan", self._scan_window))
        self.bridge.screens.add_listener(self.window.on_screen_state)

        self.app.aboutToQuit.connect(self.shutdown)

    def _build_providers(self) -> Providers:
        stubs = stub_providers()
        return Providers(
            dialog=QtDialogProvider(self.window),
            user=InMemoryUserStore(),
            camera=OpenCVCameraPermissionProvider(self.config.camera_index),
            # No desktop bluetooth stack is wired in; the simulated adapter answers.
            bluetooth=stubs.bluetooth,
        )

    # --- Window factories ---

    def _camera_window(self, complete, options: Dict[str, Any]) -> CameraWindow:
        return CameraWindow(complete, options, camera_index=self.config.camera_index)

    def _scan_window(self, complete, options: Dict[str, Any]) -> ScanWindow:
        return ScanWindow(complete, options, camera_index=self.config.camera_index,
                          session_factory=self._scan_session)

    def _scan_session(self, complete, options: Dict[str, Any], runner=None) -> OcrScanSession:
        return OcrScanSession(
            complete,
            options,
            preprocessor=self.config.make_preprocessor(),
            recognizer=self.recognizer,
            engine=self.config.make_engine(),
            sampler=FrameSampler(self.config.frame_rate),
            runner=runner,
        )

    # --- Messages ---

    def submit(self, raw: str):
        """Hands a raw inbound message to the bridge on the loop thread."""
        return self.loop_thread.submit(self.bridge.handle_message(raw))

    # --- Lifecycle ---

    def run(self) -> None:
        self.window.load(self.start_url)
        self.window.show()
        logger.info(f"{APP_NAME} started; hosting {self.start_url}")

    def shutdown(self) -> None:
        """Cancels open screens and stops the loop thread."""
        logger.info(f"Shutting down {APP_NAME}...")
        self.bridge.shutdown()
        self.loop_thread.stop()
