# -*- coding: utf-8 -*-
"""
src/nativebridge/gui/viewfinder.py

Base window for the camera-backed screens. Reads frames from an OpenCV
VideoCapture on a QTimer, paints them letterboxed into the window, and lets
subclasses add an overlay and react to frames and the shutter.

The window finishes exactly once: `finish(result)` with a result, or with
None when the user cancels (Escape or closing the window).
"""

import logging
from typing import Any, Callable, Optional

import cv2
import numpy as np
from PyQt6.QtCore import QRect, Qt, QTimer
from PyQt6.QtGui import QColor, QImage, QPainter
from PyQt6.QtWidgets import QHBoxLayout, QPushButton, QVBoxLayout, QWidget

logger = logging.getLogger(__name__)

VIDEO_FPS = 30


def frame_to_qimage(frame: np.ndarray) -> QImage:
    """BGR ndarray -> QImage (copied, so the array may be reused)."""
    rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    h, w, ch = rgb.shape
    return QImage(rgb.data, w, h, ch * w, QImage.Format.Format_RGB888).copy()


class Viewfinder(QWidget):
    """
    Args:
        complete (Callable): Receives the result, or None on cancel.
        camera_index (int): OpenCV device index.
        title (str): Window title.
        shutter_text (str): Label of the capture button.
    """

    def __init__(self, complete: Callable[[Optional[Any]], None], camera_index: int = 0,
                 title: str = "Camera", shutter_text: str = "촬영"):
        super().__init__()
        self.setWindowTitle(title)
        self.setAttribute(Qt.WidgetAttribute.WA_DeleteOnClose)
        self.resize(720, 560)

        self.complete = complete
        self.camera_index = camera_index
        self.capture: Optional[cv2.VideoCapture] = None
        self.frame: Optional[np.ndarray] = None
        self._finished = False

        self._timer = QTimer(self)
        self._timer.timeout.connect(self._grab)

        self.shutter_button = QPushButton(shutter_text, self)
        self.shutter_button.clicked.connect(self.shutter)
        self.cancel_button = QPushButton("취소", self)
        self.cancel_button.clicked.connect(self.cancel)

        buttons = QHBoxLayout()
        buttons.addWidget(self.cancel_button)
        buttons.addStretch(1)
        buttons.addWidget(self.shutter_button)
        layout = QVBoxLayout(self)
        layout.addStretch(1)
        layout.addLayout(buttons)

    # --- Lifecycle ---

    def start(self) -> bool:
        """Opens the camera and shows the window. Returns False if the camera is unavailable."""
        self.capture = cv2.VideoCapture(self.camera_index)
        if not self.capture.isOpened():
            logger.error(f"Could not open camera {self.camera_index}.")
            self.capture.release()
            self.capture = None
            return False
        self._timer.start(int(1000 / VIDEO_FPS))
        self.show()
        self.activateWindow()
        self.raise_()
        logger.info(f"{self.windowTitle()} opened on camera {self.camera_index}.")
        return True

    def finish(self, result: Optional[Any]) -> None:
        if self._finished:
            return
        self._finished = True
        self._release()
        try:
            self.complete(result)
        finally:
            self.close()

    def cancel(self) -> None:
        logger.info(f"{self.windowTitle()} cancelled by user.")
        self.finish(None)

    def _release(self) -> None:
        self._timer.stop()
        if self.capture is not None:
            self.capture.release()
            self.capture = None

    # --- Hooks ---

    def on_frame(self, frame: np.ndarray) -> None:
        pass

    def shutter(self) -> None:
        pass

    def paint_overlay(self, painter: QPainter, target: QRect, scale: float) -> None:
        pass

    # --- Qt events ---

    def _grab(self) -> None:
        if self.capture is None:
            return
        ok, frame = self.capture.read()
        if not ok or frame is None:
            logger.warning("Dropped a camera frame.")
            return
        self.frame = frame
        try:
            self.on_frame(frame)
        except Exception as e:
            logger.error(f"Frame handler failed: {e}", exc_info=True)
        self.update()

    def frame_rect(self) -> QRect:
        """Where the frame is drawn: scaled to fit, centred."""
        if self.frame is None:
            return QRect()
        fh, fw = self.frame.shape[:2]
        scale = min(self.width() / fw, self.height() / fh)
        w, h = int(fw * scale), int(fh * scale)
        return QRect((self.width() - w) // 2, (self.height() - h) // 2, w, h)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(0, 0, 0))
        if self.frame is not None:
            target = self.frame_rect()
            painter.drawImage(target, frame_to_qimage(self.frame))
            self.paint_overlay(painter, target, target.width() / self.frame.shape[1])
        painter.end()

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape:
            self.cancel()
        elif event.key() in (Qt.Key.Key_Space, Qt.Key.Key_Return):
            self.shutter()
        else:
            super().keyPressEvent(event)

    def closeEvent(self, event):
        # Closing the window by hand counts as a cancel.
        if not self._finished:
            self._finished = True
            self._release()
            self.complete(None)
        super().closeEvent(event)
