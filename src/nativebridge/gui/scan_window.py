# -*- coding: utf-8 -*-
"""
src/nativebridge/gui/scan_window.py

The ID-card scan screen (OCR_SCAN_ID_CARD / OCR_SCAN_DRIVER_LICENSE).

Every camera frame is offered to an OcrScanSession, which samples, detects
and decides when to capture. The window draws the card guide and the
detected quadrilateral; recognition runs on a worker thread and its result
comes back to the GUI thread through a signal.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from PyQt6.QtCore import QPointF, QRect, QRectF, Qt, pyqtSignal, pyqtSlot
from PyQt6.QtGui import QColor, QPainter, QPen, QPolygonF

from ..core.image_processor import ID_CARD_RATIO
from ..core.recognizer import DRIVER_LICENSE
from ..core.scan_session import OcrScanSession
from ..core.stability import DetectionState
from .viewfinder import Viewfinder

logger = logging.getLogger(__name__)

# Share of the frame width covered by the card guide.
GUIDE_WIDTH = 0.8

_TITLES = {DRIVER_LICENSE: "운전면허증 인식"}


class ScanWindow(Viewfinder):
    """
    Args:
        complete (Callable): The screen's completion callback.
        options (dict): `documentType`, `includeImage`.
        camera_index (int): OpenCV device index.
        session_factory (Callable, optional): Builds the OcrScanSession from
            `(complete, options, runner)`; used to inject configured stages.
    """

    result_ready = pyqtSignal(object)

    def __init__(self, complete: Callable[[Optional[Any]], None], options: Optional[Dict[str, Any]] = None,
                 camera_index: int = 0, session_factory: Optional[Callable[..., OcrScanSession]] = None):
        options = dict(options or {})
        super().__init__(complete, camera_index=camera_index,
                         title=_TITLES.get(options.get("documentType"), "신분증 인식"))
        self.result_ready.connect(self._on_result)

        factory = session_factory or OcrScanSession
        self.session = factory(self.result_ready.emit, options, runner=self._run_in_thread)

    # --- Session wiring ---

    @staticmethod
    def _run_in_thread(task: Callable[[], None]) -> None:
        threading.Thread(target=task, name="scan-recognition", daemon=True).start()

    @pyqtSlot(object)
    def _on_result(self, result: Optional[Dict[str, Any]]) -> None:
        self.finish(result)

    def on_frame(self, frame) -> None:
        trigger = self.session.feed_frame(frame)
        if trigger is not None:
            self.shutter_button.setEnabled(False)

    def shutter(self) -> None:
        if self.frame is not None and self.session.capture(self.frame) is not None:
            self.shutter_button.setEnabled(False)

    def cancel(self) -> None:
        # The session completes with None; the signal then closes the window.
        self.session.cancel()

    def closeEvent(self, event):
        if not self.session.finished:
            self.session.cancel()
        super().closeEvent(event)

    # --- Overlay ---

    def paint_overlay(self, painter: QPainter, target: QRect, scale: float) -> None:
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        guide_w = target.width() * GUIDE_WIDTH
        guide_h = guide_w / ID_CARD_RATIO
        guide = QRectF(target.left() + (target.width() - guide_w) / 2,
                       target.top() + (target.height() - guide_h) / 2, guide_w, guide_h)
        painter.setPen(QPen(QColor(255, 255, 255, 180), 2, Qt.PenStyle.DashLine))
        painter.drawRoundedRect(guide, 12, 12)

        engine = self.session.engine
        detection = engine.last_detection
        if detection is not None and not self.session.is_capturing:
            color = QColor(60, 200, 90) if engine.state is DetectionState.DETECTED else QColor(255, 200, 0)
            polygon = QPolygonF([QPointF(target.left() + p.x * scale, target.top() + p.y * scale)
                                 for p in detection.quad.points])
            painter.setPen(QPen(color, 3, Qt.PenStyle.SolidLine))
            painter.drawPolygon(polygon)

        if self.session.is_capturing:
            painter.fillRect(target, QColor(0, 0, 0, 120))
            painter.setPen(QColor(255, 255, 255))
            painter.drawText(target, Qt.AlignmentFlag.AlignCenter, "인식 중...")
