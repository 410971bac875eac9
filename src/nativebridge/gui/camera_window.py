# -*- coding: utf-8 -*-
"""
src/nativebridge/gui/camera_window.py

The camera screen (CAMERA_SHOW): a plain viewfinder that resolves with the
photo taken, `{uri, width, height, base64}`.
"""

import logging
from typing import Any, Callable, Dict, Optional

from PyQt6.QtCore import QRect, Qt
from PyQt6.QtGui import QColor, QPainter, QPen

from ..core.image_processor import photo_result
from .viewfinder import Viewfinder

logger = logging.getLogger(__name__)


class CameraWindow(Viewfinder):

    def __init__(self, complete: Callable[[Optional[Any]], None], options: Optional[Dict[str, Any]] = None,
                 camera_index: int = 0):
        super().__init__(complete, camera_index=camera_index, title="Camera")
        self.options = dict(options or {})
        self.quality = self.options.get("quality", "high")

    def shutter(self) -> None:
        if self.frame is None:
            logger.warning("Shutter pressed before the first frame arrived.")
            return
        try:
            result = photo_result(self.frame, self.quality)
        except Exception as e:
            logger.error(f"Could not encode the photo: {e}", exc_info=True)
            return
        logger.info(f"Photo taken ({result['width']}x{result['height']}).")
        self.finish(result)

    def paint_overlay(self, painter: QPainter, target: QRect, scale: float) -> None:
        # Rule-of-thirds grid.
        painter.setPen(QPen(QColor(255, 255, 255, 70), 1, Qt.PenStyle.SolidLine))
        for i in (1, 2):
            x = target.left() + target.width() * i // 3
            y = target.top() + target.height() * i // 3
            painter.drawLine(x, target.top(), x, target.bottom())
            painter.drawLine(target.left(), y, target.right(), y)
