# -*- coding: utf-8 -*-
"""
src/nativebridge/providers/desktop.py

Capability providers backed by the desktop itself.
"""

import asyncio
import logging
from typing import Dict

import cv2

from .base import CameraPermissionProvider

logger = logging.getLogger(__name__)


class OpenCVCameraPermissionProvider(CameraPermissionProvider):
    """
    A desktop has no permission prompt; the camera counts as granted when
    OpenCV can open it. There is no microphone capture, so it is reported
    as undetermined.
    """

    def __init__(self, camera_index: int = 0):
        self.camera_index = camera_index

    def _camera_opens(self) -> bool:
        capture = cv2.VideoCapture(self.camera_index)
        try:
            return capture.isOpened()
        finally:
            capture.release()

    async def request_permissions(self) -> Dict[str, str]:
        available = await asyncio.get_running_loop().run_in_executor(None, self._camera_opens)
        if not available:
            logger.warning(f"Camera {self.camera_index} could not be opened.")
        return {
            "camera": "granted" if available else "denied",
            "microphone": "undetermined",
        }
