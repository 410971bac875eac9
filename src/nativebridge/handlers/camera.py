# -*- coding: utf-8 -*-
"""
Camera handlers that answer immediately. Opening the camera itself is a
screen (CAMERA_SHOW) and goes through the screen controller instead.
"""

from typing import Any, Dict

from ..core.envelope import MessageType, ResponseEnvelope, success_response
from ..providers.base import CameraPermissionProvider


def permission_status(status: str) -> Dict[str, Any]:
    return {"status": status, "granted": status == "granted", "expires": "never"}


def create_camera_handlers(provider: CameraPermissionProvider) -> Dict[str, Any]:

    async def request_permission(request_id: str, payload: Any) -> ResponseEnvelope:
        statuses = await provider.request_permissions()
        return success_response(request_id, {
            "camera": permission_status(statuses.get("camera", "undetermined")),
            "microphone": permission_status(statuses.get("microphone", "undetermined")),
        })

    return {MessageType.CAMERA_REQUEST_PERMISSION: request_permission}
