# -*- coding: utf-8 -*-
"""
Function handler groups.

Each group is built by a factory from the capability provider it needs;
`create_handlers` merges them into the session's function-handler map.
Screen requests (camera, OCR) are not here: they are built from the screen
configuration in `nativebridge.core.registry`.
"""

from typing import Callable, Mapping, Optional

from ..core.registry import combine_handlers
from ..providers.base import Providers
from .bluetooth import BluetoothCallbacks, create_bluetooth_handlers
from .camera import create_camera_handlers
from .dialog import create_dialog_handlers
from .user import create_user_handlers


def create_handlers(providers: Providers, callbacks: Optional[BluetoothCallbacks] = None) -> Mapping[str, Callable]:
    """Dialog, user, camera permission, then bluetooth; later groups win on collisions."""
    return combine_handlers(
        create_dialog_handlers(providers.dialog),
        create_user_handlers(providers.user),
        create_camera_handlers(providers.camera),
        create_bluetooth_handlers(providers.bluetooth, callbacks or BluetoothCallbacks()),
    )


__all__ = [
    "BluetoothCallbacks",
    "create_handlers",
    "create_bluetooth_handlers",
    "create_camera_handlers",
    "create_dialog_handlers",
    "create_user_handlers",
]
