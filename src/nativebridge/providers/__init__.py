# -*- coding: utf-8 -*-
"""
Capability providers: the native features the bridge handlers call into.

`base` declares the async interfaces; `stub` holds in-memory implementations
used by tests and headless runs. `desktop` checks the local camera with
OpenCV; the Qt dialog provider lives in `nativebridge.gui.dialogs`.
"""

from .base import (
    BluetoothDevice,
    BluetoothProvider,
    CameraPermissionProvider,
    DialogProvider,
    Providers,
    UserStore,
)
from .stub import (
    InMemoryUserStore,
    SimulatedBluetoothProvider,
    StubCameraPermissionProvider,
    StubDialogProvider,
    stub_providers,
)

__all__ = [
    "BluetoothDevice",
    "BluetoothProvider",
    "CameraPermissionProvider",
    "DialogProvider",
    "Providers",
    "UserStore",
    "InMemoryUserStore",
    "SimulatedBluetoothProvider",
    "StubCameraPermissionProvider",
    "StubDialogProvider",
    "stub_providers",
]
