# -*- coding: utf-8 -*-
"""
src/nativebridge/providers/stub.py

In-memory capability providers. They back the bridge in tests and when the
shell runs without the corresponding native feature.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..core.exceptions import CapabilityError
from .base import (
    BluetoothDevice,
    BluetoothProvider,
    CameraPermissionProvider,
    DialogProvider,
    Providers,
    UserStore,
)

logger = logging.getLogger(__name__)

DEFAULT_USER = {
    "userId": "테스트 유저",
    "name": "테스트 이름",
    "email": "test@test.com",
}


class StubDialogProvider(DialogProvider):
    """Answers every alert with a fixed button index and records what was shown."""

    def __init__(self, choice: int = 0):
        self.choice = choice
        self.shown: List[Dict[str, Any]] = []

    async def alert(self, title: str, message: str, buttons: List[Dict[str, Any]]) -> int:
        self.shown.append({"title": title, "message": message, "buttons": buttons})
        logger.info(f"Alert: {title} - {message}")
        return min(self.choice, max(0, len(buttons) - 1))


class InMemoryUserStore(UserStore):

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._user = dict(DEFAULT_USER if initial is None else initial)

    async def get(self) -> Dict[str, Any]:
        return dict(self._user)

    async def set(self, user_info: Dict[str, Any]) -> None:
        self._user = dict(user_info)


class StubCameraPermissionProvider(CameraPermissionProvider):

    def __init__(self, camera: str = "granted", microphone: str = "granted"):
        self.camera = camera
        self.microphone = microphone

    async def request_permissions(self) -> Dict[str, str]:
        return {"camera": self.camera, "microphone": self.microphone}


class SimulatedBluetoothProvider(BluetoothProvider):
    """
    A fake adapter with a fixed set of nearby devices.

    `powered` controls the reported status; connecting to an unknown device
    raises CapabilityError like a real stack would fail.
    """

    def __init__(self, devices: Optional[Iterable[BluetoothDevice]] = None, powered: bool = True):
        self.powered = powered
        self.scanning = False
        self._devices = {d.id: d for d in (devices or [])}

    async def status(self) -> str:
        return "on" if self.powered else "off"

    async def enable(self) -> Dict[str, Any]:
        self.powered = True
        return {"status": "on"}

    async def start_scan(self) -> List[BluetoothDevice]:
        if not self.powered:
            raise CapabilityError("bluetooth is off")
        self.scanning = True
        return list(self._devices.values())

    async def stop_scan(self) -> None:
        self.scanning = False

    async def connect(self, device_id: str) -> bool:
        device = self._device(device_id)
        device.is_connected = True
        return True

    async def disconnect(self, device_id: str) -> bool:
        device = self._device(device_id)
        device.is_connected = False
        return False

    async def connected_devices(self) -> List[BluetoothDevice]:
        return [d for d in self._devices.values() if d.is_connected]

    def _device(self, device_id: str) -> BluetoothDevice:
        if not self.powered:
            raise CapabilityError("bluetooth is off")
        try:
            return self._devices[device_id]
        except KeyError:
            raise CapabilityError(f"unknown bluetooth device: {device_id}") from None


def stub_providers() -> Providers:
    return Providers(
        dialog=StubDialogProvider(),
        user=InMemoryUserStore(),
        camera=StubCameraPermissionProvider(),
        bluetooth=SimulatedBluetoothProvider([
            BluetoothDevice("AA:BB:CC:00:00:01", name="Receipt Printer", rssi=-48),
            BluetoothDevice("AA:BB:CC:00:00:02", name="Card Reader", rssi=-63),
        ]),
    )
