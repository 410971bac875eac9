# -*- coding: utf-8 -*-
"""
src/nativebridge/providers/base.py

Async interfaces of the capability providers consumed by the bridge handlers.

Every operation is a coroutine returning plain data or raising. Providers
built on callback-style SDKs wrap their calls with
`nativebridge.utils.async_runner.wrap_callback`, so the handlers never need
to know which style sits underneath.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# Bluetooth adapter states reported to the web page.
BLUETOOTH_STATUSES = ("on", "off", "unauthorized", "unavailable")


@dataclass
class BluetoothDevice:
    id: str
    name: Optional[str] = None
    rssi: Optional[int] = None
    is_connected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "isConnected": self.is_connected}
        if self.name is not None:
            data["name"] = self.name
        if self.rssi is not None:
            data["rssi"] = self.rssi
        return data


class DialogProvider(ABC):

    @abstractmethod
    async def alert(self, title: str, message: str, buttons: List[Dict[str, Any]]) -> int:
        """Shows a native alert and returns the index of the button the user pressed."""


class UserStore(ABC):

    @abstractmethod
    async def get(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def set(self, user_info: Dict[str, Any]) -> None:
        ...


class CameraPermissionProvider(ABC):

    @abstractmethod
    async def request_permissions(self) -> Dict[str, str]:
        """
        Prompts for camera and microphone access.

        Returns:
            A mapping with "camera" and "microphone" keys, each one of
            "granted", "denied" or "undetermined".
        """


class BluetoothProvider(ABC):

    @abstractmethod
    async def status(self) -> str:
        """One of BLUETOOTH_STATUSES."""

    @abstractmethod
    async def enable(self) -> Dict[str, Any]:
        """Requests the adapter be switched on. Returns `{status, message?}`."""

    @abstractmethod
    async def start_scan(self) -> List[BluetoothDevice]:
        ...

    @abstractmethod
    async def stop_scan(self) -> None:
        ...

    @abstractmethod
    async def connect(self, device_id: str) -> bool:
        ...

    @abstractmethod
    async def disconnect(self, device_id: str) -> bool:
        ...

    @abstractmethod
    async def connected_devices(self) -> List[BluetoothDevice]:
        ...


@dataclass
class Providers:
    """The capability providers injected into one bridge session."""
    dialog: DialogProvider
    user: UserStore
    camera: CameraPermissionProvider
    bluetooth: BluetoothProvider
