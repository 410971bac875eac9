# -*- coding: utf-8 -*-
"""
src/nativebridge/handlers/bluetooth.py

Bluetooth handlers.

Besides the request/response operations, the web page can register callback
ids; a BLUETOOTH_STATUS message (or a status change reported by the native
side through `broadcast`) is pushed to every registered callback through the
`notify` callable supplied by the session.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from ..core.envelope import MessageType, ResponseEnvelope, success_response
from ..core.exceptions import CapabilityError
from ..providers.base import BLUETOOTH_STATUSES, BluetoothProvider

logger = logging.getLogger(__name__)

StatusNotifier = Callable[[str, Dict[str, Any]], None]


class BluetoothCallbacks:
    """Callback ids registered by the web page for status pushes."""

    def __init__(self, notify: Optional[StatusNotifier] = None):
        self._notify = notify
        self._ids: List[str] = []
        self._lock = threading.Lock()

    def register(self, callback_id: str) -> None:
        with self._lock:
            if callback_id not in self._ids:
                self._ids.append(callback_id)

    def unregister(self, callback_id: str) -> None:
        with self._lock:
            if callback_id in self._ids:
                self._ids.remove(callback_id)

    @property
    def ids(self) -> List[str]:
        with self._lock:
            return list(self._ids)

    def broadcast(self, status: str, message: Optional[str] = None) -> int:
        """Pushes a status to every registered callback. Returns how many were notified."""
        data: Dict[str, Any] = {"status": status}
        if message:
            data["message"] = message
        notified = 0
        for callback_id in self.ids:
            if self._notify is None:
                continue
            try:
                self._notify(callback_id, data)
                notified += 1
            except Exception as e:
                logger.error(f"Bluetooth status push to {callback_id} failed: {e}")
        return notified


def _require(payload: Any, key: str) -> str:
    value = payload.get(key) if isinstance(payload, dict) else None
    if not isinstance(value, str) or not value:
        raise CapabilityError(f"'{key}' is required")
    return value


def create_bluetooth_handlers(provider: BluetoothProvider, callbacks: BluetoothCallbacks) -> Dict[str, Any]:

    async def status_check(request_id: str, payload: Any) -> ResponseEnvelope:
        return success_response(request_id, {"status": await provider.status()})

    async def enable_request(request_id: str, payload: Any) -> ResponseEnvelope:
        result = await provider.enable()
        if result.get("status") in BLUETOOTH_STATUSES:
            callbacks.broadcast(result["status"], result.get("message"))
        return success_response(request_id, result)

    async def scan_start(request_id: str, payload: Any) -> ResponseEnvelope:
        devices = await provider.start_scan()
        return success_response(request_id, {"devices": [d.to_dict() for d in devices]})

    async def scan_stop(request_id: str, payload: Any) -> ResponseEnvelope:
        await provider.stop_scan()
        return success_response(request_id)

    async def connect(request_id: str, payload: Any) -> ResponseEnvelope:
        device_id = _require(payload, "deviceId")
        connected = await provider.connect(device_id)
        return success_response(request_id, {"deviceId": device_id, "isConnected": connected})

    async def disconnect(request_id: str, payload: Any) -> ResponseEnvelope:
        device_id = _require(payload, "deviceId")
        connected = await provider.disconnect(device_id)
        return success_response(request_id, {"deviceId": device_id, "isConnected": connected})

    async def connected_devices(request_id: str, payload: Any) -> ResponseEnvelope:
        devices = await provider.connected_devices()
        return success_response(request_id, {"devices": [d.to_dict() for d in devices]})

    def register_callback(request_id: str, payload: Any) -> ResponseEnvelope:
        callbacks.register(_require(payload, "callbackId"))
        return success_response(request_id)

    def unregister_callback(request_id: str, payload: Any) -> ResponseEnvelope:
        callbacks.unregister(_require(payload, "callbackId"))
        return success_response(request_id)

    def status_broadcast(request_id: str, payload: Any) -> ResponseEnvelope:
        status = _require(payload, "status")
        if status not in BLUETOOTH_STATUSES:
            raise CapabilityError(f"unknown bluetooth status: {status}")
        callbacks.broadcast(status, payload.get("message"))
        return success_response(request_id)

    return {
        MessageType.BLUETOOTH_STATUS_CHECK: status_check,
        MessageType.BLUETOOTH_ENABLE_REQUEST: enable_request,
        MessageType.BLUETOOTH_SCAN_START: scan_start,
        MessageType.BLUETOOTH_SCAN_STOP: scan_stop,
        MessageType.BLUETOOTH_CONNECT: connect,
        MessageType.BLUETOOTH_DISCONNECT: disconnect,
        MessageType.BLUETOOTH_GET_CONNECTED_DEVICES: connected_devices,
        MessageType.REGISTER_BLUETOOTH_CALLBACK: register_callback,
        MessageType.UNREGISTER_BLUETOOTH_CALLBACK: unregister_callback,
        MessageType.BLUETOOTH_STATUS: status_broadcast,
    }
