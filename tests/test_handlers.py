"""Tests for the function handlers, exercised through a bridge session."""
import dataclasses

import pytest

from conftest import make_message
from nativebridge.providers import stub_providers


async def send(bridge, transport, message_id, message_type, payload=None):
    await bridge.handle_message(make_message(message_id, message_type, payload))
    return transport.response_for(message_id)


class TestDialogHandlers:

    @pytest.mark.asyncio
    async def test_alert_reports_the_chosen_button(self, bridge, transport, providers):
        providers.dialog.choice = 1
        buttons = [{"text": "취소", "style": "cancel"}, {"text": "삭제", "actionId": "delete"}]

        response = await send(bridge, transport, "a", "ALERT", {"title": "확인", "message": "삭제할까요?", "buttons": buttons})

        assert response == {"id": "a", "success": True, "data": {"buttonIndex": 1, "actionId": "delete"}}
        assert providers.dialog.shown[0]["title"] == "확인"

    @pytest.mark.asyncio
    async def test_alert_defaults(self, bridge, transport, providers):
        response = await send(bridge, transport, "a", "ALERT", {"message": "완료되었습니다"})

        assert response["data"] == {"buttonIndex": 0, "actionId": None}
        assert providers.dialog.shown == [{"title": "알림", "message": "완료되었습니다", "buttons": [{"text": "확인"}]}]

    @pytest.mark.asyncio
    async def test_alert_without_message(self, bridge, transport):
        response = await send(bridge, transport, "a", "ALERT", {"title": "only a title"})
        assert response == {"id": "a", "success": False, "error": "alert requires a message"}


class TestUserHandlers:

    @pytest.mark.asyncio
    async def test_set_then_get(self, bridge, transport):
        user = {"userId": "u-1", "name": "김철수", "email": "kim@example.com"}

        assert (await send(bridge, transport, "s", "SET_USER_INFO", user)) == {"id": "s", "success": True}
        response = await send(bridge, transport, "g", "GET_USER_INFO")

        assert response["data"] == user

    @pytest.mark.asyncio
    async def test_set_requires_an_object(self, bridge, transport):
        response = await send(bridge, transport, "s", "SET_USER_INFO", ["not", "an", "object"])
        assert response["error"] == "user info must be an object"


class TestCameraPermission:

    @pytest.mark.asyncio
    async def test_permission_shape(self, bridge, transport, providers):
        providers.camera.microphone = "denied"

        response = await send(bridge, transport, "p", "CAMERA_REQUEST_PERMISSION")

        assert response["data"] == {
            "camera": {"status": "granted", "granted": True, "expires": "never"},
            "microphone": {"status": "denied", "granted": False, "expires": "never"},
        }


class TestBluetoothHandlers:

    @pytest.mark.asyncio
    async def test_status_check(self, bridge, transport, providers):
        providers.bluetooth.powered = False
        response = await send(bridge, transport, "b", "BLUETOOTH_STATUS_CHECK")
        assert response["data"] == {"status": "off"}

    @pytest.mark.asyncio
    async def test_scan_lists_devices(self, bridge, transport, providers):
        response = await send(bridge, transport, "scan", "BLUETOOTH_SCAN_START")

        assert response["data"]["devices"] == [
            {"id": "AA:BB:CC:00:00:01", "isConnected": False, "name": "Receipt Printer", "rssi": -48},
            {"id": "AA:BB:CC:00:00:02", "isConnected": False, "name": "Card Reader", "rssi": -63},
        ]
        assert providers.bluetooth.scanning

        await send(bridge, transport, "stop", "BLUETOOTH_SCAN_STOP")
        assert not providers.bluetooth.scanning

    @pytest.mark.asyncio
    async def test_scan_while_off(self, bridge, transport, providers):
        providers.bluetooth.powered = False
        response = await send(bridge, transport, "scan", "BLUETOOTH_SCAN_START")
        assert response == {"id": "scan", "success": False, "error": "bluetooth is off"}

    @pytest.mark.asyncio
    async def test_connect_and_list_connected(self, bridge, transport):
        connect = await send(bridge, transport, "c", "BLUETOOTH_CONNECT", {"deviceId": "AA:BB:CC:00:00:02"})
        listed = await send(bridge, transport, "l", "BLUETOOTH_GET_CONNECTED_DEVICES")
        disconnect = await send(bridge, transport, "d", "BLUETOOTH_DISCONNECT", {"deviceId": "AA:BB:CC:00:00:02"})

        assert connect["data"] == {"deviceId": "AA:BB:CC:00:00:02", "isConnected": True}
        assert [d["id"] for d in listed["data"]["devices"]] == ["AA:BB:CC:00:00:02"]
        assert disconnect["data"]["isConnected"] is False

    @pytest.mark.asyncio
    async def test_connect_errors(self, bridge, transport):
        unknown = await send(bridge, transport, "u", "BLUETOOTH_CONNECT", {"deviceId": "00:00"})
        missing = await send(bridge, transport, "m", "BLUETOOTH_CONNECT", {})

        assert unknown["error"] == "unknown bluetooth device: 00:00"
        assert missing["error"] == "'deviceId' is required"

    @pytest.mark.asyncio
    async def test_status_push_reaches_registered_callbacks(self, bridge, transport):
        await send(bridge, transport, "r1", "REGISTER_BLUETOOTH_CALLBACK", {"callbackId": "cb-1"})
        await send(bridge, transport, "r2", "REGISTER_BLUETOOTH_CALLBACK", {"callbackId": "cb-2"})
        await send(bridge, transport, "u", "UNREGISTER_BLUETOOTH_CALLBACK", {"callbackId": "cb-2"})

        response = await send(bridge, transport, "s", "BLUETOOTH_STATUS", {"status": "off", "message": "adapter off"})

        assert response == {"id": "s", "success": True}
        assert transport.notified == [("cb-1", {"status": "off", "message": "adapter off"})]

    @pytest.mark.asyncio
    async def test_unknown_status_is_rejected(self, bridge, transport):
        await send(bridge, transport, "r", "REGISTER_BLUETOOTH_CALLBACK", {"callbackId": "cb"})
        response = await send(bridge, transport, "s", "BLUETOOTH_STATUS", {"status": "sideways"})

        assert response["error"] == "unknown bluetooth status: sideways"
        assert transport.notified == []

    @pytest.mark.asyncio
    async def test_enable_broadcasts_new_status(self, bridge, transport, providers):
        providers.bluetooth.powered = False
        await send(bridge, transport, "r", "REGISTER_BLUETOOTH_CALLBACK", {"callbackId": "cb"})

        response = await send(bridge, transport, "e", "BLUETOOTH_ENABLE_REQUEST")

        assert response["data"] == {"status": "on"}
        assert providers.bluetooth.powered
        assert transport.notified == [("cb", {"status": "on"})]

    def test_stub_providers_are_independent(self):
        first, second = stub_providers(), stub_providers()
        first.bluetooth.powered = False
        assert second.bluetooth.powered

    def test_providers_hold_only_the_four_capabilities(self):
        names = [f.name for f in dataclasses.fields(stub_providers())]
        assert names == ["dialog", "user", "camera", "bluetooth"]
