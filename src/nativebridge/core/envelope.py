# -*- coding: utf-8 -*-
"""
src/nativebridge/core/envelope.py

Wire contracts of the web/native bridge.

The web page sends request envelopes `{id, type, payload}` as JSON text and
receives response envelopes `{id, success, data?, error?}`. This module owns
the closed set of message types, the decoding of inbound text and the
encoding of outbound responses, including the escaping needed before a
serialized response is embedded into injected script code.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import EnvelopeParseError

# Sentinel id used when the inbound text could not be parsed at all.
PARSE_ERROR_ID = "error"


class MessageType(str, Enum):
    """Tags of every message the native side understands."""

    # Dialog
    ALERT = "ALERT"

    # User profile
    GET_USER_INFO = "GET_USER_INFO"
    SET_USER_INFO = "SET_USER_INFO"

    # Camera permission
    CAMERA_REQUEST_PERMISSION = "CAMERA_REQUEST_PERMISSION"

    # Screens (resolved later, when the presenter closes)
    CAMERA_SHOW = "CAMERA_SHOW"
    OCR_SCAN_ID_CARD = "OCR_SCAN_ID_CARD"
    OCR_SCAN_DRIVER_LICENSE = "OCR_SCAN_DRIVER_LICENSE"

    # Bluetooth
    BLUETOOTH_STATUS_CHECK = "BLUETOOTH_STATUS_CHECK"
    BLUETOOTH_ENABLE_REQUEST = "BLUETOOTH_ENABLE_REQUEST"
    BLUETOOTH_SCAN_START = "BLUETOOTH_SCAN_START"
    BLUETOOTH_SCAN_STOP = "BLUETOOTH_SCAN_STOP"
    BLUETOOTH_CONNECT = "BLUETOOTH_CONNECT"
    BLUETOOTH_DISCONNECT = "BLUETOOTH_DISCONNECT"
    BLUETOOTH_GET_CONNECTED_DEVICES = "BLUETOOTH_GET_CONNECTED_DEVICES"
    REGISTER_BLUETOOTH_CALLBACK = "REGISTER_BLUETOOTH_CALLBACK"
    UNREGISTER_BLUETOOTH_CALLBACK = "UNREGISTER_BLUETOOTH_CALLBACK"
    BLUETOOTH_STATUS = "BLUETOOTH_STATUS"


@dataclass(frozen=True)
class MessageEnvelope:
    """A request sent by the web page."""
    id: str
    type: str
    payload: Any = None


@dataclass(frozen=True)
class ResponseEnvelope:
    """A response sent back to the web page. `id` echoes the request id."""
    id: str
    success: bool
    data: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Returns the wire shape; absent `data` / `error` keys are omitted."""
        body: Dict[str, Any] = {"id": self.id, "success": self.success}
        if self.data is not None:
            body["data"] = self.data
        if self.error is not None:
            body["error"] = self.error
        return body


def success_response(request_id: str, data: Any = None) -> ResponseEnvelope:
    return ResponseEnvelope(id=request_id, success=True, data=data)


def error_response(request_id: str, error: str) -> ResponseEnvelope:
    return ResponseEnvelope(id=request_id, success=False, error=error)


def parse_message(raw: str) -> MessageEnvelope:
    """
    Decodes the raw text received from the transport.

    Args:
        raw (str): JSON text of a request envelope.

    Returns:
        MessageEnvelope: The decoded request. `payload` is None when absent.

    Raises:
        EnvelopeParseError: If the text is not JSON, is not a JSON object, or
                            lacks a string `id` or a string `type`.
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        raise EnvelopeParseError(f"expected text, got {type(raw).__name__}")

    try:
        message = json.loads(raw)
    except ValueError as e:
        raise EnvelopeParseError(f"invalid JSON: {e}") from e

    if not isinstance(message, dict):
        raise EnvelopeParseError("envelope must be a JSON object")

    message_id = message.get("id")
    message_type = message.get("type")
    if not isinstance(message_id, str) or not message_id:
        raise EnvelopeParseError("envelope is missing a string 'id'")
    if not isinstance(message_type, str) or not message_type:
        raise EnvelopeParseError("envelope is missing a string 'type'")

    return MessageEnvelope(id=message_id, type=message_type, payload=message.get("payload"))


def escape_free_text(value: Any) -> Any:
    """
    Replaces raw line breaks in every string of a result payload with the
    two-character sequence backslash-n.

    Recognized text (e.g. the raw OCR output) is multi-line; a line break that
    survives into a naively re-stringified script breaks the injected string
    literal, so it is neutralised before serialisation.
    """
    if isinstance(value, str):
        return value.replace("\r\n", "\\n").replace("\r", "\\n").replace("\n", "\\n")
    if isinstance(value, dict):
        return {key: escape_free_text(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [escape_free_text(item) for item in value]
    return value


def serialize_response(response: ResponseEnvelope, escape_newlines: bool = False) -> str:
    """Encodes a response as JSON text, keeping non-ASCII (Korean) text readable."""
    body = response.to_dict()
    if escape_newlines and "data" in body:
        body["data"] = escape_free_text(body["data"])
    return json.dumps(body, ensure_ascii=False)


def to_script_literal(serialized: str) -> str:
    """
    Turns serialized response text into a JavaScript string literal that can
    be embedded into injected code without terminating early.

    json.dumps with ensure_ascii escapes quotes, backslashes, control
    characters and U+2028/U+2029; `</` is split so the literal cannot close an
    enclosing <script> element.
    """
    return json.dumps(serialized, ensure_ascii=True).replace("</", "<\\/")


def message_event_script(serialized: str) -> str:
    """Script that hands a serialized response to the page as a `message` event."""
    return f"window.dispatchEvent(new MessageEvent('message', {{data: {to_script_literal(serialized)}}}));"


def status_change_script(status: str, message: Optional[str] = None) -> str:
    """
    Script that reports a bluetooth status change to the page's
    `window.BluetoothBridge.onStatusChange(status, message)` hook, when the
    page installed one. A missing message is passed as an empty string.
    """
    return (
        "if (window.BluetoothBridge && window.BluetoothBridge.onStatusChange) {"
        f" window.BluetoothBridge.onStatusChange({to_script_literal(str(status))},"
        f" {to_script_literal(message or '')}); }}"
    )
