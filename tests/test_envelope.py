"""Unit tests for request/response envelopes and their wire encoding."""
import json

import pytest

from nativebridge.core.envelope import (
    MessageType,
    ResponseEnvelope,
    error_response,
    escape_free_text,
    message_event_script,
    parse_message,
    serialize_response,
    status_change_script,
    success_response,
    to_script_literal,
)
from nativebridge.core.exceptions import EnvelopeParseError


class TestParseMessage:

    def test_parses_full_envelope(self):
        message = parse_message('{"id": "a1", "type": "ALERT", "payload": {"message": "hi"}}')

        assert message.id == "a1"
        assert message.type == "ALERT"
        assert message.payload == {"message": "hi"}

    def test_missing_payload_is_none(self):
        message = parse_message('{"id": "a1", "type": "GET_USER_INFO"}')
        assert message.payload is None

    def test_accepts_utf8_bytes(self):
        raw = '{"id": "k", "type": "SET_USER_INFO", "payload": {"name": "홍길동"}}'.encode("utf-8")
        assert parse_message(raw).payload == {"name": "홍길동"}

    @pytest.mark.parametrize("raw", [
        "not json",
        "[1, 2, 3]",
        '{"type": "ALERT"}',
        '{"id": "x"}',
        '{"id": 5, "type": "ALERT"}',
        '{"id": "", "type": "ALERT"}',
    ])
    def test_rejects_malformed_envelopes(self, raw):
        with pytest.raises(EnvelopeParseError):
            parse_message(raw)

    def test_rejects_non_text(self):
        with pytest.raises(EnvelopeParseError):
            parse_message(42)


class TestResponseEncoding:

    def test_absent_fields_are_omitted(self):
        assert success_response("a").to_dict() == {"id": "a", "success": True}
        assert error_response("b", "nope").to_dict() == {"id": "b", "success": False, "error": "nope"}

    def test_message_type_values_match_names(self):
        assert MessageType.BLUETOOTH_STATUS.value == "BLUETOOTH_STATUS"
        assert MessageType("CAMERA_SHOW") is MessageType.CAMERA_SHOW

    def test_serialization_keeps_korean_text(self):
        serialized = serialize_response(success_response("u", {"userId": "테스트 유저"}))
        assert "테스트 유저" in serialized
        assert json.loads(serialized)["data"]["userId"] == "테스트 유저"

    def test_newlines_in_data_are_escaped_on_request(self):
        response = ResponseEnvelope("r", True, data={"rawText": "line1\nline2", "lines": ["a\r\nb"]})

        escaped = json.loads(serialize_response(response, escape_newlines=True))
        plain = json.loads(serialize_response(response))

        assert escaped["data"]["rawText"] == "line1\\nline2"
        assert escaped["data"]["lines"] == ["a\\nb"]
        assert plain["data"]["rawText"] == "line1\nline2"

    def test_escape_free_text_leaves_other_values(self):
        assert escape_free_text({"n": 3, "ok": True, "none": None}) == {"n": 3, "ok": True, "none": None}


class TestScriptLiteral:

    def test_literal_is_a_json_string_of_the_text(self):
        serialized = '{"id": "1", "success": true}'
        literal = to_script_literal(serialized)

        assert literal.startswith('"') and literal.endswith('"')
        assert json.loads(literal) == serialized

    def test_script_terminators_are_neutralised(self):
        literal = to_script_literal('{"data": "</script>\u2028"}')

        assert "</script>" not in literal
        assert "\u2028" not in literal
        assert "\\u2028" in literal


class TestPageScripts:

    def test_message_event_carries_the_serialized_response(self):
        serialized = serialize_response(success_response("1", {"ok": True}))
        script = message_event_script(serialized)

        assert script.startswith("window.dispatchEvent(new MessageEvent('message', {data: ")
        assert to_script_literal(serialized) in script

    def test_status_change_calls_the_page_hook_only(self):
        script = status_change_script("off", "adapter off")

        assert 'window.BluetoothBridge.onStatusChange("off", "adapter off")' in script
        assert "dispatchEvent" not in script
        assert "success" not in script

    def test_missing_status_message_is_an_empty_string(self):
        assert 'onStatusChange("on", "")' in status_change_script("on")
        assert 'onStatusChange("on", "")' in status_change_script("on", None)

    def test_status_message_is_escaped(self):
        script = status_change_script("off", "it's \"off\"</script>")

        assert "</script>" not in script
        assert to_script_literal("it's \"off\"</script>") in script
