"""Tests for JSON-RPC 2.0 envelope framing."""

import json

import pytest

from supabase_mcp_server.protocol.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    MAX_MESSAGE_SIZE,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    JsonRpcError,
    JsonRpcRequest,
    decode_message,
    encode_message,
    error_envelope,
    extract_id,
    response_envelope,
)
from supabase_mcp_server.protocol.methods import Method


class TestErrorCodes:
    """The numeric codes are part of the wire contract."""

    def test_codes_are_standard(self):
        assert PARSE_ERROR == -32700
        assert METHOD_NOT_FOUND == -32601
        assert INVALID_PARAMS == -32602
        assert INTERNAL_ERROR == -32603


class TestDecodeMessage:
    """Tests for decoding raw payloads."""

    def test_decodes_text(self):
        assert decode_message('{"jsonrpc":"2.0","id":1,"method":"tools/list"}') == {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/list",
        }

    def test_decodes_bytes(self):
        assert decode_message(b'{"method":"x"}') == {"method": "x"}

    def test_invalid_json_is_parse_error(self):
        with pytest.raises(JsonRpcError) as exc_info:
            decode_message("not valid json")
        assert exc_info.value.code == PARSE_ERROR
        assert exc_info.value.message == "Parse error"

    def test_empty_payload_is_parse_error(self):
        with pytest.raises(JsonRpcError) as exc_info:
            decode_message(b"")
        assert exc_info.value.code == PARSE_ERROR

    def test_rejects_oversized_message(self):
        raw = '{"data": "' + "x" * MAX_MESSAGE_SIZE + '"}'
        with pytest.raises(JsonRpcError) as exc_info:
            decode_message(raw)
        assert exc_info.value.code == PARSE_ERROR
        assert "too large" in exc_info.value.message

    def test_size_limit_counts_encoded_bytes(self):
        """Multibyte text is measured as it travels on the wire."""
        raw = '{"data": "' + "é" * (MAX_MESSAGE_SIZE // 2 + 1) + '"}'
        assert len(raw) < MAX_MESSAGE_SIZE

        with pytest.raises(JsonRpcError, match="too large"):
            decode_message(raw)

    def test_error_converts_to_null_id_envelope(self):
        with pytest.raises(JsonRpcError) as exc_info:
            decode_message("{")
        envelope = exc_info.value.to_envelope(None)

        assert envelope["id"] is None
        assert envelope["error"]["code"] == -32700


class TestJsonRpcRequest:
    """Tests for extracting requests from envelopes."""

    def test_request_with_params(self):
        req = JsonRpcRequest.from_envelope(
            {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "x"}}
        )

        assert req.id == 1
        assert req.method == "tools/call"
        assert req.params == {"name": "x"}
        assert not req.is_notification

    def test_notification_has_no_id(self):
        req = JsonRpcRequest.from_envelope({"jsonrpc": "2.0", "method": "notifications/initialized"})

        assert req.id is None
        assert req.is_notification

    @pytest.mark.parametrize(
        "envelope",
        [
            [],
            {"id": 1},
            {"id": 1, "method": 5},
            {"id": 1, "method": "tools/list", "params": "x"},
        ],
    )
    def test_rejects_unusable_envelopes(self, envelope):
        with pytest.raises(ValueError):
            JsonRpcRequest.from_envelope(envelope)


class TestExtractId:
    """Tests for id recovery on failure paths."""

    def test_recovers_int_and_str(self):
        assert extract_id({"id": 3}) == 3
        assert extract_id({"id": "a"}) == "a"

    def test_unrecoverable_is_none(self):
        assert extract_id({"id": {"nested": 1}}) is None
        assert extract_id(["id"]) is None
        assert extract_id(None) is None


class TestEnvelopes:
    """Tests for response and error envelopes."""

    def test_response_envelope(self):
        assert response_envelope(1, {"ok": True}) == {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {"ok": True},
        }

    def test_error_envelope_without_data(self):
        envelope = error_envelope("x", METHOD_NOT_FOUND, "Method not found: foo")

        assert envelope == {
            "jsonrpc": "2.0",
            "id": "x",
            "error": {"code": -32601, "message": "Method not found: foo"},
        }

    def test_error_envelope_with_data(self):
        envelope = error_envelope(None, INTERNAL_ERROR, "boom", data={"hint": 1})
        assert envelope["error"]["data"] == {"hint": 1}
        assert envelope["id"] is None

    def test_encode_keeps_unicode(self):
        encoded = encode_message(response_envelope(1, {"tabla": "año"}))
        assert "año" in encoded
        assert json.loads(encoded)["result"]["tabla"] == "año"


class TestMethod:
    """Tests for method lookup."""

    def test_exact_names(self):
        assert Method.lookup("initialize") is Method.INITIALIZE
        assert Method.lookup("tools/list") is Method.TOOLS_LIST
        assert Method.lookup("tools/call") is Method.TOOLS_CALL
        assert Method.lookup("notifications/initialized") is Method.INITIALIZED

    def test_no_partial_matching(self):
        assert Method.lookup("tools") is None
        assert Method.lookup("Initialize") is None
