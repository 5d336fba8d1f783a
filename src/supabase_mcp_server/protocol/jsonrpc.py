"""JSON-RPC 2.0 envelope framing.

Builds response and error envelopes for MCP communication and handles the
wire encoding used by every transport.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

JSONRPC_VERSION = "2.0"

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Maximum message size (1 MB)
MAX_MESSAGE_SIZE = 1_048_576


class JsonRpcError(Exception):
    """JSON-RPC error with code and message."""

    def __init__(self, code: int, message: str, data: Any | None = None) -> None:
        """Initialize the error.

        Args:
            code: JSON-RPC error code.
            message: Human-readable error message.
            data: Optional additional error data.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_envelope(self, msg_id: int | str | None) -> dict[str, Any]:
        """Convert to an error envelope echoing the given id."""
        return error_envelope(msg_id, self.code, self.message, self.data)


@dataclass
class JsonRpcRequest:
    """A routed request. ``id`` is None for notifications."""

    method: str
    id: int | str | None = None
    params: dict[str, Any] | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None

    @classmethod
    def from_envelope(cls, envelope: Any) -> JsonRpcRequest:
        """Extract method, id and params from a decoded envelope.

        Args:
            envelope: Decoded JSON value.

        Returns:
            The request.

        Raises:
            ValueError: If the envelope has no usable method or params.
        """
        if not isinstance(envelope, dict):
            raise ValueError("Invalid request: message must be an object")

        method = envelope.get("method")
        if not isinstance(method, str):
            raise ValueError("Invalid request: method must be a string")

        params = envelope.get("params")
        if params is not None and not isinstance(params, dict):
            raise ValueError("Invalid request: params must be an object")

        return cls(method=method, id=envelope.get("id"), params=params)


def extract_id(envelope: Any) -> int | str | None:
    """Return the correlation id of an envelope, or None if unrecoverable."""
    if isinstance(envelope, dict):
        msg_id = envelope.get("id")
        if isinstance(msg_id, int | str):
            return msg_id
    return None


def decode_message(raw: str | bytes) -> Any:
    """Decode a raw payload into a JSON value.

    Args:
        raw: Raw message text or bytes.

    Returns:
        The decoded JSON value.

    Raises:
        JsonRpcError: With PARSE_ERROR if the payload is too large or not JSON.
    """
    # Size is measured in UTF-8 bytes whatever the frame type
    size = len(raw.encode("utf-8", "surrogatepass")) if isinstance(raw, str) else len(raw)
    if size > MAX_MESSAGE_SIZE:
        raise JsonRpcError(
            PARSE_ERROR, f"Message too large: {size} bytes exceeds {MAX_MESSAGE_SIZE} limit"
        )

    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise JsonRpcError(PARSE_ERROR, "Parse error", data=str(e)) from e


def encode_message(envelope: dict[str, Any]) -> str:
    """Serialize an envelope for the wire."""
    return json.dumps(envelope, ensure_ascii=False)


def response_envelope(msg_id: int | str | None, result: Any) -> dict[str, Any]:
    """Build a successful JSON-RPC response.

    Args:
        msg_id: Request ID to echo back.
        result: Result payload.

    Returns:
        Response envelope.
    """
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": msg_id,
        "result": result,
    }


def error_envelope(
    msg_id: int | str | None,
    code: int,
    message: str,
    data: Any | None = None,
) -> dict[str, Any]:
    """Build a JSON-RPC error response.

    Args:
        msg_id: Request ID (or None when it could not be recovered).
        code: Error code.
        message: Error message.
        data: Optional error data.

    Returns:
        Error envelope.
    """
    error_obj: dict[str, Any] = {
        "code": code,
        "message": message,
    }
    if data is not None:
        error_obj["data"] = data

    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": msg_id,
        "error": error_obj,
    }
