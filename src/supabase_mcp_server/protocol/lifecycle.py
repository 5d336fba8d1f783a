"""MCP lifecycle management.

Handles the initialize/initialized handshake and tracks per-connection
session state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

MCP_PROTOCOL_VERSION = "2024-11-05"

SERVER_NAME = "supabase-mcp-server"
SERVER_VERSION = "1.0.0"


def server_info() -> dict[str, str]:
    """Return the fixed server identity."""
    return {"name": SERVER_NAME, "version": SERVER_VERSION}


def server_capabilities() -> dict[str, Any]:
    """Return the capability set declared in the initialize result."""
    return {
        "tools": {"listChanged": False},
        "resources": {"subscribe": False, "listChanged": False},
        "prompts": {"listChanged": False},
    }


class LifecycleState(Enum):
    """MCP connection lifecycle states."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class ProtocolError(Exception):
    """Raised when a lifecycle message is malformed."""

    pass


@dataclass
class Session:
    """Per-connection MCP session.

    Each transport connection owns one session, so negotiated client
    capabilities never leak between connections. Re-initializing a session
    replaces the stored capabilities.
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: LifecycleState = LifecycleState.UNINITIALIZED
    client_info: dict[str, Any] | None = None
    client_capabilities: dict[str, Any] | None = None

    @property
    def is_ready(self) -> bool:
        """Check if the handshake has completed."""
        return self.state == LifecycleState.READY

    def handle_initialize(self, params: dict[str, Any] | None) -> dict[str, Any]:
        """Handle initialize request.

        Args:
            params: Initialize request parameters.

        Returns:
            Initialize response result.

        Raises:
            ProtocolError: If params are missing.
        """
        if params is None:
            raise ProtocolError("initialize requires params")

        self.client_capabilities = params.get("capabilities") or {}
        self.client_info = params.get("clientInfo")
        self.state = LifecycleState.INITIALIZING

        return {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": server_capabilities(),
            "serverInfo": server_info(),
        }

    def handle_initialized(self) -> None:
        """Handle the initialized notification."""
        self.state = LifecycleState.READY
