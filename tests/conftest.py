"""Shared fixtures for the MCP server tests."""

from __future__ import annotations

from typing import Any

import pytest

from supabase_mcp_server.server import MCPServer

ECHO_SCHEMA = {
    "type": "object",
    "properties": {"message": {"type": "string"}},
    "required": ["message"],
}


async def echo(arguments: dict[str, Any]) -> dict[str, Any]:
    return {"echo": arguments.get("message")}


async def explode(arguments: dict[str, Any]) -> Any:
    raise RuntimeError("database unreachable")


def request(method: str, msg_id: int | str | None = 1, params: dict | None = None) -> dict:
    """Build a JSON-RPC envelope; msg_id=None builds a notification."""
    envelope: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if msg_id is not None:
        envelope["id"] = msg_id
    if params is not None:
        envelope["params"] = params
    return envelope


@pytest.fixture
def server() -> MCPServer:
    """Server with an echo tool and a tool that always fails."""
    server = MCPServer()
    server.register("echo", "Echoes the message back", ECHO_SCHEMA, echo)
    server.register("explode", "Always fails", {"type": "object"}, explode)
    return server
