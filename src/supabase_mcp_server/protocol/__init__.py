"""MCP Protocol layer for JSON-RPC communication."""

from supabase_mcp_server.protocol.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    JsonRpcError,
    JsonRpcRequest,
    decode_message,
    encode_message,
    error_envelope,
    response_envelope,
)
from supabase_mcp_server.protocol.lifecycle import (
    MCP_PROTOCOL_VERSION,
    LifecycleState,
    ProtocolError,
    Session,
)
from supabase_mcp_server.protocol.methods import Method
from supabase_mcp_server.protocol.tools import ToolsCallResult, ToolsHandler, ToolsListResult
from supabase_mcp_server.protocol.transport import StdioTransport

__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "JsonRpcError",
    "JsonRpcRequest",
    "LifecycleState",
    "MCP_PROTOCOL_VERSION",
    "METHOD_NOT_FOUND",
    "Method",
    "PARSE_ERROR",
    "ProtocolError",
    "Session",
    "StdioTransport",
    "ToolsCallResult",
    "ToolsHandler",
    "ToolsListResult",
    "decode_message",
    "encode_message",
    "error_envelope",
    "response_envelope",
]
