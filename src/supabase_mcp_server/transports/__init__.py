"""Network transports for the MCP server."""

from supabase_mcp_server.transports.http import create_app
from supabase_mcp_server.transports.sse import SSESession, SSESessionStore

__all__ = ["SSESession", "SSESessionStore", "create_app"]
