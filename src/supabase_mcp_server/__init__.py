"""MCP server exposing Supabase CRUD and schema tools."""

from supabase_mcp_server.config import ServerConfig, load_config
from supabase_mcp_server.server import MCPServer

__version__ = "1.0.0"

__all__ = ["MCPServer", "ServerConfig", "__version__", "load_config"]
