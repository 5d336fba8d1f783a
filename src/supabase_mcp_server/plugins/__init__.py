"""Plugin system for MCP tools."""

from supabase_mcp_server.plugins.base import PluginBase, ToolDefinition, ToolHandler
from supabase_mcp_server.plugins.registry import (
    DuplicateToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistry,
)

__all__ = [
    "DuplicateToolError",
    "PluginBase",
    "ToolDefinition",
    "ToolExecutionError",
    "ToolHandler",
    "ToolNotFoundError",
    "ToolRegistry",
]
