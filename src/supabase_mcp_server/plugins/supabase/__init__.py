"""Supabase tools for the MCP server."""

from .client import SupabaseClient
from .exceptions import SupabaseConfigError, SupabaseError
from .plugin import SupabasePlugin

__all__ = [
    "SupabaseClient",
    "SupabaseConfigError",
    "SupabaseError",
    "SupabasePlugin",
]
