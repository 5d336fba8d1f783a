"""MCP methods routed by the server."""

from __future__ import annotations

from enum import Enum


class Method(str, Enum):
    """Recognized MCP method names."""

    INITIALIZE = "initialize"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"
    INITIALIZED = "notifications/initialized"

    @classmethod
    def lookup(cls, name: str) -> Method | None:
        """Return the method for an exact name, or None."""
        try:
            return cls(name)
        except ValueError:
            return None
