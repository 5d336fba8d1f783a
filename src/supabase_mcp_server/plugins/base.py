"""Plugin base class and tool descriptors.

Defines the interface that all plugins must implement.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any] | Any]


@dataclass
class ToolDefinition:
    """A tool: public metadata plus the handler that runs it.

    The input schema is opaque metadata; it is advertised to clients but
    never validated by the server.
    """

    name: str
    description: str
    input_schema: dict[str, Any]
    handler: ToolHandler = field(repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP tool format.

        Returns:
            Dictionary in MCP tools/list format.
        """
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

    async def invoke(self, arguments: dict[str, Any]) -> Any:
        """Run the handler with the given arguments.

        Handlers may be coroutine functions or plain callables.
        """
        result = self.handler(arguments)
        if inspect.isawaitable(result):
            result = await result
        return result


class PluginBase(ABC):
    """Abstract base class for all plugins.

    Plugins must implement this interface to provide tools
    to the MCP server.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the plugin identifier."""
        pass

    @property
    @abstractmethod
    def version(self) -> str:
        """Return the plugin version."""
        pass

    @abstractmethod
    def get_tools(self) -> list[ToolDefinition]:
        """Return tool definitions provided by this plugin.

        Returns:
            List of ToolDefinition objects.
        """
        pass

    async def close(self) -> None:
        """Release resources held by the plugin.

        Default implementation does nothing.
        """
        return None
