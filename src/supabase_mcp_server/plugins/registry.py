"""Tool registry - stores tool descriptors and routes calls to their handlers."""

from __future__ import annotations

import logging
from typing import Any

from supabase_mcp_server.plugins.base import PluginBase, ToolDefinition, ToolHandler

logger = logging.getLogger(__name__)


class ToolNotFoundError(Exception):
    """Raised when a tool is not found."""

    pass


class ToolExecutionError(Exception):
    """Raised when a tool fails to execute."""

    pass


class DuplicateToolError(Exception):
    """Raised by register_once when the name is already taken."""

    pass


class ToolRegistry:
    """In-memory registry of tools, keyed by name.

    Insertion order is preserved for listing. Replacing an existing
    name keeps its original position.
    """

    def __init__(self) -> None:
        """Initialize the registry."""
        self._tools: dict[str, ToolDefinition] = {}
        self._plugins: list[PluginBase] = []

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._tools

    @property
    def names(self) -> list[str]:
        """Registered tool names in registration order."""
        return list(self._tools)

    def register(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        handler: ToolHandler,
    ) -> ToolDefinition:
        """Store a tool, silently replacing any tool with the same name.

        Args:
            name: Unique tool name.
            description: Human-readable description.
            input_schema: JSON-Schema-like input contract (not validated).
            handler: Callable receiving the arguments object.

        Returns:
            The stored definition.
        """
        definition = ToolDefinition(
            name=name, description=description, input_schema=input_schema, handler=handler
        )
        return self.register_tool(definition)

    def register_once(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        handler: ToolHandler,
    ) -> ToolDefinition:
        """Store a tool, refusing to replace an existing one.

        Raises:
            DuplicateToolError: If the name is already registered.
        """
        definition = ToolDefinition(
            name=name, description=description, input_schema=input_schema, handler=handler
        )
        return self.register_tool(definition, replace=False)

    def register_tool(self, definition: ToolDefinition, replace: bool = True) -> ToolDefinition:
        """Store a prebuilt tool definition.

        Args:
            definition: Tool to store.
            replace: Whether an existing tool with the same name may be replaced.

        Returns:
            The stored definition.

        Raises:
            DuplicateToolError: If replace is False and the name exists.
        """
        if definition.name in self._tools:
            if not replace:
                raise DuplicateToolError(f"Tool already registered: {definition.name}")
            logger.warning("Replacing registered tool %s", definition.name)

        self._tools[definition.name] = definition
        logger.debug("Registered tool %s", definition.name)
        return definition

    def register_plugin(self, plugin: PluginBase, replace: bool = True) -> None:
        """Register every tool a plugin provides.

        Args:
            plugin: Plugin instance to register.
            replace: Whether plugin tools may replace existing ones.
        """
        tools = plugin.get_tools()
        for tool in tools:
            self.register_tool(tool, replace=replace)
        self._plugins.append(plugin)
        logger.info(
            "Registered plugin %s %s (%d tools)", plugin.name, plugin.version, len(tools)
        )

    def lookup(self, name: str) -> ToolDefinition | None:
        """Return the tool registered under name, or None."""
        if not isinstance(name, str):
            return None
        return self._tools.get(name)

    def list_tools(self) -> list[dict[str, Any]]:
        """List all available tools in MCP format.

        Returns:
            Public tool fields in registration order.
        """
        return [tool.to_dict() for tool in self._tools.values()]

    async def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> Any:
        """Call a tool by name.

        Args:
            tool_name: Name of the tool to call.
            arguments: Arguments to pass to the tool.

        Returns:
            The handler's result.

        Raises:
            ToolNotFoundError: If the tool is not registered.
            ToolExecutionError: If the handler fails.
        """
        tool = self.lookup(tool_name)
        if tool is None:
            raise ToolNotFoundError(f"Tool not found: {tool_name}")

        try:
            return await tool.invoke(arguments)
        except Exception as e:
            raise ToolExecutionError(str(e)) from e

    def get_tool_schema(self, tool_name: str) -> dict[str, Any] | None:
        """Get the input schema for a tool.

        Args:
            tool_name: Name of the tool.

        Returns:
            Input schema dict or None if tool not found.
        """
        tool = self.lookup(tool_name)
        return tool.input_schema if tool else None

    async def close(self) -> None:
        """Close all registered plugins."""
        for plugin in self._plugins:
            await plugin.close()
