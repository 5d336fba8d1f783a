"""MCP tools/list and tools/call handlers.

Handles tool-related MCP requests, routing them through the tool registry.
"""

from __future__ import annotations

import asyncio
import json
import time
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from supabase_mcp_server.plugins.registry import (
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistry,
)

if TYPE_CHECKING:
    from supabase_mcp_server.audit import AuditLogger


@dataclass
class ToolsListResult:
    """Result of tools/list request."""

    tools: list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP result format.

        Returns:
            Dictionary in MCP tools/list result format.
        """
        return {"tools": self.tools}


@dataclass
class ToolsCallResult:
    """Result of a successful tools/call request."""

    content: list[dict[str, Any]]

    @classmethod
    def from_value(cls, value: Any) -> ToolsCallResult:
        """Wrap a handler result as a single pretty-printed text item."""
        text = json.dumps(value, indent=2, ensure_ascii=False)
        return cls(content=[{"type": "text", "text": text}])

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP result format.

        Returns:
            Dictionary in MCP tools/call result format.
        """
        return {"content": self.content}


class ToolsHandler:
    """Handles tools/list and tools/call MCP requests.

    Routes requests through the registry and formats results as MCP
    text content items.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        timeout: float | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        """Initialize the handler.

        Args:
            registry: Tool registry for routing calls.
            timeout: Optional per-invocation timeout in seconds.
            audit_logger: Optional audit log for tool invocations.
        """
        self._registry = registry
        self._timeout = timeout
        self._audit_logger = audit_logger

    def handle_list(self) -> ToolsListResult:
        """Handle tools/list request.

        Returns:
            ToolsListResult with all available tools.
        """
        return ToolsListResult(tools=self._registry.list_tools())

    async def handle_call(self, name: str, arguments: dict[str, Any]) -> ToolsCallResult:
        """Handle tools/call request.

        Args:
            name: Name of the tool to call.
            arguments: Tool arguments.

        Returns:
            ToolsCallResult wrapping the handler's result.

        Raises:
            ToolNotFoundError: If no tool has this name.
            ToolExecutionError: If the handler fails, times out, or returns
                something that cannot be serialized.
        """
        # name is whatever JSON value the client sent
        if name not in self._registry:
            raise ToolNotFoundError(f"Tool not found: {name}")

        request_id = str(uuid.uuid4())
        if self._audit_logger:
            # file writes run off the event loop
            await asyncio.to_thread(self._audit_logger.log_request, request_id, name, arguments)

        started = time.perf_counter()
        status = "error"
        try:
            value = await self._call(name, arguments)
            try:
                result = ToolsCallResult.from_value(value)
            except (TypeError, ValueError) as e:
                raise ToolExecutionError(f"result is not JSON serializable: {e}") from e
            status = "success"
            return result
        finally:
            if self._audit_logger:
                duration_ms = (time.perf_counter() - started) * 1000
                await asyncio.to_thread(
                    self._audit_logger.log_response, request_id, status, duration_ms
                )

    async def _call(self, name: str, arguments: dict[str, Any]) -> Any:
        if self._timeout is None:
            return await self._registry.call_tool(name, arguments)
        try:
            return await asyncio.wait_for(
                self._registry.call_tool(name, arguments), timeout=self._timeout
            )
        except asyncio.TimeoutError as e:
            raise ToolExecutionError(f"timed out after {self._timeout}s") from e
