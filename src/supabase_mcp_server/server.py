"""MCP Server - the protocol engine.

Routes decoded JSON-RPC envelopes to the lifecycle and tool handlers and
frames every outcome as a response envelope. Transports call ``handle``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from supabase_mcp_server.audit import AuditLogger
from supabase_mcp_server.config import ServerConfig
from supabase_mcp_server.plugins.base import PluginBase, ToolHandler
from supabase_mcp_server.plugins.registry import (
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistry,
)
from supabase_mcp_server.protocol.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    JsonRpcRequest,
    error_envelope,
    extract_id,
    response_envelope,
)
from supabase_mcp_server.protocol.lifecycle import Session
from supabase_mcp_server.protocol.methods import Method
from supabase_mcp_server.protocol.tools import ToolsHandler

logger = logging.getLogger(__name__)

InitializedListener = Callable[[Session], None]


class MCPServer:
    """MCP Server implementation.

    Provides a transport-agnostic MCP engine that handles:
    - Lifecycle management (initialize/initialized)
    - Tool listing and execution

    Session state is carried per connection. Callers that pass no session
    share the server's default session.
    """

    def __init__(self, config: ServerConfig | None = None) -> None:
        """Initialize the server.

        Args:
            config: Server configuration. Defaults apply when omitted.
        """
        self._config = config or ServerConfig()

        if self._config.audit_log_file:
            self._audit_logger: AuditLogger | None = AuditLogger(self._config.audit_log_path)
        else:
            self._audit_logger = None

        self._registry = ToolRegistry()
        self._tools_handler = ToolsHandler(
            self._registry,
            timeout=self._config.tool_timeout,
            audit_logger=self._audit_logger,
        )
        self._default_session = Session()
        self._initialized_listeners: list[InitializedListener] = []

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def default_session(self) -> Session:
        """Session used when a transport does not track its own."""
        return self._default_session

    @property
    def client_capabilities(self) -> dict[str, Any] | None:
        """Capabilities negotiated on the default session."""
        return self._default_session.client_capabilities

    def register(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        handler: ToolHandler,
    ) -> None:
        """Register a single tool.

        Replaces an existing tool of the same name unless strict
        registration is configured.
        """
        if self._config.strict_registration:
            self._registry.register_once(name, description, input_schema, handler)
        else:
            self._registry.register(name, description, input_schema, handler)

    def register_plugin(self, plugin: PluginBase) -> None:
        """Register a plugin.

        Args:
            plugin: Plugin to register.
        """
        self._registry.register_plugin(plugin, replace=not self._config.strict_registration)

    def list_tools(self) -> list[dict[str, Any]]:
        """List all registered tools.

        Returns:
            List of tool definitions.
        """
        return self._registry.list_tools()

    def on_initialized(self, listener: InitializedListener) -> None:
        """Subscribe to handshake completion.

        Args:
            listener: Called with the session once per initialized notification.
        """
        self._initialized_listeners.append(listener)

    async def handle(
        self, envelope: Any, session: Session | None = None
    ) -> dict[str, Any] | None:
        """Handle a decoded JSON-RPC envelope.

        Args:
            envelope: Decoded request or notification.
            session: Connection session, or None for the default session.

        Returns:
            Response envelope, or None when no response must be sent.
        """
        session = session or self._default_session
        try:
            request = JsonRpcRequest.from_envelope(envelope)
            return await self._dispatch(request, session)
        except Exception as e:
            logger.exception("Failed to handle message")
            return error_envelope(extract_id(envelope), INTERNAL_ERROR, str(e))

    async def _dispatch(self, request: JsonRpcRequest, session: Session) -> dict[str, Any] | None:
        method = Method.lookup(request.method)
        logger.debug("Dispatching %s (id=%r)", request.method, request.id)

        if method is Method.INITIALIZE:
            result = session.handle_initialize(request.params)
            logger.info("Session %s initialized by %s", session.session_id, session.client_info)
            return response_envelope(request.id, result)

        if method is Method.TOOLS_LIST:
            return response_envelope(request.id, self._tools_handler.handle_list().to_dict())

        if method is Method.TOOLS_CALL:
            return await self._handle_tools_call(request)

        if method is Method.INITIALIZED:
            session.handle_initialized()
            self._emit_initialized(session)
            return None

        return error_envelope(request.id, METHOD_NOT_FOUND, f"Method not found: {request.method}")

    async def _handle_tools_call(self, request: JsonRpcRequest) -> dict[str, Any]:
        params = request.params
        if params is None:
            raise ValueError("tools/call requires params")

        name = params.get("name")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}

        try:
            result = await self._tools_handler.handle_call(name, arguments)
        except ToolNotFoundError:
            return error_envelope(request.id, INVALID_PARAMS, f"Tool not found: {name}")
        except ToolExecutionError as e:
            logger.warning("Tool %s failed: %s", name, e)
            return error_envelope(request.id, INTERNAL_ERROR, f"Tool execution failed: {e}")

        return response_envelope(request.id, result.to_dict())

    def _emit_initialized(self, session: Session) -> None:
        for listener in self._initialized_listeners:
            try:
                listener(session)
            except Exception:
                logger.exception("initialized listener failed")

    async def close(self) -> None:
        """Close the server and clean up resources."""
        await self._registry.close()
        if self._audit_logger:
            self._audit_logger.close()
