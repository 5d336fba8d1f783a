#!/usr/bin/env python3
"""Supabase MCP Server - main entry point.

Serves the Model Context Protocol over HTTP, WebSocket and SSE (default) or
over stdio, with CRUD and schema tools bound to a Supabase project.

================================================================================
DEVELOPER GUIDE: Adding Tools
================================================================================

Tools come from plugins. Implement PluginBase (see
src/supabase_mcp_server/plugins/base.py) and register the plugin in
build_server() below:

    server.register_plugin(MyPlugin())

Single tools can be registered without a plugin:

    async def ping(arguments):
        return {"pong": True}

    server.register("ping", "Health probe", {"type": "object"}, ping)

Each tool appears in tools/list in registration order. Registering a name
twice replaces the first tool unless tools.strict_registration is set in
the config file, in which case startup fails on duplicates.

CONFIGURATION
-------------
config/server.yaml holds defaults. SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY
must come from the environment; without them the server starts with no
Supabase tools.

================================================================================
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

import uvicorn

from supabase_mcp_server import __version__
from supabase_mcp_server.config import ConfigLoadError, ServerConfig, load_config
from supabase_mcp_server.plugins.supabase import SupabaseConfigError, SupabasePlugin
from supabase_mcp_server.protocol.transport import StdioTransport
from supabase_mcp_server.server import MCPServer
from supabase_mcp_server.transports.http import create_app

logger = logging.getLogger("supabase_mcp_server")

DEFAULT_CONFIG = Path("config/server.yaml")


def configure_logging(level: str) -> None:
    """Send all log output to stderr; stdout may carry the protocol."""
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="[MCP] %(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_server(config: ServerConfig) -> MCPServer:
    """Create the server and register the built-in plugins."""
    server = MCPServer(config)

    try:
        server.register_plugin(SupabasePlugin.from_config(config))
        logger.info("Supabase tools registered successfully")
    except SupabaseConfigError as e:
        logger.error("Failed to register Supabase tools: %s", e)

    return server


async def run_stdio(server: MCPServer) -> None:
    try:
        await StdioTransport().serve(server)
    finally:
        await server.close()


def main() -> int:
    """Run the MCP server.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        description="Supabase MCP Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help=f"Path to YAML config file (default: {DEFAULT_CONFIG} if present)",
    )
    parser.add_argument(
        "--transport",
        "-t",
        choices=["http", "stdio"],
        default="http",
        help="Serve over HTTP/WebSocket/SSE or over stdio (default: http)",
    )
    parser.add_argument("--host", help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, help="Listen port (overrides config)")
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"supabase-mcp-server {__version__}",
    )

    args = parser.parse_args()

    config_path = args.config
    if config_path is None and DEFAULT_CONFIG.exists():
        config_path = DEFAULT_CONFIG

    try:
        config = load_config(config_path)
    except ConfigLoadError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    if args.host or args.port:
        config = replace(config, host=args.host or config.host, port=args.port or config.port)

    configure_logging(config.log_level)

    try:
        server = build_server(config)
    except Exception as e:
        logger.error("Error building server: %s", e)
        return 1

    if args.transport == "stdio":
        try:
            asyncio.run(run_stdio(server))
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
            return 130  # Standard exit code for SIGINT
        return 0

    host, port = config.host, config.port
    logger.info("MCP Supabase Native Server v%s on %s:%d", __version__, host, port)
    logger.info("WebSocket: ws://localhost:%d/mcp", port)
    logger.info("SSE: http://localhost:%d/mcp/sse", port)
    logger.info("HTTP: http://localhost:%d/mcp/http", port)

    uvicorn.run(create_app(server), host=host, port=port, log_level=config.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
