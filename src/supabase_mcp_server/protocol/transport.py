"""STDIO transport layer for MCP communication.

Reads newline-delimited JSON-RPC messages from stdin and writes responses
to stdout. Logging must go to stderr to avoid corrupting the protocol stream.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, TextIO

from supabase_mcp_server.protocol.jsonrpc import JsonRpcError, decode_message, encode_message

if TYPE_CHECKING:
    from supabase_mcp_server.server import MCPServer

logger = logging.getLogger(__name__)


class StdioTransport:
    """STDIO transport for MCP communication."""

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            stdin: Input stream (defaults to sys.stdin).
            stdout: Output stream (defaults to sys.stdout).
        """
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    def read_message(self) -> str | None:
        """Read a message from stdin.

        Reads lines until a non-empty line is found.

        Returns:
            Message string (stripped), or None on EOF.
        """
        while True:
            try:
                line = self._stdin.readline()
            except (OSError, ValueError):
                return None

            if not line:  # EOF
                return None

            line = line.strip()
            if line:  # Skip empty lines
                return line

    def write_message(self, message: str) -> None:
        """Write a message to stdout.

        Args:
            message: JSON string to write.
        """
        self._stdout.write(message + "\n")
        self._stdout.flush()

    async def serve(self, server: MCPServer) -> None:
        """Pump messages through the server until EOF.

        The whole stream shares the server's default session.
        """
        logger.info("Serving MCP over stdio")
        while True:
            raw = await asyncio.to_thread(self.read_message)
            if raw is None:
                logger.info("EOF received, shutting down")
                return

            try:
                envelope = decode_message(raw)
            except JsonRpcError as e:
                logger.warning("Undecodable message on stdin: %s", e.data or e)
                self.write_message(encode_message(e.to_envelope(None)))
                continue

            response = await server.handle(envelope)
            if response is not None:
                self.write_message(encode_message(response))
