"""FastAPI application exposing the MCP server over HTTP, WebSocket and SSE.

Endpoints:
- POST /mcp/http             request/response
- WS   /mcp                  one MCP session per socket
- GET  /mcp/sse              event stream (push channel)
- POST /mcp/sse/{session_id} messages for an open event stream
- GET  /health, /diagnostics
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from supabase_mcp_server.protocol.jsonrpc import JsonRpcError, decode_message, encode_message
from supabase_mcp_server.protocol.lifecycle import MCP_PROTOCOL_VERSION, Session
from supabase_mcp_server.server import MCPServer
from supabase_mcp_server.transports.sse import SSESessionStore

logger = logging.getLogger(__name__)

SERVICE_NAME = "mcp-supabase-native-server"
SERVICE_VERSION = "1.0.0"
PROTOCOLS = ["websocket", "sse", "http"]


def create_app(server: MCPServer) -> FastAPI:
    """Create the FastAPI app bound to an MCP server.

    Args:
        server: Engine shared by every connection.

    Returns:
        Configured FastAPI application. Shutting it down closes the server.
    """
    config = server.config
    sse_sessions = SSESessionStore(keepalive_seconds=config.sse_keepalive_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Tools: %d registered", len(server.registry))
        yield
        sse_sessions.close_all()
        await server.close()

    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.mcp_server = server
    app.state.sse_sessions = sse_sessions

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "protocols": PROTOCOLS,
        }

    @app.get("/diagnostics")
    async def diagnostics() -> dict:
        base = f"localhost:{config.port}"
        return {
            "server_info": {
                "name": SERVICE_NAME,
                "version": SERVICE_VERSION,
                "status": "running",
                "protocols": PROTOCOLS,
                "mcp_version": MCP_PROTOCOL_VERSION,
            },
            "available_tools": server.registry.names,
            "tool_count": len(server.registry),
            "sse_sessions": len(sse_sessions),
            "endpoints": {
                "websocket": f"ws://{base}/mcp",
                "sse": f"http://{base}/mcp/sse",
                "http": f"http://{base}/mcp/http",
                "health": f"http://{base}/health",
                "diagnostics": f"http://{base}/diagnostics",
            },
            "environment": {
                "port": config.port,
                "supabase_configured": config.supabase_configured,
            },
        }

    @app.post("/mcp/http")
    async def mcp_http(request: Request) -> Response:
        try:
            envelope = decode_message(await request.body())
        except JsonRpcError as e:
            return JSONResponse(e.to_envelope(None), status_code=status.HTTP_400_BAD_REQUEST)

        logger.debug("HTTP MCP message: %s", _method_of(envelope))
        response = await server.handle(envelope)
        if response is None:
            return Response(status_code=status.HTTP_204_NO_CONTENT)
        return JSONResponse(response)

    @app.websocket("/mcp")
    async def mcp_websocket(websocket: WebSocket) -> None:
        await websocket.accept()
        session = Session()
        logger.info("MCP client connected via WebSocket (session %s)", session.session_id)

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                # text and binary frames carry the same JSON
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                try:
                    envelope = decode_message(raw)
                except JsonRpcError as e:
                    logger.warning("Undecodable WebSocket frame: %s", e.data or e)
                    await websocket.send_text(encode_message(e.to_envelope(None)))
                    continue

                logger.debug("Received MCP message: %s", _method_of(envelope))
                response = await server.handle(envelope, session)
                if response is not None:
                    await websocket.send_text(encode_message(response))
        except WebSocketDisconnect:
            logger.info("MCP client disconnected (session %s)", session.session_id)

    @app.get("/mcp/sse")
    async def mcp_sse(request: Request) -> StreamingResponse:
        async def stream() -> AsyncIterator[str]:
            # registered only once the stream is consumed
            sse_session = sse_sessions.open()
            endpoint = str(request.url_for("mcp_sse_message", session_id=sse_session.session_id))
            try:
                async for frame in sse_session.events(endpoint):
                    yield frame
            finally:
                sse_sessions.discard(sse_session.session_id)

        return StreamingResponse(
            stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    @app.post("/mcp/sse/{session_id}", name="mcp_sse_message")
    async def mcp_sse_message(session_id: str, request: Request) -> JSONResponse:
        sse_session = sse_sessions.get(session_id)
        if sse_session is None:
            return JSONResponse(
                {"error": f"Unknown SSE session: {session_id}"},
                status_code=status.HTTP_404_NOT_FOUND,
            )

        try:
            envelope = decode_message(await request.body())
        except JsonRpcError as e:
            return JSONResponse(e.to_envelope(None), status_code=status.HTTP_400_BAD_REQUEST)

        response = await server.handle(envelope, sse_session.session)
        if response is not None:
            sse_session.push(response)
        return JSONResponse({"status": "accepted"}, status_code=status.HTTP_202_ACCEPTED)

    return app


def _method_of(envelope: object) -> object:
    return envelope.get("method") if isinstance(envelope, dict) else None
