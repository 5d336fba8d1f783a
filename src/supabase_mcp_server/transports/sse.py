"""Server-Sent Events sessions.

A client opens an event stream and receives a session id; it then POSTs
messages for that session and the server pushes response envelopes onto
the stream.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from supabase_mcp_server.protocol.lifecycle import Session

logger = logging.getLogger(__name__)

_CLOSED = object()


def format_event(data: Any, event: str | None = None) -> str:
    """Format one SSE frame."""
    payload = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {payload}\n\n"


class SSESession:
    """One event stream and the MCP session it carries."""

    def __init__(self, keepalive_seconds: float = 15.0) -> None:
        self.session = Session()
        self.keepalive_seconds = keepalive_seconds
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    @property
    def session_id(self) -> str:
        return self.session.session_id

    def push(self, envelope: dict[str, Any]) -> None:
        """Queue an envelope for delivery on the stream."""
        self._queue.put_nowait(envelope)

    def close(self) -> None:
        """End the stream after already queued events."""
        self._queue.put_nowait(_CLOSED)

    async def events(self, endpoint: str) -> AsyncIterator[str]:
        """Yield SSE frames until the session is closed.

        Args:
            endpoint: URL the client must POST messages to.
        """
        yield format_event(
            {"type": "connection", "status": "connected", "sessionId": self.session_id}
        )
        yield format_event(endpoint, event="endpoint")

        while True:
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout=self.keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue

            if item is _CLOSED:
                return
            yield format_event(item, event="message")


class SSESessionStore:
    """Open SSE sessions keyed by session id."""

    def __init__(self, keepalive_seconds: float = 15.0) -> None:
        self._keepalive_seconds = keepalive_seconds
        self._sessions: dict[str, SSESession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self) -> SSESession:
        sse_session = SSESession(keepalive_seconds=self._keepalive_seconds)
        self._sessions[sse_session.session_id] = sse_session
        logger.info("SSE client connected (session %s)", sse_session.session_id)
        return sse_session

    def get(self, session_id: str) -> SSESession | None:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info("SSE client disconnected (session %s)", session_id)

    def close_all(self) -> None:
        for sse_session in list(self._sessions.values()):
            sse_session.close()
        self._sessions.clear()
