"""Audit log for tool invocations.

Append-only JSON Lines file recording each tools/call request and its
outcome. Credentials in tool arguments are redacted before writing.
"""

from __future__ import annotations

import json
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

REDACTED = "[REDACTED]"

# Argument keys whose values never reach the log
SENSITIVE_KEY_PATTERN = re.compile(
    r"password|secret|api[_-]?key|apikey|token|auth|credential|service[_-]?role",
    re.IGNORECASE,
)


def redact(value: Any) -> Any:
    """Return a copy of value with sensitive mapping entries redacted.

    Args:
        value: Arguments or any nested JSON value.

    Returns:
        Redacted copy.
    """
    if isinstance(value, dict):
        return {
            key: REDACTED if SENSITIVE_KEY_PATTERN.search(str(key)) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact(item) for item in value]
    return value


def utc_timestamp() -> str:
    """Current UTC time in ISO 8601 with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AuditLogger:
    """Append-only audit logger with JSON Lines format.

    The log file is flushed after each write.
    """

    def __init__(self, log_path: Path) -> None:
        """Initialize the audit logger.

        Args:
            log_path: Path to the audit log file.
        """
        self._log_path = log_path
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(log_path, "a", encoding="utf-8")  # noqa: SIM115

    @property
    def path(self) -> Path:
        return self._log_path

    def _write_line(self, data: dict[str, Any]) -> None:
        self._file.write(json.dumps(data, default=str) + "\n")
        self._file.flush()

    def log_request(self, request_id: str, tool_name: str, arguments: Any) -> None:
        """Log an incoming tool call.

        Args:
            request_id: Identifier correlating request and response lines.
            tool_name: Name of the tool being invoked.
            arguments: Tool arguments (redacted before writing).
        """
        self._write_line(
            {
                "type": "request",
                "timestamp": utc_timestamp(),
                "request_id": request_id,
                "tool_name": tool_name,
                "arguments": redact(arguments),
            }
        )

    def log_response(self, request_id: str, status: str, duration_ms: float) -> None:
        """Log the outcome of a tool call.

        Args:
            request_id: Request identifier to correlate with.
            status: "success" or "error".
            duration_ms: Execution time in milliseconds.
        """
        self._write_line(
            {
                "type": "response",
                "timestamp": utc_timestamp(),
                "request_id": request_id,
                "result_status": status,
                "execution_time_ms": round(duration_ms, 3),
            }
        )

    def close(self) -> None:
        """Close the log file."""
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> AuditLogger:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
