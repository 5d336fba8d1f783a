"""Tests for tools/list and tools/call handlers."""

import asyncio
import json

import pytest
from conftest import ECHO_SCHEMA, echo, explode

from supabase_mcp_server.audit import AuditLogger
from supabase_mcp_server.plugins.registry import (
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistry,
)
from supabase_mcp_server.protocol.tools import ToolsCallResult, ToolsHandler, ToolsListResult


@pytest.fixture
def registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register("echo", "Echoes the input", ECHO_SCHEMA, echo)
    registry.register("explode", "Always fails", {"type": "object"}, explode)
    return registry


class TestToolsListResult:
    """Tests for ToolsListResult."""

    def test_to_dict(self):
        result = ToolsListResult(tools=[{"name": "test"}])
        assert result.to_dict() == {"tools": [{"name": "test"}]}


class TestToolsCallResult:
    """Tests for ToolsCallResult."""

    def test_from_value_pretty_prints(self):
        result = ToolsCallResult.from_value({"a": [1, 2]})

        assert result.to_dict() == {
            "content": [{"type": "text", "text": '{\n  "a": [\n    1,\n    2\n  ]\n}'}]
        }

    def test_from_value_scalar(self):
        assert ToolsCallResult.from_value("ok").content == [{"type": "text", "text": '"ok"'}]


class TestToolsHandler:
    """Tests for ToolsHandler."""

    def test_handle_list(self, registry: ToolRegistry):
        result = ToolsHandler(registry).handle_list()

        assert [t["name"] for t in result.tools] == ["echo", "explode"]

    async def test_handle_call_success(self, registry: ToolRegistry):
        result = await ToolsHandler(registry).handle_call("echo", {"message": "hi"})

        assert json.loads(result.content[0]["text"]) == {"echo": "hi"}

    async def test_handle_call_unknown(self, registry: ToolRegistry):
        with pytest.raises(ToolNotFoundError):
            await ToolsHandler(registry).handle_call("missing", {})

    async def test_handle_call_failure(self, registry: ToolRegistry):
        with pytest.raises(ToolExecutionError, match="database unreachable"):
            await ToolsHandler(registry).handle_call("explode", {})

    async def test_timeout(self, registry: ToolRegistry):
        async def slow(arguments):
            await asyncio.sleep(5)

        registry.register("slow", "Sleeps", {}, slow)
        handler = ToolsHandler(registry, timeout=0.01)

        with pytest.raises(ToolExecutionError, match="timed out"):
            await handler.handle_call("slow", {})

    async def test_audits_failures(self, registry: ToolRegistry, tmp_path):
        log_path = tmp_path / "audit.jsonl"
        with AuditLogger(log_path) as audit:
            handler = ToolsHandler(registry, audit_logger=audit)
            with pytest.raises(ToolExecutionError):
                await handler.handle_call("explode", {"password": "hunter2"})

        lines = [json.loads(line) for line in log_path.read_text().splitlines()]
        assert lines[0]["arguments"] == {"password": "[REDACTED]"}
        assert lines[1]["result_status"] == "error"

    async def test_unknown_tools_not_audited(self, registry: ToolRegistry, tmp_path):
        log_path = tmp_path / "audit.jsonl"
        with AuditLogger(log_path) as audit:
            with pytest.raises(ToolNotFoundError):
                await ToolsHandler(registry, audit_logger=audit).handle_call("missing", {})

        assert log_path.read_text() == ""

    async def test_unhashable_name_is_not_found(self, registry: ToolRegistry, tmp_path):
        log_path = tmp_path / "audit.jsonl"
        with AuditLogger(log_path) as audit:
            with pytest.raises(ToolNotFoundError):
                await ToolsHandler(registry, audit_logger=audit).handle_call(["echo"], {})

        assert log_path.read_text() == ""

    async def test_audit_writes_run_in_worker_thread(
        self, registry: ToolRegistry, tmp_path, monkeypatch
    ):
        calls = []
        to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args):
            calls.append(func.__name__)
            return await to_thread(func, *args)

        monkeypatch.setattr(asyncio, "to_thread", recording_to_thread)
        with AuditLogger(tmp_path / "audit.jsonl") as audit:
            await ToolsHandler(registry, audit_logger=audit).handle_call("echo", {"message": "hi"})

        assert calls == ["log_request", "log_response"]
