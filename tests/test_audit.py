"""Tests for the tool invocation audit log."""

import json
import re
from pathlib import Path

from supabase_mcp_server.audit import REDACTED, AuditLogger, redact, utc_timestamp


class TestRedact:
    """Tests for argument redaction."""

    def test_redacts_sensitive_keys(self):
        assert redact({"password": "x", "api_key": "y", "table": "users"}) == {
            "password": REDACTED,
            "api_key": REDACTED,
            "table": "users",
        }

    def test_redacts_nested_values(self):
        arguments = {"data": {"auth_token": "t", "name": "ana"}, "rows": [{"secret": 1}]}

        assert redact(arguments) == {
            "data": {"auth_token": REDACTED, "name": "ana"},
            "rows": [{"secret": REDACTED}],
        }

    def test_does_not_mutate_input(self):
        arguments = {"password": "x"}
        redact(arguments)
        assert arguments == {"password": "x"}


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_creates_parent_directories(self, tmp_path: Path):
        log_path = tmp_path / "a" / "b" / "audit.jsonl"
        with AuditLogger(log_path):
            pass
        assert log_path.exists()

    def test_appends_json_lines(self, tmp_path: Path):
        log_path = tmp_path / "audit.jsonl"
        with AuditLogger(log_path) as audit:
            audit.log_request("r1", "supabase_query", {"table": "users", "token": "t"})
            audit.log_response("r1", "success", 12.3456)

        lines = [json.loads(line) for line in log_path.read_text().splitlines()]
        assert lines[0]["type"] == "request"
        assert lines[0]["arguments"] == {"table": "users", "token": REDACTED}
        assert lines[1]["execution_time_ms"] == 12.346

    def test_appends_across_instances(self, tmp_path: Path):
        log_path = tmp_path / "audit.jsonl"
        for request_id in ("a", "b"):
            with AuditLogger(log_path) as audit:
                audit.log_response(request_id, "success", 1.0)

        assert len(log_path.read_text().splitlines()) == 2

    def test_close_is_idempotent(self, tmp_path: Path):
        audit = AuditLogger(tmp_path / "audit.jsonl")
        audit.close()
        audit.close()


def test_timestamp_format():
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", utc_timestamp())
