"""
Tests for structured logging and payload sanitization.
"""

import logging

from parasocial_memory.util.logging import StructuredLogger, sanitize_payload


def test_sanitize_redacts_sensitive_fields():
    payload = {"memory_id": "abc", "content": "I love hiking", "nested": {"key": "secret-bytes", "size": 3}}

    assert sanitize_payload(payload) == {
        "memory_id": "abc",
        "content": "[REDACTED]",
        "nested": {"key": "[REDACTED]", "size": 3},
    }


def test_sanitize_truncates_long_strings():
    assert sanitize_payload("x" * 150) == "x" * 100 + "..."
    assert sanitize_payload(["short", "y" * 120]) == ["short", "y" * 100 + "..."]


def test_memory_operation_format(caplog):
    structured = StructuredLogger("parasocial_memory.test")

    with caplog.at_level(logging.INFO, logger="parasocial_memory.test"):
        structured.log_memory_operation("saved", "abc123", {"importance": 8, "content": "I love hiking"})

    assert "Operation: memory.saved, Status: success" in caplog.text
    assert "abc123" in caplog.text
    assert "I love hiking" not in caplog.text


def test_failures_log_at_warning(caplog):
    structured = StructuredLogger("parasocial_memory.test")

    with caplog.at_level(logging.WARNING, logger="parasocial_memory.test"):
        structured.log_memory_operation("decrypt", "abc123", {"error": "tag mismatch"}, status="failed")
        structured.log_memory_operation("saved", "def456")

    assert "memory.decrypt, Status: failed" in caplog.text
    assert "def456" not in caplog.text


def test_key_events_never_include_key_material(caplog):
    structured = StructuredLogger("parasocial_memory.test")

    with caplog.at_level(logging.INFO, logger="parasocial_memory.test"):
        structured.log_key_event("created", "parasocial-mem-key", details={"key": "c2VjcmV0"})

    assert "c2VjcmV0" not in caplog.text
    assert "parasocial-mem-key" in caplog.text
