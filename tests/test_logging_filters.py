"""Tests for sensitive data filtering and JSON log formatting."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from chat_gateway.core.logging import (
    JsonFormatter,
    SensitiveDataFilter,
    clear_request_id,
    redact,
    set_request_id,
)


@pytest.fixture
def log_capture():
    """Yield a logger writing JSON through the redaction filter, plus its stream."""
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def _last_line(stream: StringIO) -> dict:
    return json.loads(stream.getvalue().strip().splitlines()[-1])


def test_redacts_api_keys_and_client_addresses(log_capture):
    logger, stream = log_capture

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-secret-123",
            "client_ip": "203.0.113.7",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "sk-secret-123" not in output
    assert "203.0.113.7" not in output
    assert "visible" in output


def test_redacts_conversation_text(log_capture):
    logger, stream = log_capture

    logger.info(
        "chat_event",
        extra={
            "messages": [{"role": "user", "content": "my phone is 555-0100"}],
            "preferences": {"family": "woody"},
            "message_count": 1,
        },
    )

    line = _last_line(stream)
    assert "555-0100" not in stream.getvalue()
    assert line["messages"] == "[REDACTED]"
    assert line["preferences"] == "[REDACTED]"
    assert line["message_count"] == 1


def test_allows_rate_limit_fields(log_capture):
    logger, stream = log_capture

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "identity_hash": "abcd1234abcd1234",
            "limit": 10,
            "remaining": 0,
            "retry_after_s": 42,
        },
    )

    line = _last_line(stream)
    assert line["message"] == "rate_limit.exceeded"
    assert line["level"] == "warning"
    assert line["identity_hash"] == "abcd1234abcd1234"
    assert line["retry_after_s"] == 42
    assert "[REDACTED]" not in stream.getvalue()


def test_redacts_nested_dicts(log_capture):
    logger, stream = log_capture

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "Authorization": "Bearer secret-token",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()
    assert "secret-token" not in output
    assert "pytest" in output


def test_includes_request_id_from_context(log_capture):
    logger, stream = log_capture
    set_request_id("req-123")

    logger.info("with_request_id")

    assert _last_line(stream)["request_id"] == "req-123"


def test_includes_exception_text(log_capture):
    logger, stream = log_capture

    try:
        raise RuntimeError("sweep failed")
    except RuntimeError:
        logger.exception("rate_limit.sweep_failed")

    assert "sweep failed" in _last_line(stream)["exc_info"]


def test_redact_leaves_scalars_and_sequences_intact():
    value = {"items": [{"token": "t"}, 3], "count": 2}

    assert redact(value, frozenset({"token"})) == {"items": [{"token": "[REDACTED]"}, 3], "count": 2}
