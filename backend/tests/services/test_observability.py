"""Tests for the JSON log formatter and logging setup.

Tests cover:
    - Known assistant context fields surfaced, unknown extras dropped
    - Timestamp taken from the record, service name always present
    - Non-ASCII (French) messages kept readable
    - setup_logging replaces its own handler instead of stacking them
"""

import json
import logging
from datetime import datetime, timezone

import pytest

from app.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord(
        "app.api.routes.agent_chat", logging.INFO, __file__, 1,
        "Assistant chat finished", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_known_extra_fields_surfaced():
    line = json.loads(JSONFormatter().format(_record(
        conversation_id="session-1", input_tokens=120, cache_read_input_tokens=80,
        path="/api/agent/chat", unrelated="hidden",
    )))
    assert line["message"] == "Assistant chat finished"
    assert line["level"] == "INFO"
    assert line["service"] == "okeyo-api"
    assert line["conversation_id"] == "session-1"
    assert line["input_tokens"] == 120
    assert line["cache_read_input_tokens"] == 80
    assert line["path"] == "/api/agent/chat"
    assert "unrelated" not in line


def test_timestamp_is_record_creation_time():
    record = _record()
    record.created = datetime(2026, 5, 1, 9, 30, tzinfo=timezone.utc).timestamp()
    line = json.loads(JSONFormatter().format(record))
    assert line["timestamp"] == "2026-05-01T09:30:00+00:00"


def test_non_ascii_kept_readable():
    record = _record()
    record.msg = "Réservation créée"
    assert "Réservation créée" in JSONFormatter().format(record)


@pytest.fixture
def _root_logger():
    handlers = list(logging.root.handlers)
    level = logging.root.level
    yield
    logging.root.handlers[:] = handlers
    logging.root.setLevel(level)


def test_setup_logging_replaces_its_handler(_root_logger):
    first = setup_logging("debug", "json")
    second = setup_logging("warning", "text")

    assert first not in logging.root.handlers
    assert second in logging.root.handlers
    assert not isinstance(second.formatter, JSONFormatter)
    assert logging.root.level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING
