"""Structured Logging — one JSON line per record for the Okeyo API container logs.

Invariants:
    - Every line carries timestamp (record creation time, UTC), level, logger,
      service and message
    - Assistant context passed through `extra=` is surfaced when present:
      conversation, agent config version, tool, step, attempt, error code,
      request path and token usage (including prompt-cache counters)
    - Unknown extras are dropped so request bodies never reach the logs
    - setup_logging is idempotent: a second call replaces the handler

Design Decisions:
    - stdlib logging + a small JSONFormatter, no logging dependency
    - httpx and sqlalchemy.engine capped at WARNING: Brevo/Anthropic request
      lines and SQL echo drown the assistant trail otherwise
"""

import logging
import json
from datetime import datetime, timezone

SERVICE_NAME = "okeyo-api"

CONTEXT_FIELDS = (
    "conversation_id", "config_version_id", "tool_name", "step", "attempt",
    "error_code", "path",
    "input_tokens", "output_tokens",
    "cache_read_input_tokens", "cache_creation_input_tokens",
)

_NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")

_handler: logging.Handler | None = None


class JSONFormatter(logging.Formatter):
    """Render a record and its assistant context as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the root handler: JSON in deployments, plain text locally."""
    global _handler
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    if _handler is not None:
        logging.root.removeHandler(_handler)
    logging.root.addHandler(handler)
    _handler = handler
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
