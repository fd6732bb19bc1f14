"""Structured JSON audit logging for the gatekeeper.

Logs go to stdout as JSON lines, with optional file output via the
AUDIT_LOG_FILE env var. While a gated request is being handled, every
entry carries its request id, method, path and rate limit identity, so
CORS rejections, 429s and downstream link activity for one caller can be
correlated without repeating those fields at each call site.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from gatekeeper.config.settings import get_settings

LOGGER_NAME = "gatekeeper.audit"


@dataclass
class GateContext:
    request_id: str = ""
    method: str = ""
    path: str = ""
    client_key: str = ""


# Request-scoped context for correlating log entries
gate_context_var: ContextVar[GateContext] = ContextVar("gate_context", default=GateContext())


def bind_gate_context(method: str, path: str, client_key: str = "") -> GateContext:
    """Start a fresh context for a gated request and return it."""
    context = GateContext(
        request_id=generate_request_id(),
        method=method,
        path=path,
        client_key=client_key,
    )
    gate_context_var.set(context)
    return context


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Empty context fields are left out; the request id is always present.
    """

    def format(self, record: logging.LogRecord) -> str:
        context = gate_context_var.get()
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": context.request_id,
        }
        log_entry.update(
            (key, value) for key, value in asdict(context).items()
            if value and key != "request_id"
        )
        # Explicit audit fields win over context defaults
        if hasattr(record, "audit_data"):
            log_entry.update(record.audit_data)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging() -> None:
    """Configure the audit logger with JSON output."""
    settings = get_settings()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter = JSONFormatter()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    if settings.audit_log_file:
        file_handler = logging.FileHandler(settings.audit_log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:12]


class RequestTimer:
    """Measures time spent in the downstream route handler."""

    def __init__(self):
        self.start_time: float = 0
        self.elapsed_ms: float = 0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed_ms = round((time.perf_counter() - self.start_time) * 1000, 2)
