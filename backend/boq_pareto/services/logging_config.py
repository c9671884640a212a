"""
Structured logging for the BoQ Pareto service.

Every record is stamped with the current request id (set by
RequestTimingMiddleware) and carries whichever analysis fields the caller
passed via ``extra=``. JSON output is the production default; ``LOG_FORMAT=text``
gives a single-line format that appends the same fields as ``key=value``.
"""
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Fields callers attach with extra={...}
CONTEXT_FIELDS = (
    "request_id",
    "project_id",
    "operation",
    "duration_ms",
    "http_method",
    "http_path",
    "http_status",
)

NOISY_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "LiteLLM", "aiosqlite")


def _context_of(record: logging.LogRecord) -> dict:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if getattr(record, key, None) is not None}


class RequestContextFilter(logging.Filter):
    """Copies the active request id onto records that do not already carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        log_entry.update(_context_of(record))
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    def __init__(self):
        super().__init__("%(asctime)s [%(name)s] %(levelname)s: %(message)s")

    def format(self, record):
        line = super().format(record)
        context = _context_of(record)
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(level: str = "INFO", json_output: bool = True):
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else TextFormatter())
    handler.addFilter(RequestContextFilter())
    root.handlers = [handler]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
