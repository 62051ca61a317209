"""Structured Logging — console + file sink shared by the whole process.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (method, path, error_code, count) surfaced when present
    - One record is one line; handler locks keep concurrent writes from interleaving
    - close_logging() flushes and closes every handler setup_logging() installed

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - File handler appends: restarts never truncate earlier runs
    - setup_logging called once by main() before anything else logs
"""

import logging
import json
import sys
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "method", "path", "status_code", "error_code", "count",
    "host", "port", "timeout_seconds",
)

_installed_handlers: list[logging.Handler] = []


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    return logging.Formatter("%(asctime)s %(levelname)s %(name)s — %(message)s")


def setup_logging(
    level: str = "INFO", fmt: str = "text", log_file: str | None = None,
) -> list[logging.Handler]:
    """Configure logging for the application.

    Raises OSError when log_file cannot be opened; the caller treats that as fatal.
    """
    formatter = _build_formatter(fmt)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        logging.root.addHandler(handler)
        _installed_handlers.append(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handlers


def close_logging() -> None:
    """Flush and close the sink before the process exits."""
    while _installed_handlers:
        handler = _installed_handlers.pop()
        logging.root.removeHandler(handler)
        handler.flush()
        handler.close()
