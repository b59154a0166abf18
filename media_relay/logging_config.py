"""Utility to configure logging for the media relay.

This centralises logging configuration so all modules share the same
settings and makes it easy to switch between plain-text and JSON logs
that are simple to parse by log aggregation systems.

Environment variables supported
--------------------------------
LOG_FORMAT: "json" (default) or "plain"
LOG_LEVEL:  Python logging level name (default: INFO)
LOG_FILE:   Path to write logs to a rotating file (default: ./media_relay.log).
            Set to empty string to disable file logging.
"""

import logging
import os
import pathlib
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Optional

from pythonjsonlogger import jsonlogger

# Per-request context so concurrent polls on different jobs stay apart
_context_task_handle: ContextVar[Optional[str]] = ContextVar("task_handle", default=None)
_context_provider: ContextVar[Optional[str]] = ContextVar("provider", default=None)


class TaskContextFilter(logging.Filter):
    """Stamp every record with the current task handle and provider."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.task_handle = _context_task_handle.get()
        record.provider = _context_provider.get()
        return True


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure root logger for the media relay.

    This should be called once as early as possible in the main entry
    point before any other modules configure logging.
    """
    log_level_str = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, log_level_str, logging.INFO)

    log_format = os.getenv("LOG_FORMAT", "json").lower()

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(_build_formatter(log_format))
    handlers.append(stream_handler)

    log_file = os.getenv("LOG_FILE", "./media_relay.log")
    if log_file:  # Empty string disables file logging
        log_path = pathlib.Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(_build_formatter(log_format))
        handlers.append(file_handler)

    context_filter = TaskContextFilter()
    for handler in handlers:
        handler.addFilter(context_filter)

    # Apply configuration atomically via basicConfig (only takes effect once)
    logging.basicConfig(level=level, handlers=handlers, force=True)

    _configure_third_party_loggers()


def _configure_third_party_loggers():
    """Configure third-party library loggers to reduce noise."""

    # Outbound request lines would otherwise dominate the log
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.getLogger("supabase").setLevel(logging.WARNING)
    logging.getLogger("gotrue").setLevel(logging.WARNING)
    logging.getLogger("postgrest").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Context helpers
# ---------------------------------------------------------------------------

def set_current_task(task_handle: Optional[str], provider: Optional[str] = None):
    """Set current task handle (and provider) for log context."""
    _context_task_handle.set(task_handle)
    _context_provider.set(provider)


def get_current_task() -> Optional[str]:
    return _context_task_handle.get()


def _build_formatter(log_format: str) -> logging.Formatter:
    """Return a suitable Formatter instance for *log_format*."""

    if log_format == "json":
        return jsonlogger.JsonFormatter("%(asctime)s %(name)s %(levelname)s %(task_handle)s %(provider)s %(message)s")

    return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
