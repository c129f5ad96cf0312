"""
Logging setup for ThinkHub.

Every record emitted while a request is being served is stamped with the
request id and the caller's user id by ``RequestContextFilter``, so service
log lines (task moves, reorders, failed activity writes) can be joined with
the request log written by the timing middleware.

- Development / testing: one-line colored output with a ``[req user]`` tag
- Production: one JSON object per line
- LOG_LEVEL env variable overrides the level
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_app_context

# Attributes copied into JSON output when present on the record.
CONTEXT_FIELDS = ("request_id", "user_id")
DOMAIN_FIELDS = ("project_id", "milestone_id", "task_id", "action_type")
REQUEST_FIELDS = ("method", "path", "status", "duration_ms", "remote_addr")

_QUIET_LOGGERS = ("werkzeug", "sqlalchemy.engine", "alembic")


class RequestContextFilter(logging.Filter):
    """Attach ``request_id`` / ``user_id`` from ``flask.g`` to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_app_context():
            if getattr(record, "request_id", None) is None:
                record.request_id = g.get("request_id")
            if getattr(record, "user_id", None) is None:
                record.user_id = g.get("current_user_id")
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS + DOMAIN_FIELDS + REQUEST_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def _context_tag(self, record) -> str:
        parts = [
            str(v) for v in (getattr(record, "request_id", None), getattr(record, "user_id", None))
            if v
        ]
        return f" [{' '.join(parts)}]" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:<8}"
        if self.color:
            level = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"
        duration = getattr(record, "duration_ms", None)
        timing = f" ({duration:.0f}ms)" if duration is not None else ""
        line = f"{ts} {level} {record.name}{self._context_tag(record)}: {record.getMessage()}{timing}"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install a single stderr handler on the root logger.

    JSON in production, readable otherwise. Colors are dropped when stderr
    is not a terminal.
    """
    testing = app.config.get("TESTING", False)
    production = not app.config.get("DEBUG", False) and not testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if production else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(RequestContextFilter())
    if production:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ReadableFormatter(color=sys.stderr.isatty()))

    root = logging.getLogger()
    # create_app runs once per test session and again in some tests
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "json" if production else "readable")
