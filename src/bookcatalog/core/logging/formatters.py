# src/bookcatalog/core/logging/formatters.py

"""
Custom logging formatters.

  - JsonFormatter: structured JSON lines for log collectors. Carries the
    observability fields (service, env, version, operation_id) and every
    `extra` attribute passed at the call site.

  - ColorFormatter: compact ANSI-coloured lines for a developer terminal.

The builder (dictConfig) picks one per handler based on LOG_FORMAT.

Repositories log event names plus structured `extra` (model, isbn, author
count, duration). Values are passed through as given, so call sites must not
put anything sensitive in `extra`.
"""

import json
import logging
from typing import Any
from logging import LogRecord
from bookcatalog.utils.logging import get_project_version

PROJECT_VERSION = get_project_version()

# Attributes every LogRecord has; anything else on the record came in through `extra`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Construction:
      - env: environment name ("development", "production", ...)
      - service: logical service name written on every line
      - datefmt: optional date format passed to logging.Formatter.formatTime

    The formatter never raises: extras that json cannot encode are replaced by
    their str() and `json.dumps(default=str)` is the final safety net.
    """

    def __init__(self, *, env: str | None = None, service: str = "bookcatalog", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "operation_id": getattr(record, "operation_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_record or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_record[key] = value
            except (TypeError, ValueError):
                log_record[key] = str(value)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    Development-friendly coloured formatter.

    Only the level name is coloured; the rest of the line follows `fmt`.
    Appends the traceback when exc_info is set (logging.Formatter does that).
    """

    COLOR_CODES = {
        "DEBUG": "\033[36m",       # cyan
        "INFO": "\033[32m",        # green
        "WARNING": "\033[33m",     # yellow
        "ERROR": "\033[31m",       # red
        "CRITICAL": "\033[1;41m",  # bold on red background
    }
    RESET = "\033[0m"

    def format(self, record: LogRecord) -> str:
        if not hasattr(record, "operation_id"):
            record.operation_id = "-"

        original_levelname = record.levelname
        color = self.COLOR_CODES.get(original_levelname)
        if color:
            record.levelname = f"{color}{original_levelname:<8}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # handlers share the record; leave it as we found it
            record.levelname = original_levelname
