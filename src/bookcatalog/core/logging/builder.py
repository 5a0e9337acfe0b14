# src/bookcatalog/core/logging/builder.py
"""
Logging builder: create and apply a dictConfig logging configuration.

 - `make_dict_config(settings)` builds a dictConfig-compatible mapping
 - `setup_logging(settings)` applies it (creating LOG_DIR when file logging is on)

Handler selection:

| LOG_TO_STDOUT | LOG_DIR set    | Active handlers                  |
| ------------- | -------------- | -------------------------------- |
| true          | doesn't matter | console + error_console          |
| false         | no             | console + error_console          |
| false         | yes            | console + file + error_file      |
"""

from __future__ import annotations

from pathlib import Path
import logging
import logging.config

from bookcatalog.config.settings import Settings
from bookcatalog.utils.logging import get_project_name

from .formatters import JsonFormatter, ColorFormatter
from .filters import OperationIdFilter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)


def _file_logging_enabled(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping for the given settings.

    Includes:
      - formatters: "standard" (coloured in text mode) and "json"
      - filters: "operation_id"
      - handlers: console plus file/error_file or error_console (see module table)
      - loggers: root, and sqlalchemy.engine kept at WARNING unless ENABLE_SQL_LOGGING
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(operation_id)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(),
        },
    }

    filters = {
        "operation_id": {"()": OperationIdFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}

    if _file_logging_enabled(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            # SQL echo may include bound parameter values
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Initialize logging from settings.

      1. Ensure LOG_DIR exists when writing files.
      2. Apply dictConfig(make_dict_config(settings)).
      3. Put an OperationIdFilter on the root logger as well, for records logged
         on the root logger itself (logger-level filters do not run on propagation).
    """
    if _file_logging_enabled(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    root = logging.getLogger()
    if not any(isinstance(f, OperationIdFilter) for f in root.filters):
        root.addFilter(OperationIdFilter())
