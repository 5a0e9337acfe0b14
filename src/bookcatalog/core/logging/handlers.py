# src/bookcatalog/core/logging/handlers.py
"""
Handler factories for logging.dictConfig.

Each function returns a handler configuration dict (not a handler instance);
`builder.make_dict_config` decides which of them are wired in. Keeping them as
pure functions makes them trivial to assert on in tests.

The "formatter" and "filters" names must exist in the builder's
`formatters` / `filters` sections.
"""

from pathlib import Path

from bookcatalog.config.settings import Settings


def _formatter_name(settings: Settings) -> str:
    return "json" if settings.LOG_FORMAT == "json" else "standard"


def get_console_handler(settings: Settings) -> dict:
    """
    Stream handler for every record at or above LOG_LEVEL.

    StreamHandler writes to stderr by default; containers that collect stdout
    can add `"stream": "ext://sys.stdout"`.
    """
    return {
        "class": "logging.StreamHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filters": ["operation_id"],
    }


def get_file_handler(settings: Settings) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filename": str(Path(settings.LOG_DIR) / "app.log"),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": ["operation_id"],
    }


# Error-only rotating file; failed units of work and rollback failures end up here.
def get_error_file_handler(settings: Settings) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",
        "level": "ERROR",
        "filename": str(Path(settings.LOG_DIR) / "errors.log"),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": ["operation_id"],
    }


def get_error_console_handler(settings: Settings) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": "json",
        "level": "ERROR",
        "filters": ["operation_id"],
    }
