import logging
from logging.config import dictConfig
from typing import Literal

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]
LogFormat = Literal["text", "json"]

JSON_FORMATTER_CLASS = "pythonjsonlogger.json.JsonFormatter"


def configure_logging(level: LogLevel = "INFO", log_format: LogFormat = "text") -> None:
    """Route all app and uvicorn logs through one console handler.

    ``log_format="json"`` emits one JSON object per line for log shippers. Every
    record carries ``request_id`` so lines from one request can be grouped.
    """
    formatters = {
        "default": {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
        },
        "json": {
            "()": JSON_FORMATTER_CLASS,
            "fmt": "%(asctime)s %(levelname)s %(name)s %(request_id)s %(message)s",
        },
    }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "request_id": {"()": "backend.core.request_context.RequestIdLogFilter"},
            },
            "formatters": formatters,
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if log_format == "json" else "default",
                    "filters": ["request_id"],
                }
            },
            "root": {"handlers": ["console"], "level": str(level).upper()},
        }
    )

    # uvicorn propagates to the root handler instead of printing twice
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
