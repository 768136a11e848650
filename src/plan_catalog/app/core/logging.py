from __future__ import annotations

import json
import logging
import os
from logging.config import dictConfig
from traceback import format_exception

from .env import is_prod

# Record attributes copied into the JSON payload when a caller passes them via ``extra=``.
_CONTEXT_FIELDS = ("request_id", "plan_id", "admin")


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter for prod logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, object] = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "pid": record.process,
            "message": record.getMessage(),
        }

        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        http_ctx = {
            k: v for k, v in {
                "method": getattr(record, "http_method", None),
                "path": getattr(record, "path", None),
                "status": getattr(record, "status_code", None),
                "client_ip": getattr(record, "client_ip", None),
            }.items() if v is not None
        }
        if http_ctx:
            payload["http"] = http_ctx

        if record.exc_info:
            exc_type = record.exc_info[0].__name__ if record.exc_info[0] else None
            exc_message = str(record.exc_info[1]) if record.exc_info[1] else None
            stack = "".join(format_exception(*record.exc_info))

            err_obj: dict[str, object] = {}
            if exc_type:
                err_obj["type"] = exc_type
            if exc_message:
                err_obj["message"] = exc_message

            # Truncate very long stacks to keep lines readable in hosted logs.
            max_stack = int(os.getenv("LOG_STACK_LIMIT", "4000"))
            err_obj["stack"] = stack[:max_stack] + ("...(truncated)" if len(stack) > max_stack else "")

            payload["error"] = err_obj

        return json.dumps(payload, ensure_ascii=False, default=str)


def _read_level() -> str:
    explicit = os.getenv("LOG_LEVEL")
    if explicit:
        return explicit.upper()
    return "INFO" if is_prod() else "DEBUG"


def _read_format() -> str:
    fmt = os.getenv("LOG_FORMAT")
    if fmt:
        return fmt.lower()
    return "json" if is_prod() else "plain"


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    level = (level or _read_level()).upper()
    fmt = (fmt or _read_format()).lower()

    formatter_name = "json" if fmt == "json" else "plain"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,  # keep uvicorn & friends
            "formatters": {
                "plain": {
                    "format": "%(asctime)s %(levelname)-5s [pid:%(process)d] %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                },
                "json": {
                    "()": JsonFormatter,
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                },
            },
            "handlers": {
                "stream": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": formatter_name,
                }
            },
            "root": {
                "level": level,
                "handlers": ["stream"],
            },
            # uvicorn loggers bubble up to the root handler; pymongo stays quiet unless asked.
            "loggers": {
                "uvicorn": {"level": "INFO", "handlers": [], "propagate": True},
                "uvicorn.error": {"level": "INFO", "handlers": [], "propagate": True},
                "uvicorn.access": {"level": "INFO", "handlers": [], "propagate": True},
                "pymongo": {"level": "WARNING", "handlers": [], "propagate": True},
            },
        }
    )
