"""Logging setup: plain text for terminals, JSON lines for collectors"""

import json
import logging
import os
from logging.config import dictConfig
from traceback import format_exception


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "pid": record.process,
            "message": record.getMessage(),
        }
        if record.exc_info:
            exc_type, exc, tb = record.exc_info
            stack = "".join(format_exception(exc_type, exc, tb))
            max_stack = int(os.getenv("LOG_STACK_LIMIT", "4000"))
            payload["error"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc) if exc else None,
                "stack": stack[:max_stack] + ("...(truncated)" if len(stack) > max_stack else ""),
            }
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "plain") -> None:
    """Configure the root logger. LOG_LEVEL / LOG_FORMAT env vars win over the arguments."""
    level = os.getenv("LOG_LEVEL", level).upper()
    fmt = os.getenv("LOG_FORMAT", fmt).lower()
    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
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
                "formatter": "json" if fmt == "json" else "plain",
            },
        },
        "root": {"level": level, "handlers": ["stream"]},
    })
