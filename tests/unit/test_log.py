"""Unit tests for log.py"""

import json
import logging
import sys

import pytest

from docstore.log import JsonFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger(monkeypatch):
    """Undo setup_logging's changes to the root logger after each test."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(exc_info=None):
    return logging.LogRecord("docstore.test", logging.WARNING, __file__, 1, "hello %s", ("world",), exc_info)


def _stream_handler():
    return next(h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler)


def test_json_formatter_fields():
    payload = json.loads(JsonFormatter().format(_record()))
    assert payload["message"] == "hello world"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "docstore.test"
    assert "error" not in payload


def test_json_formatter_includes_exception():
    """Exception type, message and stack are nested under "error"."""
    try:
        raise OSError("disk full")
    except OSError:
        record = _record(exc_info=sys.exc_info())
    payload = json.loads(JsonFormatter().format(record))
    assert payload["error"]["type"] == "OSError"
    assert payload["error"]["message"] == "disk full"
    assert "Traceback" in payload["error"]["stack"]


@pytest.mark.parametrize("fmt,formatter", [("json", JsonFormatter), ("plain", logging.Formatter)])
def test_setup_logging_selects_formatter(fmt, formatter):
    setup_logging("DEBUG", fmt)
    assert logging.getLogger().level == logging.DEBUG
    assert type(_stream_handler().formatter) is formatter


def test_setup_logging_env_wins(monkeypatch):
    """LOG_LEVEL in the environment overrides the configured level."""
    monkeypatch.setenv("LOG_LEVEL", "error")
    setup_logging("DEBUG")
    assert logging.getLogger().level == logging.ERROR
