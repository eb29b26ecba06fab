from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from backend.app.core import config
from backend.app.core.logging import JsonFormatter, configure_logging


@pytest.fixture(autouse=True)
def reset_settings_cache() -> None:
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_configure_logging_creates_handlers(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    log_file = tmp_path / "app.log"
    monkeypatch.setenv("LOG_FILE", str(log_file))
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.chdir(tmp_path)

    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    try:
        configure_logging()
        handlers = [
            handler
            for handler in root_logger.handlers
            if isinstance(handler, RotatingFileHandler)
        ]
        assert handlers
        assert Path(handlers[0].baseFilename) == log_file
        assert root_logger.level == logging.DEBUG

        handler_count = len(root_logger.handlers)
        configure_logging()
        assert len(root_logger.handlers) == handler_count
    finally:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(original_level)


def test_json_formatter_outputs_request_fields() -> None:
    formatter = JsonFormatter()
    record = logging.LogRecord(
        name="studymood.request",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg="request completed",
        args=(),
        exc_info=None,
    )
    record.request_id = "req-1"
    record.status = 201
    record.user = "ab12cd34"
    record.extra_fields = {"subject_count": 3}
    payload = json.loads(formatter.format(record))

    assert payload["message"] == "request completed"
    assert payload["request_id"] == "req-1"
    assert payload["status"] == 201
    assert payload["user"] == "ab12cd34"
    assert payload["subject_count"] == 3
    assert payload["level"] == "INFO"
    assert "path" not in payload


def test_json_formatter_includes_exception() -> None:
    formatter = JsonFormatter()
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord(
            name="test",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="failed",
            args=(),
            exc_info=sys.exc_info(),
        )
    payload = json.loads(formatter.format(record))
    assert "RuntimeError: boom" in payload["exc_info"]
