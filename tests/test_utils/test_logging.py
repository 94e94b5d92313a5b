"""Tests for logging setup and formatters."""

import json
import logging
import sys

import pytest

from beatsense.utils.logging import (
    ColoredFormatter,
    JSONFormatter,
    create_logger_with_context,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def _record(msg="Analysis complete", level=logging.INFO, **extra):
    record = logging.LogRecord("engine", level, __file__, 10, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """One JSON object per record."""

    def test_core_fields(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "engine"
        assert data["message"] == "Analysis complete"
        assert data["thread"] == "MainThread"
        assert "timestamp" in data
        assert "extra" not in data

    def test_extra_fields_collected(self):
        data = json.loads(JSONFormatter().format(_record(analyzer="bpm", elapsed=0.25)))

        assert data["extra"] == {"analyzer": "bpm", "elapsed": 0.25}

    def test_exception_included(self):
        try:
            raise ValueError("bad frame")
        except ValueError:
            record = logging.LogRecord(
                "engine", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad frame" in data["exception"]


class TestColoredFormatter:
    """Level colouring."""

    def test_colours_level_and_restores_record(self):
        formatter = ColoredFormatter("%(levelname)s %(message)s")
        record = _record(level=logging.WARNING)

        output = formatter.format(record)

        assert "\033[33mWARNING\033[0m" in output
        assert record.levelname == "WARNING"


class TestSetupLogging:
    """Root logger configuration."""

    def test_file_handler_writes_json(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "beatsense.log"

        setup_logging(level="DEBUG", log_format="text", log_file=str(log_file),
                      console_enabled=False)
        logging.getLogger("loader").info("Loaded a.wav", extra={"file": "a.wav"})
        for handler in restore_root_logger.handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        data = json.loads(line)
        assert data["message"] == "Loaded a.wav"
        assert data["extra"] == {"file": "a.wav"}

    def test_level_applied(self, restore_root_logger):
        setup_logging(level="warning", console_enabled=False)

        assert restore_root_logger.level == logging.WARNING
        assert restore_root_logger.handlers == []

    def test_decoder_loggers_quietened(self, restore_root_logger):
        setup_logging(level="DEBUG", console_enabled=False)

        assert logging.getLogger("numba").level == logging.WARNING

    def test_console_uses_stderr(self, restore_root_logger):
        setup_logging(level="INFO", log_format="text")

        (handler,) = restore_root_logger.handlers
        assert handler.stream is sys.stderr


def test_logger_with_context(caplog):
    logger = create_logger_with_context("batch_processor", {"file": "a.wav"})

    with caplog.at_level(logging.INFO, logger="batch_processor"):
        logger.info("Analysis started", extra={"attempt": 1})

    record = caplog.records[-1]
    assert record.file == "a.wav"
    assert record.attempt == 1
