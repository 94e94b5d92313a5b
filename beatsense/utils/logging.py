"""
Logging setup for BeatSense.

JSON lines for log files and shippers, coloured text for terminals. Analyzers
run on pool threads, so both formats carry the thread name.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}

# Decoder dependencies that flood DEBUG output (numba JIT traces in particular).
NOISY_LOGGERS = ("numba", "audioread")

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)-12s | %(name)s | %(message)s"
TEXT_DATEFMT = "%H:%M:%S"

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;31m",
}
RESET = "\033[0m"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fields passed through ``extra=`` (file, analyzer, elapsed) are collected
    under the ``extra`` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS
        }
        if extra:
            log_obj["extra"] = extra

        return json.dumps(log_obj, default=str)


class ColoredFormatter(logging.Formatter):
    """Text formatter that colours the level name."""

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        record.levelname = f"{LEVEL_COLORS.get(original, '')}{original}{RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers see the same record
            record.levelname = original


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,
    backup_count: int = 5,
    console_enabled: bool = True,
    colored: bool = True,
) -> None:
    """
    Configure the root logger for the CLI.

    Console output goes to stderr so reports printed on stdout stay clean.

    Args:
        level: Log level name, case-insensitive
        log_format: Console format, "json" or "text"
        log_file: Optional rotating log file (always JSON)
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
        console_enabled: Whether to log to stderr at all
        colored: Colour the level name in text output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = []

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if console_enabled:
        if log_format == "json":
            formatter: logging.Formatter = JSONFormatter()
        elif colored and sys.stderr.isatty():
            formatter = ColoredFormatter(TEXT_FORMAT, TEXT_DATEFMT)
        else:
            formatter = logging.Formatter(TEXT_FORMAT, TEXT_DATEFMT)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Logger for a pipeline component ("engine", "loader", "analyzer.bpm")."""
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """Merges a fixed context (e.g. the file being analyzed) into every record."""

    def process(
        self, msg: str, kwargs: Dict[str, Any]
    ) -> tuple[str, Dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def create_logger_with_context(
    name: str, context: Dict[str, Any]
) -> LoggerAdapter:
    """
    Create a logger with persistent context.

    Example:
        logger = create_logger_with_context("batch_processor", {"file": "a.wav"})
        logger.info("Analysis started")
    """
    return LoggerAdapter(get_logger(name), context)
