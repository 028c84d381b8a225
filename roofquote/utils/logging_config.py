"""
RoofQuote logging setup.

Console lines go to stderr so CLI output on stdout stays clean; an optional
JSON-lines file receives everything at DEBUG. Workflow context (address,
place ID, camera heading, error type) is passed with ``extra=`` or bound once
through ``get_logger(name, **context)`` and is appended to every line.

Usage:
    from roofquote.utils.logging_config import get_logger, setup_logging

    setup_logging("DEBUG", log_to_file=True)
    logger = get_logger(__name__, address="123 Test St")
    logger.info("Capturing", extra={"heading": 60})
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, MutableMapping, Optional, Tuple, Union

DEFAULT_LOG_LEVEL = os.environ.get("ROOFQUOTE_LOG_LEVEL", "INFO").upper()
LOG_DIR = Path(os.environ.get("ROOFQUOTE_LOG_DIR", "logs"))

CONTEXT_KEYS = ("address", "place_id", "heading", "error_type")

# HTTP stacks log every request at DEBUG
QUIET_LOGGERS = ("urllib3", "requests", "httpx", "httpcore", "PIL", "asyncio")


def _context(record: logging.LogRecord) -> dict:
    return {key: getattr(record, key) for key in CONTEXT_KEYS if hasattr(record, key)}


class RoofQuoteFormatter(logging.Formatter):
    """Console formatter; colours the level name when the stream is a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, stream=None):
        stream = stream if stream is not None else sys.stderr
        self.use_colors = use_colors and hasattr(stream, "isatty") and stream.isatty()
        super().__init__(fmt="%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S")

    def formatMessage(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors:
            record.levelname = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"
        try:
            line = super().formatMessage(record)
        finally:
            record.levelname = level

        context = _context(record)
        if context:
            line += " (" + " ".join(f"{k}={v}" for k, v in context.items()) + ")"
        return line


class FileFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """Binds workflow context to a logger; per-call ``extra`` wins on clashes."""

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> Tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_to_file: bool = False,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the root logger. Safe to call again; handlers are replaced.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_to_file: Also write JSON lines to a file
        log_file: File path (default: $ROOFQUOTE_LOG_DIR/roofquote_YYYYMMDD.log)
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.DEBUG if log_to_file else numeric_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(RoofQuoteFormatter(stream=sys.stderr))
    root.addHandler(console)

    if log_to_file:
        if log_file is None:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            path = LOG_DIR / f"roofquote_{datetime.now():%Y%m%d}.log"
        else:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(FileFormatter())
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root


def get_logger(name: str, **context: Any) -> Union[logging.Logger, ContextAdapter]:
    """Module logger, optionally with bound context (see CONTEXT_KEYS)."""
    logger = logging.getLogger(name)
    if context:
        return ContextAdapter(logger, context)
    return logger
