# shiftpay/core/logging_config.py
"""
Logging setup.

Development logs colored lines to stdout. Production (PRODUCTION=true) writes
one JSON object per line to rotating files under LOG_DIR and repeats
warnings on stdout.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from shiftpay.core.config import IS_PRODUCTION

LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))

#: (file name, level, rotated copies kept)
LOG_FILES: tuple[tuple[str, int, int], ...] = (
    ("app.log", logging.INFO, 5),
    ("error.log", logging.ERROR, 10),
)
MAX_LOG_BYTES = 10_000_000

DEV_FORMAT = "%(levelname)-8s %(asctime)s [%(name)s] %(message)s"
DEV_DATE_FORMAT = "%H:%M:%S"

#: Third-party loggers that are too chatty at DEBUG.
QUIET_LOGGERS: dict[str, int] = {
    "uvicorn.access": logging.INFO,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


class JSONFormatter(logging.Formatter):
    """One JSON object per record; ``extra_fields`` are merged in at top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Colors the level name with ANSI codes."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return text
        return text.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)


def _stdout_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handlers(directory: Path) -> list[logging.Handler]:
    directory.mkdir(parents=True, exist_ok=True)
    handlers: list[logging.Handler] = []
    for name, level, backups in LOG_FILES:
        handler = logging.handlers.RotatingFileHandler(
            directory / name, maxBytes=MAX_LOG_BYTES, backupCount=backups, encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(JSONFormatter())
        handlers.append(handler)
    return handlers


def setup_logging(production: bool | None = None, log_dir: Path | None = None) -> None:
    """
    Replace the root logger's handlers.

    Args:
        production: Defaults to the PRODUCTION environment flag
        log_dir: Directory for the rotating JSON files, defaults to LOG_DIR
    """
    if production is None:
        production = IS_PRODUCTION

    if production:
        handlers = _file_handlers(log_dir or LOG_DIR)
        handlers.append(_stdout_handler(logging.WARNING, JSONFormatter()))
    else:
        handlers = [_stdout_handler(logging.DEBUG, ColoredFormatter(DEV_FORMAT, DEV_DATE_FORMAT))]

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.INFO if production else logging.DEBUG)
    for handler in handlers:
        root.addHandler(handler)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).info(
        "Logging configured", extra={"extra_fields": {"production": production}}
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
