"""Process-wide logging for the JSON feeder, tagged with request ids."""

import logging
import sys
from contextvars import ContextVar

from app.config import get_settings

# Set by the HTTP middleware for the duration of one request
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

LOG_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(request_id)s | "
    "%(name)s:%(funcName)s:%(lineno)d | %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Client libraries that log every HTTP or Redis round trip at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "redis", "uvicorn.access")


class RequestIdFilter(logging.Filter):
    """Stamp each record with the current request id, or N/A outside requests."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "N/A"
        return True


class ColoredFormatter(logging.Formatter):
    """Paints the level name when stdout is a terminal."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        plain = record.levelname
        color = self.LEVEL_COLORS.get(plain)
        if color is None:
            return super().format(record)

        record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # The record is shared with any other handler
            record.levelname = plain


def setup_logging() -> None:
    """Route all logs to stdout at the configured ``LOG_LEVEL``.

    Replaces any handlers already on the root logger, so calling it again
    after ``reload_settings()`` applies a new level.
    """
    level = get_settings().log_level

    formatter_class = ColoredFormatter if sys.stdout.isatty() else logging.Formatter
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter_class(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging to stdout at level {level}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def clear_request_id() -> None:
    request_id_var.set(None)
