import logging
import logging.config
import os
import sys
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILENAME = "finance-assistant.log"

# Third-party loggers sent through our handlers instead of their own
ROUTED_LOGGERS = {
    "uvicorn": "INFO",
    "uvicorn.error": "INFO",
    "uvicorn.access": "INFO",
    "httpx": "WARNING",
}


class ColourizedFormatter(logging.Formatter):
    """Colours the level name when writing to a terminal."""

    LEVEL_COLOURS = {
        logging.DEBUG: "\x1b[90m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31;1m",
    }
    RESET = "\x1b[0m"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, colour: bool | None = None) -> None:
        super().__init__(fmt, datefmt)
        self.colour = sys.stdout.isatty() if colour is None else colour

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelno)
        if not self.colour or colour is None:
            return super().format(record)

        levelname = record.levelname
        record.levelname = f"{colour}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # The record is shared with the file handler
            record.levelname = levelname


def _build_handlers(log_dir: str | None) -> dict[str, dict[str, Any]]:
    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "coloured",
        },
    }
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": os.path.join(log_dir, LOG_FILENAME),
            "formatter": "plain",
            "encoding": "utf-8",
        }
    return handlers


def get_logging_config() -> dict[str, Any]:
    handlers = _build_handlers(os.getenv("LOG_DIR"))
    names = list(handlers)

    loggers: dict[str, dict[str, Any]] = {
        "": {"handlers": names, "level": os.getenv("LOG_LEVEL", "INFO").upper()},
    }
    for name, level in ROUTED_LOGGERS.items():
        loggers[name] = {"handlers": names, "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "coloured": {"()": ColourizedFormatter, "fmt": LOG_FORMAT},
            "plain": {"format": LOG_FORMAT},
        },
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging() -> None:
    logging.config.dictConfig(get_logging_config())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
