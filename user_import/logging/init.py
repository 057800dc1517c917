from __future__ import annotations

import logging
import sys

"""Logging initialization with labeled prefixes.

Every line is ``LABEL message`` with LABEL one of INFO|WARN|ERROR|SUMMARY
(DEBUG in --debug mode). Standard logging only; the structured per-row error
log lives in ``user_import.logging.error_log``.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "user_import"

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25


class LabeledFormatter(logging.Formatter):
    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


def _package_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h.formatter, LabeledFormatter)]


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure the package logger (idempotent).

    Child loggers created with ``logging.getLogger(__name__)`` inside the
    package propagate to this logger, so they share the labeled stdout handler.
    The labeled handler itself marks the logger as configured.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if _package_handlers(logger):
        return logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger.setLevel(level)

    # Clear any existing handlers to avoid duplication
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate output
    logger.propagate = False
    return logger


def get_logger() -> logging.Logger:
    return setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the labeled handler so the next setup binds to the current stdout."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in _package_handlers(logger):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
