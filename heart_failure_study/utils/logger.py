"""Logging configuration for the heart failure study."""

import logging
import sys

_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Create a configured logger instance."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(level)
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
        logger.addHandler(handler)
        # Module loggers hang off the package logger; avoid double output.
        logger.propagate = False
    return logger


def set_level(level: int) -> None:
    """Change the level of every logger created under the package."""
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("heart_failure_study") and isinstance(logger, logging.Logger):
            logger.setLevel(level)
            for handler in logger.handlers:
                handler.setLevel(level)


def add_file_handler(path: str, level: int = logging.INFO) -> logging.Handler:
    """Mirror all package loggers into a log file next to the report."""
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("heart_failure_study") and isinstance(logger, logging.Logger):
            logger.addHandler(handler)
    return handler


def remove_handler(handler: logging.Handler) -> None:
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("heart_failure_study") and isinstance(logger, logging.Logger):
            if handler in logger.handlers:
                logger.removeHandler(handler)
    handler.close()
