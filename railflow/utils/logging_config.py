"""Logging setup shared by the library and the CLI"""

import logging
import sys
from pathlib import Path
from typing import Optional


ROOT_LOGGER_NAME = 'railflow'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return level


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_to_console: bool = True
) -> logging.Logger:
    """
    Configure the package logger

    Console output goes to stderr so command output on stdout stays clean.
    The file handler, when given, records everything down to DEBUG.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_file: Optional log file; parent directories are created
        log_to_console: Attach a stderr handler

    Returns:
        The 'railflow' logger
    """
    level = _level(log_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = []
    if log_to_console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setLevel(level)
        handlers.append(stream)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        # File captures DEBUG regardless of the console level
        logger.setLevel(logging.DEBUG)
        file_handler = logging.FileHandler(path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Logger under the 'railflow' hierarchy (module loggers pass __name__)"""
    return logging.getLogger(name)
