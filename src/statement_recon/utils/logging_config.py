"""
Logging for the reconciliation workflow.

Everything logs under the ``statement_recon`` logger. The console shows the
configured level; the optional rotating file keeps full DEBUG detail,
including the request/response lines of the HTTP client.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

APP_LOGGER = "statement_recon"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

# Transport libraries that log every connection at INFO/DEBUG
NOISY_LOGGERS = ("httpx", "httpcore")


def _console_handler(level: int, log_format: str) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format))
    return handler


def _file_handler(log_file: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    log_format: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the application logger, replacing any earlier handlers.

    Args:
        level: Console level; the file handler always records DEBUG
        log_file: Optional rotating log file
        log_format: Console format, defaults to DEFAULT_FORMAT
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep

    Returns:
        The ``statement_recon`` logger
    """
    logger = logging.getLogger(APP_LOGGER)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []

    logger.addHandler(_console_handler(level, log_format or DEFAULT_FORMAT))
    if log_file:
        logger.addHandler(_file_handler(log_file, max_bytes, backup_count))
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(level)

    transport_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

    return logger


def level_from_name(name: str) -> int:
    """Translate a configured level name ("INFO", "debug") to a logging level."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO
