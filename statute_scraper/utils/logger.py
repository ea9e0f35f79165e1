"""Utility logging setup."""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

PACKAGE_LOGGER = "statute_scraper"


def get_logger(name: str, log_file: Optional[str] = None) -> logging.Logger:
    """
    Get configured logger instance.

    Args:
        name: Logger name (usually __name__)
        log_file: Optional log file path

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    # Package loggers stay NOTSET so setup_logging's level applies to all of them
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        if package_logger.level == logging.NOTSET:
            package_logger.setLevel(logging.INFO)
    else:
        logger.setLevel(logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        logger.addHandler(_file_handler(log_file))

    return logger


def _file_handler(log_file: str, max_size_mb: int = 10, backup_count: int = 5) -> RotatingFileHandler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return file_handler


def setup_logging(config) -> logging.Logger:
    """
    Apply level and file settings from config to the package logger.

    Module loggers created with get_logger keep their own console handler
    but inherit their level from the package logger. The package logger
    only adds the rotating file so every module's records end up in one
    place.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    level = getattr(logging, str(config.log_level).upper(), logging.INFO)
    logger.setLevel(level)

    if config.log_file and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        logger.addHandler(_file_handler(
            config.log_file,
            max_size_mb=config.log_max_size_mb,
            backup_count=config.log_backup_count,
        ))

    return logger
