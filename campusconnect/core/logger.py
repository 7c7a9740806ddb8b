"""Logging setup for CampusConnect.

Modules log through ``logging.getLogger(__name__)``; the application calls
:func:`setup_logger` once for the ``campusconnect`` package logger so every
child logger shares its handlers. Timestamps are ISO 8601.
"""

import logging
import logging.handlers
import os
from typing import List, Optional

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
ISO_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _build_handlers(
    name: str,
    log_dir: str,
    file_logging: bool,
    console_logging: bool,
    max_bytes: int,
    backup_count: int,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                os.path.join(log_dir, f"{name}.log"),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )

    if console_logging:
        handlers.append(logging.StreamHandler())

    return handlers


def setup_logger(
    name: str,
    log_dir: str = "./logs",
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    file_logging: bool = True,
    console_logging: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure a named logger with rotating file and console output.

    Calling it again for the same name only updates the level.

    Args:
        name: Logger name, normally the top-level package
        log_dir: Directory for ``<name>.log``
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive)
        log_format: Record format, defaults to ``DEFAULT_FORMAT``
        date_format: Timestamp format, defaults to ISO 8601
        file_logging: Write to a rotating file in ``log_dir``
        console_logging: Write to stderr
        max_bytes: File size that triggers rotation
        backup_count: Rotated files to keep

    Returns:
        The configured logger

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    level_name = level.upper()
    if level_name not in LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LEVELS)}")

    logger = logging.getLogger(name)
    logger.setLevel(level_name)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(log_format or DEFAULT_FORMAT, datefmt=date_format or ISO_DATE_FORMAT)
    for handler in _build_handlers(name, log_dir, file_logging, console_logging, max_bytes, backup_count):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
