# tradebook/utils/logging_config.py
"""
Root logger setup for the backtest CLI and library callers.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional

from ..models.config import LoggingConfig


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8',
        ))
    return handlers


def setup_logging(
    level: str = "INFO",
    format_str: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Replace the root logger's handlers with stdout and an optional rotating file.

    Args:
        level: Level name, case-insensitive (unknown names mean INFO)
        format_str: Log format string
        log_file: Log file path; parent directories are created

    Returns:
        The root logger
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    formatter = logging.Formatter(format_str or DEFAULT_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    for handler in _handlers(log_file):
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    return root_logger


def setup_from_config(config: LoggingConfig, verbose: bool = False) -> logging.Logger:
    """Setup logging from an AppConfig logging section; verbose forces DEBUG."""
    level = "DEBUG" if verbose else config.level
    return setup_logging(level=level, format_str=config.format, log_file=config.file)
