"""
Logging Module for Meridian

This module configures the root logger with a console handler and a rotating
file handler. Modules log through logging.getLogger(__name__).
"""

import os
import sys
import logging
import threading
from logging.handlers import RotatingFileHandler
from typing import Optional

from meridian.core.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 10

_lock = threading.Lock()
_configured = False


def setup_logging(config: Settings, log_to_file: bool = True, force: bool = False) -> logging.Logger:
    """
    Configure the root logger once per process.

    Args:
        config: Settings providing log_level and log_file
        log_to_file: Whether to add the rotating file handler
        force: Replace handlers even if logging is already configured

    Returns:
        The root logger
    """
    global _configured

    root_logger = logging.getLogger()
    with _lock:
        if _configured and not force:
            return root_logger

        level = getattr(logging, str(config.log_level).upper(), logging.INFO)
        root_logger.setLevel(level)

        # Remove existing handlers
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if log_to_file:
            file_handler = _file_handler(config.log_file)
            if file_handler is not None:
                file_handler.setFormatter(formatter)
                root_logger.addHandler(file_handler)

        _configured = True

    return root_logger


def _file_handler(log_file: str) -> Optional[RotatingFileHandler]:
    log_dir = os.path.dirname(log_file)
    try:
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        return RotatingFileHandler(log_file, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT)
    except OSError as e:
        logging.getLogger(__name__).warning(f"File logging disabled, cannot open {log_file}: {e}")
        return None
