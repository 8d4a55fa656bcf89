"""
Logging configuration for the incident reporting dashboard.

Console output always; a rotating log file outside testing mode.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from config import AppConfig

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'


def setup_logging(config: AppConfig, debug: bool = False) -> logging.Logger:
    """
    Configure the root logger from the application configuration.

    Args:
        config: Application configuration
        debug: Skip the log file, as in Flask debug mode

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    root.setLevel(level)

    # Avoid duplicate handlers when called more than once
    for handler in list(root.handlers):
        if getattr(handler, '_urgences_handler', False):
            root.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console_handler._urgences_handler = True
    root.addHandler(console_handler)

    # File handler for production (if not in debug mode)
    if not debug and not config.testing:
        log_dir = os.path.dirname(config.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.log_file,
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler._urgences_handler = True
        root.addHandler(file_handler)

    return root
