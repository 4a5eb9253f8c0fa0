"""
Logging configuration for the access log format parser

Provides centralized logging setup with both console and file handlers.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime


# Default log format
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'

# Environment variable overriding the default level
LOG_LEVEL_ENV = 'LOG_LEVEL'

# Log levels mapping
LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

# Global logger registry
_loggers = {}

# Handler installed by enable_file_logging, shared by all registered loggers
_file_handler: Optional[logging.FileHandler] = None


def _default_level() -> str:
    return os.environ.get(LOG_LEVEL_ENV, 'INFO')


def _default_log_file() -> Path:
    log_dir = Path('logs')
    log_dir.mkdir(exist_ok=True)
    timestamp = datetime.now().strftime('%Y%m%d')
    return log_dir / f"logformat_parser_{timestamp}.log"


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: Optional[str] = None,
    console_output: bool = True,
    file_output: bool = False,
    detailed: bool = False
) -> logging.Logger:
    """
    Setup a logger with console and/or file handlers.

    Args:
        name: Logger name (usually __name__)
        log_file: Log file path (if None, uses logs/logformat_parser_<date>.log)
        level: Log level name; defaults to $LOG_LEVEL or INFO
        console_output: Enable console output
        file_output: Enable file output
        detailed: Use detailed format with filename and line number

    Returns:
        Configured logger instance
    """
    if name in _loggers:
        return _loggers[name]

    log_level = LOG_LEVELS.get((level or _default_level()).upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    formatter = logging.Formatter(DETAILED_FORMAT if detailed else DEFAULT_FORMAT)

    if console_output:
        # stdout is reserved for parsed records
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if file_output:
        file_handler = logging.FileHandler(log_file or _default_log_file(), encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)  # Always log DEBUG to file
        file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
        logger.addHandler(file_handler)

    if _file_handler is not None:
        logger.addHandler(_file_handler)

    logger.propagate = False

    _loggers[name] = logger

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger with default settings.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name in _loggers:
        return _loggers[name]

    return setup_logger(name)


def set_log_level(level: str):
    """
    Set log level for all registered loggers.

    Args:
        level: Log level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
    """
    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)
    for logger in _loggers.values():
        logger.setLevel(log_level)
        for handler in logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(log_level)


def enable_file_logging(log_file: Optional[str] = None):
    """
    Enable file logging for all registered loggers.

    Args:
        log_file: Log file path
    """
    global _file_handler

    disable_file_logging()

    _file_handler = logging.FileHandler(log_file or _default_log_file(), encoding='utf-8')
    _file_handler.setLevel(logging.DEBUG)
    _file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))

    for logger in _loggers.values():
        logger.addHandler(_file_handler)


def disable_file_logging():
    """Remove the handler installed by enable_file_logging from all registered loggers."""
    global _file_handler

    if _file_handler is None:
        return

    for logger in _loggers.values():
        logger.removeHandler(_file_handler)
    _file_handler.close()
    _file_handler = None


# Setup default package logger
_root_logger = setup_logger('logformat_parser')
