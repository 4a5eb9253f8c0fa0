"""
Core module for the access log format parser

This module provides common utilities and infrastructure:
- Custom exceptions
- Configuration management
- Logging setup
- Multiprocessing settings
"""

from .exceptions import (
    LogFormatParserError,
    FileNotFoundError,
    CorruptLogFileError,
    InvalidFormatError,
    UnparsableLineError,
    ConfigurationError
)
from .config import ConfigManager
from .logging_config import setup_logger, get_logger
from .utils import MultiprocessingConfig

__all__ = [
    'LogFormatParserError',
    'FileNotFoundError',
    'CorruptLogFileError',
    'InvalidFormatError',
    'UnparsableLineError',
    'ConfigurationError',
    'ConfigManager',
    'setup_logger',
    'get_logger',
    'MultiprocessingConfig',
]
