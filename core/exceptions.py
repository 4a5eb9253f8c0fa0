"""
Custom exceptions for the access log format parser

This module defines all custom exceptions used throughout the application.
"""


class LogFormatParserError(Exception):
    """Base exception for all log format parser errors"""
    pass


class FileNotFoundError(LogFormatParserError):
    """Raised when an input file is not found"""

    def __init__(self, file_path: str, message: str = None):
        self.file_path = file_path
        if message is None:
            message = f"File not found: {file_path}"
        super().__init__(message)


class CorruptLogFileError(LogFormatParserError):
    """Raised when a compressed log file cannot be decompressed"""

    def __init__(self, file_path: str, message: str = None):
        self.file_path = file_path
        if message is None:
            message = f"Corrupt log file: {file_path}"
        super().__init__(message)


class InvalidFormatError(LogFormatParserError):
    """Raised when a LogFormat string contains an unknown or malformed directive"""

    def __init__(self, message: str, format_text: str = None):
        self.format_text = format_text
        super().__init__(message)


class UnparsableLineError(LogFormatParserError):
    """Raised when a log line does not match the compiled format"""

    def __init__(self, line: str, line_number: int = None):
        self.line = line
        self.line_number = line_number
        message = f"Cannot parse log line: {line}"
        if line_number:
            message = f"Line {line_number}: {message}"
        super().__init__(message)


class ConfigurationError(LogFormatParserError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_file: str = None):
        self.config_file = config_file
        if config_file:
            message = f"Configuration error in {config_file}: {message}"
        super().__init__(message)
