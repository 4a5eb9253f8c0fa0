"""
Tests for core.exceptions module
"""

import pytest
from core.exceptions import (
    LogFormatParserError,
    FileNotFoundError,
    InvalidFormatError,
    UnparsableLineError,
    ConfigurationError,
    CorruptLogFileError,
)


def test_base_exception():
    """Test LogFormatParserError base exception"""
    with pytest.raises(LogFormatParserError):
        raise LogFormatParserError("Test error")


def test_file_not_found_error():
    error = FileNotFoundError("/path/to/file.log")
    assert error.file_path == "/path/to/file.log"
    assert "file.log" in str(error)


def test_file_not_found_error_custom_message():
    error = FileNotFoundError("/path/to/file.log", "Custom message")
    assert error.file_path == "/path/to/file.log"
    assert "Custom message" in str(error)


def test_corrupt_log_file_error():
    """Test CorruptLogFileError"""
    error = CorruptLogFileError("/path/to/access.log.gz")
    assert "/path/to/access.log.gz" in str(error)
    assert error.file_path == "/path/to/access.log.gz"


def test_invalid_format_error():
    error = InvalidFormatError("Unknown format string: %Z", format_text="%Z")
    assert error.format_text == "%Z"
    assert "Unknown format string" in str(error)


def test_unparsable_line_error():
    error = UnparsableLineError("junk line")
    assert error.line == "junk line"
    assert error.line_number is None
    assert str(error) == "Cannot parse log line: junk line"


def test_unparsable_line_error_with_line_number():
    error = UnparsableLineError("junk line", line_number=42)
    assert error.line_number == 42
    assert "Line 42" in str(error)


def test_configuration_error():
    error = ConfigurationError("Missing key", config_file="config.yaml")
    assert error.config_file == "config.yaml"
    assert "config.yaml" in str(error)
    assert "Missing key" in str(error)


def test_exception_hierarchy():
    """Test exception hierarchy"""
    assert issubclass(FileNotFoundError, LogFormatParserError)
    assert issubclass(InvalidFormatError, LogFormatParserError)
    assert issubclass(UnparsableLineError, LogFormatParserError)
    assert issubclass(ConfigurationError, LogFormatParserError)
    assert issubclass(CorruptLogFileError, LogFormatParserError)
