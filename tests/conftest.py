"""
Pytest configuration and fixtures for the log format parser tests
"""

import gzip
import pytest
from pathlib import Path
import tempfile
import shutil

from core.config import ConfigManager, LOG_FORMAT_ENV


COMBINED_FORMAT = '%h %l %u %t "%r" %>s %b "%{Referer}i" "%{User-Agent}i"'

COMBINED_LINES = """127.0.0.1 - - [08/Aug/2024:09:00:00 +0000] "GET /api/test HTTP/1.1" 200 1234 "-" "Mozilla/5.0"
127.0.0.2 - frank [08/Aug/2024:09:00:01 +0000] "POST /api/users/123 HTTP/1.1" 404 - "http://example.com/" "curl/8.0"
this is not an access log line
127.0.0.3 - - [08/Aug/2024:09:00:02 +0000] "GET /api/products?page=2 HTTP/1.1" 500 890 "-" "Mozilla/5.0"
"""


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Reset the ConfigManager singleton and format env var around each test"""
    monkeypatch.delenv(LOG_FORMAT_ENV, raising=False)
    ConfigManager().clear_cache()
    yield
    ConfigManager().clear_cache()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def sample_apache_log(temp_dir):
    """Create a sample combined format log with one unparsable line"""
    log_file = temp_dir / "access.log"
    log_file.write_text(COMBINED_LINES, encoding='utf-8')
    return log_file


@pytest.fixture
def sample_gzip_log(temp_dir):
    """Same content as sample_apache_log, gzip compressed"""
    log_file = temp_dir / "access.log.gz"
    with gzip.open(log_file, 'wt', encoding='utf-8') as f:
        f.write(COMBINED_LINES)
    return log_file


@pytest.fixture
def sample_config(temp_dir):
    """Create a config.yaml selecting the combined preset"""
    config_file = temp_dir / "config.yaml"
    config_file.write_text(
        "logformat:\n"
        "  preset: combined\n"
        "multiprocessing:\n"
        "  enabled: false\n"
        "  chunk_size: 500\n",
        encoding='utf-8'
    )
    return config_file
