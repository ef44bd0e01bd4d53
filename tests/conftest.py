"""Pytest configuration and fixtures for Status Slayer tests."""

import sys
from pathlib import Path

import pytest

# Add project root to Python path BEFORE test collection
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def pytest_configure(config):
    """Configure pytest before test collection."""
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding sample configuration files."""
    return FIXTURES_DIR


@pytest.fixture
def write_config(tmp_path):
    """Write TOML text to a temporary config.toml and return its path."""
    def _write(text: str) -> Path:
        path = tmp_path / "config.toml"
        path.write_text(text)
        return path
    return _write


@pytest.fixture
def two_sections():
    """Two periodic sections, as in the example configuration."""
    from stslayer.config import Section
    return [
        Section(name="A", command="uname -r"),
        Section(name="B", command='date "+%Y-%m-%d %H:%M:%S"'),
    ]
