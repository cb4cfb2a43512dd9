"""
Pytest configuration and shared fixtures for all tests.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to sys.path so the package, config/ and scripts/ import
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def settings_file(tmp_path):
    """Write a settings JSON file and return its path."""
    def _write(content: str) -> Path:
        path = tmp_path / "settings.json"
        path.write_text(content, encoding="utf-8")
        return path
    return _write


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test (no network access)"
    )
