"""
Pytest configuration for the test suite.

This file is automatically loaded by pytest and applies configuration
to all tests in the tests/ directory.
"""

import pytest

from snake_dqn.utils.logger import LogLevel, setup_logging


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture(autouse=True, scope='session')
def console_only_logging():
    """Keep test runs from writing log files into the working tree."""
    setup_logging(level=LogLevel.WARNING, file_output=False, force=True)
    yield
