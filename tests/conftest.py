"""Common pytest configuration."""

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: fast tests without external tools")
    config.addinivalue_line(
        "markers", "integration: tests that exercise real files or processes"
    )
