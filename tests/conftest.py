"""Root conftest.py for the Relay test suite.

This file contains project-wide fixtures and pytest configuration.
"""

from collections.abc import Generator

import pytest

from src.core.config import get_settings
from src.core.context import RequestContext


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    """Give every test a fresh settings instance."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    """Keep correlation IDs from leaking between tests."""
    RequestContext.clear()
    yield
    RequestContext.clear()
