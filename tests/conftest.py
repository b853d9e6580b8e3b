"""
================================================================================
Pytest Configuration
================================================================================

Markers and shared fixtures for the driver_wrapper test suite.

================================================================================
"""

from typing import Generator, List

import pytest
from loguru import logger

from driver_wrapper.session import DriverWrapper
from driver_wrapper.wait_helpers import WaitConfig
from tests.fakes import FakePage, build_document


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for release"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "unit: Tests that run without a browser"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-add 'unit' marker to tests in the unit directory."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def page() -> FakePage:
    """Fake Playwright page over the sample document."""
    return FakePage(build_document())


@pytest.fixture
def wrapper(page: FakePage) -> DriverWrapper:
    """DriverWrapper with a fast polling interval."""
    return DriverWrapper(
        page,
        base_url="http://example.com/app/",
        wait_config=WaitConfig(poll_interval=0.01),
    )


@pytest.fixture
def log_messages() -> Generator[List[str], None, None]:
    """Collect loguru messages of level WARNING and above."""
    messages: List[str] = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    yield messages
    logger.remove(handler_id)
