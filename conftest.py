"""
Repository-level pytest configuration.

Keeps configuration lookups isolated between tests: the ConfigLoader
singleton is reset before and after every test.
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from driver_wrapper.config_loader import ConfigLoader


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(autouse=True)
def _reset_config() -> Generator[None, None, None]:
    """Drop the cached configuration around each test."""
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()
