"""Pytest configuration for ReconForge."""
import os

import pytest

from reconforge.base.config import set_config


def pytest_configure():
    # Never try to sudo from the test suite.
    os.environ.setdefault("RECONFORGE_NMAP_SUDO", "false")
    os.environ.setdefault("RECONFORGE_LOG_LEVEL", "DEBUG")


@pytest.fixture(autouse=True)
def _fresh_config():
    """Every test builds its configuration from its own environment."""
    set_config(None)
    yield
    set_config(None)
