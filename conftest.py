"""
Pytest configuration and fixtures for web crawler tests.
"""

import logging
import os
from pathlib import Path

import pytest
from hypothesis import settings, Verbosity

from webcrawler.utils.clock import FakeClock

# Configure Hypothesis for faster test runs
settings.register_profile("fast", max_examples=20, deadline=None, verbosity=Verbosity.quiet)
settings.register_profile("thorough", max_examples=200, deadline=None, verbosity=Verbosity.normal)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "fast"))


@pytest.fixture
def fake_clock():
    """Manually advanced clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def html_dir(tmp_path):
    """Directory for file:// test pages."""
    pages = tmp_path / "pages"
    pages.mkdir()
    return pages


@pytest.fixture
def write_page(html_dir):
    """Write an HTML page under html_dir and return its file:// URL."""
    def _write(name: str, body: str) -> str:
        path = html_dir / name
        path.write_text(f"<html><body>{body}</body></html>", encoding="utf-8")
        return Path(path).resolve().as_uri()
    return _write


def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line("markers", "property: property-based test")
    config.addinivalue_line("markers", "unit: unit test")

    # Configure logging for tests
    logging.getLogger("webcrawler").setLevel(logging.WARNING)
    logging.getLogger("hypothesis").setLevel(logging.WARNING)


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers."""
    for item in items:
        # Mark property-based tests
        if "properties" in item.fspath.basename or "property" in item.name.lower():
            item.add_marker(pytest.mark.property)
        else:
            item.add_marker(pytest.mark.unit)
