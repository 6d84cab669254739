"""Root-level pytest fixtures for all tests.

Provides:
- Marker registration
- Isolation of the process-wide filter settings cache and environment
"""

from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent


# ============================================================================
# Pytest Markers
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests that execute compiled SQL against an embedded database",
    )


# ============================================================================
# Settings Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def _isolated_filter_settings(monkeypatch, tmp_path):
    """Run every test with default settings.

    Clears DBVIEW_FILTERS_* variables, runs from an empty directory so no
    dbview-filters.yaml is picked up, and resets the settings cache before
    and after the test.
    """
    import os

    from src.filters.filter_config import ENV_PREFIX, get_filter_settings

    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    get_filter_settings.cache_clear()
    yield
    get_filter_settings.cache_clear()
