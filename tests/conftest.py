"""Test configuration and shared fixtures.

Pattern: Pytest fixtures, conftest.py
"""

import pytest

from pplx_export.citations.registry import CitationRegistry
from pplx_export.config.preferences import ExportPreferences
from pplx_export.core.config import Settings
from pplx_export.rendering.lookup import SourceLookupTable


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with zero delays and short loops."""
    return Settings(
        environment="test",
        log_level="DEBUG",
        scroll_delay_ms=0,
        settle_delay_ms=0,
        click_delay_ms=0,
        capture_timeout_ms=500,
        capture_poll_ms=100,
        focus_timeout_ms=300,
        focus_poll_ms=100,
        max_scroll_steps=40,
        stable_bottom_steps=2,
        expander_limit=6,
        clipboard_retries=3,
        focus_retry_budget=2,
    )


@pytest.fixture
def test_preferences() -> ExportPreferences:
    """Create preferences without frontmatter for compact assertions."""
    return ExportPreferences(include_frontmatter=False)


# ============================================================================
# Citation Fixtures
# ============================================================================

@pytest.fixture
def registry() -> CitationRegistry:
    """Create an empty citation registry."""
    return CitationRegistry()


@pytest.fixture
def lookup() -> SourceLookupTable:
    """Create an empty aggregate-marker lookup table."""
    return SourceLookupTable()
