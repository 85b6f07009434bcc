"""
================================================================================
Suite Pytest Configuration
================================================================================

This module registers the markers used across the LiveShare suite and tags
tests by location (ui_testing -> ui + e2e, unit -> unit).

================================================================================
"""

import pytest

from liveshare_tools.common import get_config, get_mode


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests against the live application"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "ui: Browser (Playwright) tests"
    )
    config.addinivalue_line(
        "markers", "unit: Browser-free tests of the framework and page objects"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "auth: Tests related to authentication and sessions"
    )
    config.addinivalue_line(
        "markers", "event: Tests related to events, images and settings"
    )
    config.addinivalue_line(
        "markers", "payment: Tests related to subscriptions and checkout"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Adds the area markers by directory so ``-m ui`` / ``-m unit`` select
    whole suites.
    """
    for item in items:
        if "ui_testing" in item.nodeid:
            item.add_marker(pytest.mark.ui)
            item.add_marker(pytest.mark.e2e)

        if "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "LiveShare E2E Automation Suite",
        f"MODE: {get_mode()}  |  Base URL: {get_config('app.base_url')}",
        "=" * 60,
        "",
    ]
