"""
================================================================================
E2E Suites Pytest Configuration
================================================================================

Registers the markers used across the suites and tags tests by directory.

================================================================================
"""

import pytest


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

    # Test type markers
    config.addinivalue_line(
        "markers", "unit: Fast tests against in-memory page doubles"
    )
    config.addinivalue_line(
        "markers", "ui: Tests driving a real browser"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end interaction scenarios"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "retry: Retry engine behaviour"
    )
    config.addinivalue_line(
        "markers", "logging: Diagnostic logging and report export"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-tag tests by the directory they live in."""
    for item in items:
        path = str(item.path)
        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Resilient Element Interaction Suites",
        "=" * 60,
        "",
    ]
