"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and tags tests by suite directory.

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

    # Suite markers
    config.addinivalue_line(
        "markers", "unit: Browser-free tests against the in-memory driver"
    )
    config.addinivalue_line(
        "markers", "ui: Tests that launch a real browser"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "shadow_dom: Tests crossing shadow root boundaries"
    )
    config.addinivalue_line(
        "markers", "frames: Tests crossing frame boundaries"
    )


def pytest_collection_modifyitems(config, items):
    """Add suite and feature markers based on where a test lives."""
    for item in items:
        path = str(item.fspath)

        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)
        elif "unit" in path:
            item.add_marker(pytest.mark.unit)

        if "shadow_dom" in path:
            item.add_marker(pytest.mark.shadow_dom)
        if "frame" in path:
            item.add_marker(pytest.mark.frames)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Cross-Boundary Element Resolution Framework",
        "=" * 60,
        "",
    ]
