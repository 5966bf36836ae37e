"""
================================================================================
Boundary Tools
================================================================================

Shared infrastructure for the cross-boundary UI test framework.

Modules:
    - common: Configuration loading and logging setup
    - report_tools: Allure attachments, steps and report generation

Example:
    from boundary_tools.common import init_logger, ResolutionSettings
    from boundary_tools.report_tools import attach_resolution_outcome

    init_logger()
    settings = ResolutionSettings.from_config()

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
]
