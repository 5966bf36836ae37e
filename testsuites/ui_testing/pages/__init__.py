"""
================================================================================
Page Objects
================================================================================

Page Object Model implementations for application pages.

Each page class encapsulates:
    - Element locators (plain and deep selectors)
    - Which resolution fallbacks the page needs
    - Page-specific actions

Author: Automation Team
License: MIT
================================================================================
"""

from .widget_page import WidgetPage

__all__ = [
    "WidgetPage",
]
