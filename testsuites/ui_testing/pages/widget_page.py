"""
================================================================================
Widget Dashboard Page Object (Async / Playwright)
================================================================================

Dashboard made of web components (open shadow roots) with an embedded
feedback form served in an iframe.

Locator conventions:
  - Deep selectors ("host >>> inner") for elements whose host is known
  - Plain selectors for elements found through the opt-in fallbacks

================================================================================
"""

from __future__ import annotations

from typing import Optional

import allure
from loguru import logger

from testsuites.ui_testing.framework.element_actions import ElementActions
from testsuites.ui_testing.framework.page_base import PageBase


class WidgetPage(PageBase):
    """Widget dashboard page object (async)."""

    URL_PATH = "/widgets"
    PAGE_TITLE = "Widgets"

    # The feedback form lives in an iframe and the status badge sits in a
    # shadow root, so both fallbacks are enabled for this page.
    AUTO_RESOLVE_SHADOW_DOM = True
    AUTO_RESOLVE_FRAMES = True

    # Deep selectors
    SETTINGS_BUTTON = "widget-panel >>> settings-menu >>> button.open"
    TITLE_INPUT = "widget-panel >>> input.title"
    SAVE_BUTTON = "widget-panel >>> button.save"

    # Plain selectors resolved by fallback
    STATUS_BADGE = ".status-badge"
    FEEDBACK_INPUT = "#feedback"
    FEEDBACK_SUBMIT = "#send-feedback"
    FEEDBACK_RESULT = "#feedback-result"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.actions = ElementActions(self.resolver, default_timeout=self.settings.timeout_ms)

    async def open_settings(self) -> None:
        with allure.step("Open widget settings"):
            await self.actions.safe_click(self.SETTINGS_BUTTON)

    async def rename_widget(self, title: str) -> None:
        """Fill the title field inside the panel and save."""
        with allure.step(f"Rename widget to '{title}'"):
            await self.actions.safe_fill(self.TITLE_INPUT, title)
            await self.actions.safe_click(self.SAVE_BUTTON)
        logger.info(f"✅ Widget renamed to: {title}")

    async def status(self) -> str:
        """Text of the status badge rendered inside the status widget."""
        return (await self.actions.safe_get_text(self.STATUS_BADGE)).strip()

    async def wait_for_status(self, expected: str, timeout: Optional[int] = None) -> None:
        await self.actions.wait_for_text_to_be(self.STATUS_BADGE, expected, timeout=timeout)

    async def send_feedback(self, message: str) -> str:
        """
        Submit the embedded feedback form and return its confirmation text.

        The form is located through the frame fallback. The driver stays in
        the form's frame while it is used and returns to the main document
        afterwards.
        """
        try:
            with allure.step("Send feedback"):
                await self.actions.safe_fill(self.FEEDBACK_INPUT, message)
                await self.actions.safe_click(self.FEEDBACK_SUBMIT)
                await self.actions.wait_for_text_contains(self.FEEDBACK_RESULT, "Thanks")
            return (await self.actions.safe_get_text(self.FEEDBACK_RESULT)).strip()
        finally:
            await self.switch_to_default_content()


__all__ = ["WidgetPage"]
