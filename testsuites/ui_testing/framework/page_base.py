"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Provides:
    - Element resolution through shadow roots and nested frames
    - Common page interactions on resolved elements
    - Frame switching helpers
    - Screenshot and failure capture (including the active frame path)

Every interaction goes through `resolve()`, so page objects can declare
plain selectors, deep selectors ("host >>> .target") or handles
interchangeably.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

import allure
from loguru import logger
from playwright.async_api import Page

from boundary_tools.common import ResolutionSettings, ensure_directory
from boundary_tools.report_tools import attach_frame_tree, attach_json, attach_resolution_outcome

from .driver import PlaywrightDriver
from .element_resolver import ElementResolver, ResolutionOutcome
from .frame_manager import FrameManager, FrameReference
from .shadow_dom_resolver import ShadowDomResolver
from .wait_helpers import get_wait_config


# Default output directory for screenshots
SCREENSHOT_DIR = Path(__file__).parent.parent / "screenshots"


class BasePage:
    """
    Base class for all page objects.

    Fallback flags:
        Exhaustive shadow search and frame traversal are off unless the
        page opts in (constructor argument, class attribute, or the
        `resolution.auto_resolve_*` configuration keys, in that order).

    Usage:
        class CheckoutPage(BasePage):
            URL_PATH = "/checkout"
            AUTO_RESOLVE_FRAMES = True

            async def pay(self, card: str):
                await self.fill("#card-number", card)
                await self.click("checkout-app >>> #pay")
    """

    # Override in subclasses
    URL_PATH: str = "/"
    PAGE_TITLE: str = ""
    AUTO_RESOLVE_SHADOW_DOM: Optional[bool] = None
    AUTO_RESOLVE_FRAMES: Optional[bool] = None

    def __init__(
        self,
        page: Page,
        base_url: str = "",
        auto_resolve_shadow_dom: Optional[bool] = None,
        auto_resolve_frames: Optional[bool] = None,
        settings: Optional[ResolutionSettings] = None,
    ):
        """
        Initialize page object.

        Args:
            page: Playwright Page object
            base_url: Base URL for the application
            auto_resolve_shadow_dom: Enable the exhaustive shadow fallback
            auto_resolve_frames: Enable the frame fallback
            settings: Resolution settings (read from configuration if omitted)
        """
        self.page = page
        if not base_url:
            base_url = os.getenv("UI_BASE_URL", "http://localhost:3000")
        self.base_url = base_url.rstrip("/")
        self.settings = settings or ResolutionSettings.from_config()

        self.driver = PlaywrightDriver(page)
        self.shadow = ShadowDomResolver(
            self.driver,
            timeout_ms=self.settings.timeout_ms,
            poll_interval_ms=self.settings.poll_interval_ms,
        )
        self.frames = FrameManager(
            self.driver,
            max_depth=self.settings.frame_max_depth,
            timeout_ms=self.settings.timeout_ms,
            poll_interval_ms=self.settings.poll_interval_ms,
        )
        self.resolver = ElementResolver(
            self.driver,
            shadow_resolver=self.shadow,
            frame_manager=self.frames,
            auto_resolve_shadow_dom=self._first_set(
                auto_resolve_shadow_dom,
                self.AUTO_RESOLVE_SHADOW_DOM,
                self.settings.auto_resolve_shadow_dom,
            ),
            auto_resolve_frames=self._first_set(
                auto_resolve_frames,
                self.AUTO_RESOLVE_FRAMES,
                self.settings.auto_resolve_frames,
            ),
            timeout_ms=self.settings.timeout_ms,
        )

    @staticmethod
    def _first_set(*values: Optional[bool]) -> bool:
        for value in values:
            if value is not None:
                return bool(value)
        return False

    @property
    def auto_resolve_shadow_dom(self) -> bool:
        return self.resolver.auto_resolve_shadow_dom

    @auto_resolve_shadow_dom.setter
    def auto_resolve_shadow_dom(self, enabled: bool) -> None:
        self.resolver.auto_resolve_shadow_dom = enabled

    @property
    def auto_resolve_frames(self) -> bool:
        return self.resolver.auto_resolve_frames

    @auto_resolve_frames.setter
    def auto_resolve_frames(self, enabled: bool) -> None:
        self.resolver.auto_resolve_frames = enabled

    @property
    def url(self) -> str:
        """Get full page URL."""
        return f"{self.base_url}{self.URL_PATH}"

    # =========================================================================
    # Navigation
    # =========================================================================

    async def navigate(self, wait_for: str = "load") -> None:
        """
        Navigate to this page and reset the active frame to the main document.

        Args:
            wait_for: Wait condition - 'load', 'domcontentloaded', 'networkidle'
        """
        with allure.step(f"Navigate to {self.URL_PATH}"):
            await self.page.goto(self.url, wait_until=wait_for)
            await self.frames.switch_to_default_content()
            logger.debug(f"Navigated to: {self.url}")

    async def navigate_to(self, path: str, wait_for: str = "load") -> None:
        """Navigate to a specific path under base_url."""
        full_url = f"{self.base_url}{path}"
        with allure.step(f"Navigate to {path}"):
            await self.page.goto(full_url, wait_until=wait_for)
            await self.frames.switch_to_default_content()

    # =========================================================================
    # Resolution
    # =========================================================================

    async def resolve(self, selector_or_handle: Any, timeout_ms: Optional[int] = None) -> Any:
        """Resolve a selector (plain or deep) or pass a handle through."""
        return await self.resolver.resolve(selector_or_handle, timeout_ms=timeout_ms)

    async def locate(
        self,
        selector_or_handle: Any,
        timeout_ms: Optional[int] = None,
    ) -> Optional[ResolutionOutcome]:
        """Resolve and report the strategy and frame path used (attached to Allure)."""
        outcome = await self.resolver.locate(selector_or_handle, timeout_ms=timeout_ms)
        if isinstance(selector_or_handle, str):
            attach_resolution_outcome(selector_or_handle, outcome)
        return outcome

    # =========================================================================
    # Element Interactions
    # =========================================================================

    async def click(self, target: Any, **kwargs: Any) -> None:
        """
        Click an element.

        Args:
            target: Selector (plain or deep) or handle
            **kwargs: Additional Playwright click options
        """
        with allure.step(f"Click: {target}"):
            element = await self.resolve(target)
            await element.click(**kwargs)

    async def fill(self, target: Any, value: str, **kwargs: Any) -> None:
        """
        Fill an input element.

        Args:
            target: Selector (plain or deep) or handle
            value: Value to fill
            **kwargs: Additional Playwright fill options
        """
        shown = "*" * len(value) if "password" in str(target).lower() else value
        with allure.step(f"Fill {target}: {shown}"):
            element = await self.resolve(target)
            await element.fill(value, **kwargs)

    async def get_text(self, target: Any) -> str:
        """Inner text of an element."""
        element = await self.resolve(target)
        return await element.inner_text()

    async def get_attribute(self, target: Any, name: str) -> Optional[str]:
        element = await self.resolve(target)
        return await element.get_attribute(name)

    async def is_visible(self, target: Any) -> bool:
        """
        Check if an element is visible.

        Never raises: a deep selector that does not resolve counts as hidden.
        """
        try:
            element = await self.resolve(target)
        except Exception as e:
            logger.debug(f"Visibility check could not resolve {target}: {e}")
            return False
        return await self.driver.handle_is_displayed(element)

    async def select_option(
        self,
        target: Any,
        value: Optional[str] = None,
        label: Optional[str] = None,
        index: Optional[int] = None,
    ) -> None:
        """Select a dropdown option by value, visible text or index."""
        with allure.step(f"Select option in {target}"):
            element = await self.resolve(target)
            await element.select_option(value=value, label=label, index=index)

    async def wait_for_element(
        self,
        target: Any,
        state: str = "visible",
        timeout: Optional[int] = None,
    ) -> Any:
        """
        Wait until `target` resolves to an element in the given state.

        Resolution runs again on every poll, so elements that appear later
        inside a shadow root or a frame are picked up.

        Args:
            target: Selector (plain or deep) or handle
            state: 'visible' or 'attached'
            timeout: Timeout in milliseconds

        Returns:
            The resolved handle

        Raises:
            WaitTimeoutError: Element never reached the state
        """
        timeout = timeout or self.settings.timeout_ms

        async def ready() -> Optional[Any]:
            element = await self.resolve(target, timeout_ms=0)
            if state == "visible":
                ok = await self.driver.handle_is_displayed(element)
            else:
                ok = await self.driver.handle_exists(element)
            return element if ok else None

        return await self.driver.poll(
            ready,
            timeout_ms=timeout,
            message=f"Element {target} not {state} after {timeout}ms",
            description=f"{state} {target}",
            config=get_wait_config("element"),
        )

    # =========================================================================
    # Frame Helpers
    # =========================================================================

    async def switch_to_frame(self, frame_ref: FrameReference) -> None:
        """
        Switch into a frame.

        Args:
            frame_ref: Index, name/id, selector (plain or deep) or frame handle
        """
        if isinstance(frame_ref, str) and self.shadow.is_deep_selector(frame_ref):
            frame_ref = await self.resolve(frame_ref)
        await self.frames.switch_to_frame(frame_ref)

    async def switch_to_parent_frame(self) -> None:
        await self.frames.switch_to_parent_frame()

    async def switch_to_default_content(self) -> None:
        await self.frames.switch_to_default_content()

    @property
    def frame_path(self) -> List[int]:
        """Active frame path ([] = main document)."""
        return self.frames.get_current_frame_path()

    # =========================================================================
    # Screenshot and Debug Utilities
    # =========================================================================

    async def screenshot(
        self,
        name: str,
        full_page: bool = False,
        attach_to_allure: bool = True,
    ) -> Path:
        """
        Take screenshot and optionally attach to Allure.

        Args:
            name: Screenshot name (without extension)
            full_page: Capture full scrollable page
            attach_to_allure: Whether to attach to Allure report

        Returns:
            Path to saved screenshot
        """
        screenshot_dir = ensure_directory(SCREENSHOT_DIR)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = screenshot_dir / f"{name}_{timestamp}.png"

        await self.page.screenshot(path=str(filepath), full_page=full_page)

        if attach_to_allure:
            allure.attach.file(
                str(filepath),
                name=name,
                attachment_type=allure.attachment_type.PNG
            )

        logger.debug(f"Screenshot saved: {filepath}")
        return filepath

    async def capture_failure(self, test_name: str) -> None:
        """
        Capture debugging information on test failure.

        Saves:
            - Screenshot
            - Current URL and active frame path
            - Frame tree of the page
        """
        with allure.step("Capture failure details"):
            frame_path = self.frame_path
            await self.screenshot(f"failure_{test_name}", attach_to_allure=True)

            attach_json(
                {
                    "url": self.page.url,
                    "frame_path": frame_path,
                    "auto_resolve_shadow_dom": self.auto_resolve_shadow_dom,
                    "auto_resolve_frames": self.auto_resolve_frames,
                },
                name="Page State",
            )

            frames = await self.frames.get_all_frames()
            attach_frame_tree(frames)
            await self.driver.release([info.handle for info in frames])


__all__ = [
    "BasePage",
    "PageBase",
    "SCREENSHOT_DIR",
]

# Backward-compatible alias (many Page Objects prefer PageBase naming)
PageBase = BasePage
