"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management for UI automation.

Features:
    - Single browser instance per manager
    - Context isolation for test independence
    - Default element and navigation timeouts applied to every context
    - Settings read from the `browser` configuration section

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)

from boundary_tools.common import ConfigLoader

from .timeouts import Timeouts, configured_timeout_ms


SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


class BrowserManager:
    """
    Manages browser instances and contexts for UI testing.

    Usage:
        async with BrowserManager() as manager:
            page = await manager.new_page()
            await page.set_content("<iframe srcdoc='<p id=x>hi</p>'></iframe>")

        # Settings from config/config.yaml (browser.headless, browser.type)
        async with BrowserManager.from_config() as manager:
            page = await manager.new_page()
    """

    # Default browser launch options. Site isolation is disabled so
    # cross-origin frames stay reachable from the page's frame tree.
    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "headless": True,
        "args": [
            "--ignore-certificate-errors",
            "--disable-features=IsolateOrigins,site-per-process",
        ],
    }

    # Default context options
    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1280, "height": 800},
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        headless: bool = True,
        browser_type: str = "chromium",
        element_timeout_ms: Optional[int] = None,
        navigation_timeout_ms: Optional[int] = None,
    ):
        """
        Initialize browser manager.

        Args:
            headless: Run browser in headless mode
            browser_type: Browser to use - 'chromium', 'firefox', 'webkit'
            element_timeout_ms: Default Playwright action timeout
            navigation_timeout_ms: Default Playwright navigation timeout
        """
        if browser_type not in SUPPORTED_BROWSERS:
            raise ValueError(
                f"Unsupported browser '{browser_type}'. "
                f"Expected one of: {', '.join(SUPPORTED_BROWSERS)}"
            )

        self.headless = headless
        self.browser_type = browser_type
        self.element_timeout_ms = element_timeout_ms or configured_timeout_ms()
        self.navigation_timeout_ms = navigation_timeout_ms or Timeouts.PAGE_LOAD

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "BrowserManager":
        """Build a manager from the `browser` configuration section."""
        config = config or ConfigLoader()
        return cls(
            headless=bool(config.get("browser.headless", True)),
            browser_type=str(config.get("browser.type", "chromium")),
            element_timeout_ms=int(config.get("resolution.timeout_ms", Timeouts.ELEMENT_WAIT)),
            navigation_timeout_ms=int(config.get("browser.navigation_timeout_ms", Timeouts.PAGE_LOAD)),
        )

    async def __aenter__(self) -> "BrowserManager":
        """Async context manager entry - start browser."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - close browser."""
        await self.close()

    async def start(self) -> None:
        """Start Playwright and launch browser."""
        self._playwright = await async_playwright().start()

        browser_launcher = getattr(self._playwright, self.browser_type)
        launch_options = {
            **self.DEFAULT_LAUNCH_OPTIONS,
            "headless": self.headless,
        }

        try:
            self._browser = await browser_launcher.launch(**launch_options)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise

        logger.debug(
            f"Browser started: {self.browser_type} "
            f"(headless={self.headless})"
        )

    async def close(self) -> None:
        """Close all contexts and browser."""
        for context in self._contexts:
            try:
                await context.close()
            except Exception as e:
                logger.debug(f"Context already closed: {e}")
        self._contexts.clear()

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.debug("Browser closed")

    async def new_context(
        self,
        **options: Any,
    ) -> BrowserContext:
        """
        Create new browser context.

        Each context is isolated - separate cookies, localStorage, etc.

        Args:
            **options: Additional context options

        Returns:
            New BrowserContext with default timeouts applied
        """
        if not self._browser:
            raise RuntimeError("Browser not started. Call start() first.")

        context_options = {**self.DEFAULT_CONTEXT_OPTIONS, **options}
        context = await self._browser.new_context(**context_options)
        context.set_default_timeout(self.element_timeout_ms)
        context.set_default_navigation_timeout(self.navigation_timeout_ms)
        self._contexts.append(context)

        return context

    async def new_page(
        self,
        context: Optional[BrowserContext] = None,
        **context_options: Any,
    ) -> Page:
        """
        Create new page in new or existing context.

        Args:
            context: Existing context to use (creates new if None)
            **context_options: Options for new context

        Returns:
            New Page
        """
        if context is None:
            context = await self.new_context(**context_options)

        return await context.new_page()

    @property
    def browser(self) -> Optional[Browser]:
        """Get browser instance."""
        return self._browser


__all__ = [
    "BrowserManager",
    "SUPPORTED_BROWSERS",
]
