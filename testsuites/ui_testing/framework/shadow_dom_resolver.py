"""
================================================================================
Shadow DOM Resolver
================================================================================

Locates elements behind open shadow roots so tests never pierce them by hand.

Two search modes, each executed as ONE in-page script per attempt (all
recursion happens inside the page, not across driver round-trips):

    1. Guided descent   - "host-a >>> host-b >>> .target"
       Each segment except the last must match a host with an open shadow
       root; the last segment is queried inside the innermost root.
    2. Exhaustive search - ".target"
       Depth-first search of the active document and every shadow root
       below it. First match in document order wins.

Both try once synchronously and then poll until the timeout.

Usage:
    >>> resolver = ShadowDomResolver(driver)
    >>> button = await resolver.find_in_shadow_dom("my-app >>> .save")
    >>> maybe = await resolver.deep_find_element(".save")

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, List, Optional, Union

from loguru import logger

from .driver import BrowserDriver
from .selector_grammar import (
    DeepSelector,
    PlainSelector,
    is_deep_selector,
    parse_selector,
)
from .timeouts import configured_timeout_ms
from .wait_helpers import WaitTimeoutError, get_wait_config


# =============================================================================
# In-page Scripts
# =============================================================================

GUIDED_DESCENT_JS = """
(segs) => {
    let context = document;
    for (let i = 0; i < segs.length; i++) {
        const el = context.querySelector(segs[i]);
        if (!el) return null;
        if (i === segs.length - 1) return el;
        if (!el.shadowRoot) return null;
        context = el.shadowRoot;
    }
    return null;
}
"""

GUIDED_DESCENT_ALL_JS = """
(segs) => {
    let context = document;
    for (let i = 0; i < segs.length - 1; i++) {
        const host = context.querySelector(segs[i]);
        if (!host || !host.shadowRoot) return [];
        context = host.shadowRoot;
    }
    return Array.from(context.querySelectorAll(segs[segs.length - 1]));
}
"""

DEEP_SEARCH_JS = """
(sel) => {
    const search = (root) => {
        const el = root.querySelector(sel);
        if (el) return el;
        for (const node of root.querySelectorAll('*')) {
            if (node.shadowRoot) {
                const found = search(node.shadowRoot);
                if (found) return found;
            }
        }
        return null;
    };
    return search(document);
}
"""

DEEP_SEARCH_ALL_JS = """
(sel) => {
    const results = [];
    const collect = (root) => {
        for (const el of root.querySelectorAll(sel)) results.push(el);
        for (const node of root.querySelectorAll('*')) {
            if (node.shadowRoot) collect(node.shadowRoot);
        }
    };
    collect(document);
    return results;
}
"""

HAS_SHADOW_DOM_JS = """
() => {
    for (const node of document.querySelectorAll('*')) {
        if (node.shadowRoot) return true;
    }
    return false;
}
"""

COUNT_SHADOW_ROOTS_JS = """
() => {
    let count = 0;
    const walk = (root) => {
        for (const node of root.querySelectorAll('*')) {
            if (node.shadowRoot) {
                count++;
                walk(node.shadowRoot);
            }
        }
    };
    walk(document);
    return count;
}
"""


class ShadowDomResolver:
    """
    Shadow-piercing element search over a `BrowserDriver`.

    Searches run against whatever context is active on the driver (the main
    document or the frame the frame manager switched into).

    Failure semantics:
        - find_in_shadow_dom raises WaitTimeoutError naming the segment path
        - deep_find_element returns None (absence is not exceptional here)
    """

    def __init__(
        self,
        driver: BrowserDriver,
        timeout_ms: Optional[int] = None,
        poll_interval_ms: Optional[int] = None,
    ):
        """
        Initialize the resolver.

        Args:
            driver: Driver capability used for script evaluation
            timeout_ms: Default wait for both search modes
            poll_interval_ms: Interval between attempts
        """
        self.driver = driver
        self.timeout_ms = timeout_ms if timeout_ms is not None else configured_timeout_ms()
        self.wait_config = get_wait_config("shadow_dom")
        self.poll_interval_ms = (
            poll_interval_ms if poll_interval_ms is not None else self.wait_config.interval_ms
        )

    @staticmethod
    def is_deep_selector(selector: Any) -> bool:
        """True if the selector uses the `>>>` shadow-piercing delimiter."""
        return isinstance(selector, DeepSelector) or is_deep_selector(selector)

    # =========================================================================
    # Guided Descent
    # =========================================================================

    async def find_in_shadow_dom(
        self,
        selector: Union[str, DeepSelector],
        timeout_ms: Optional[int] = None,
    ) -> Any:
        """
        Resolve a deep selector of the form "host-a >>> host-b >>> .target".

        Args:
            selector: Deep selector text or parsed DeepSelector
            timeout_ms: Max wait time in milliseconds

        Returns:
            Handle to the target element

        Raises:
            WaitTimeoutError: When any segment fails to resolve in time
        """
        segments = self._segments(selector)
        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        logger.debug(
            f"Deep shadow selector parsed into {len(segments)} segment(s): {segments}"
        )

        element = await self.driver.evaluate_element(GUIDED_DESCENT_JS, segments)
        if element is not None:
            return element

        path = " >>> ".join(segments)
        message = f"Shadow element not found after {timeout_ms}ms: {path}"
        if timeout_ms <= 0:
            raise WaitTimeoutError(message, timeout_ms=timeout_ms, attempts=1)

        return await self.driver.poll(
            lambda: self.driver.evaluate_element(GUIDED_DESCENT_JS, segments),
            timeout_ms=timeout_ms,
            interval_ms=self.poll_interval_ms,
            message=message,
            description=f"shadow path {path}",
            config=self.wait_config,
        )

    async def find_all_in_shadow_dom(self, selector: Union[str, DeepSelector]) -> List[Any]:
        """
        Find every element matching the last segment of a deep selector.

        Earlier segments must each resolve to a single shadow host; a
        missing host yields an empty list. No polling.
        """
        segments = self._segments(selector)
        return await self.driver.evaluate_elements(GUIDED_DESCENT_ALL_JS, segments) or []

    # =========================================================================
    # Exhaustive Search
    # =========================================================================

    async def deep_find_element(
        self,
        css_selector: str,
        timeout_ms: Optional[int] = None,
    ) -> Optional[Any]:
        """
        Depth-first search of every shadow root for `css_selector`.

        Use when the test does not know which host, if any, encapsulates
        the target.

        Args:
            css_selector: Plain selector (no `>>>`)
            timeout_ms: Max wait time in milliseconds

        Returns:
            First match in document order, or None after the timeout
        """
        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        logger.debug(f"Deep searching ALL shadow roots for: {css_selector}")

        found = await self.driver.evaluate_element(DEEP_SEARCH_JS, css_selector)
        if found is not None or timeout_ms <= 0:
            return found

        try:
            return await self.driver.poll(
                lambda: self.driver.evaluate_element(DEEP_SEARCH_JS, css_selector),
                timeout_ms=timeout_ms,
                interval_ms=self.poll_interval_ms,
                message=(
                    f'Element "{css_selector}" not found in any shadow root '
                    f"after {timeout_ms}ms"
                ),
                description=f"deep shadow search {css_selector}",
                config=self.wait_config,
            )
        except WaitTimeoutError as e:
            logger.warning(f"Deep shadow search failed: {e}")
            return None

    async def deep_find_all_elements(self, css_selector: str) -> List[Any]:
        """Every match of `css_selector` across the document and all shadow roots."""
        return await self.driver.evaluate_elements(DEEP_SEARCH_ALL_JS, css_selector) or []

    # =========================================================================
    # Probes
    # =========================================================================

    async def has_shadow_dom(self) -> bool:
        """True if the active document has at least one open shadow root."""
        return bool(await self.driver.evaluate(HAS_SHADOW_DOM_JS))

    async def count_shadow_roots(self) -> int:
        """Number of open shadow roots in the active document, at any depth."""
        return int(await self.driver.evaluate(COUNT_SHADOW_ROOTS_JS) or 0)

    @staticmethod
    def _segments(selector: Union[str, DeepSelector, PlainSelector]) -> List[str]:
        parsed = parse_selector(selector)
        if isinstance(parsed, DeepSelector):
            return list(parsed.segments)
        return [parsed.selector]


__all__ = [
    "ShadowDomResolver",
    "GUIDED_DESCENT_JS",
    "GUIDED_DESCENT_ALL_JS",
    "DEEP_SEARCH_JS",
    "DEEP_SEARCH_ALL_JS",
    "HAS_SHADOW_DOM_JS",
    "COUNT_SHADOW_ROOTS_JS",
]
