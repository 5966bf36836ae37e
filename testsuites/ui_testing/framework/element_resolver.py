"""
================================================================================
Element Resolver
================================================================================

Public entry point for element lookup used by page objects and actions.

Resolution order:
    1. Already a handle          -> returned unchanged
    2. Deep selector (">>>")     -> guided shadow descent (timeout propagates)
    3. Plain query               -> returned when the node exists
    4. Shadow fallback (opt-in)  -> exhaustive search of every shadow root
    5. Frame fallback (opt-in)   -> depth-first search of nested frames
    6. Nothing matched           -> the lazy handle from step 3

Resolution is a best-effort lookup, not a validity guarantee. Callers that
interact with an unresolved handle get the driver's own "element not found"
error at that point.

The fallbacks are flags on each resolver (one per page object) and stay off
unless a page enables them.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

from loguru import logger

from .driver import BrowserDriver
from .frame_manager import FrameManager
from .selector_grammar import DeepSelector, PlainSelector, parse_selector
from .shadow_dom_resolver import ShadowDomResolver
from .timeouts import configured_timeout_ms


@dataclass
class ResolutionOutcome:
    """
    Result of a single resolution call.

    Attributes:
        handle: Resolved element handle
        frame_path: Frames entered to reach it ([] = main document / current context)
        strategy: "handle", "deep_selector", "plain", "shadow_search" or "frames"
    """
    handle: Any
    frame_path: List[int] = field(default_factory=list)
    strategy: str = "plain"

    def to_dict(self) -> dict:
        """Serializable summary (the handle itself is not serializable)."""
        return {
            "strategy": self.strategy,
            "frame_path": list(self.frame_path),
        }


class ElementResolver:
    """
    Sequences plain lookup, shadow piercing and frame traversal.

    Usage:
        >>> resolver = ElementResolver(driver, auto_resolve_frames=True)
        >>> handle = await resolver.resolve(".checkout-button")
        >>> outcome = await resolver.locate("#app >>> .widget")
        >>> outcome.strategy
        'deep_selector'
    """

    def __init__(
        self,
        driver: BrowserDriver,
        shadow_resolver: Optional[ShadowDomResolver] = None,
        frame_manager: Optional[FrameManager] = None,
        auto_resolve_shadow_dom: bool = False,
        auto_resolve_frames: bool = False,
        timeout_ms: Optional[int] = None,
    ):
        """
        Initialize the resolver.

        Args:
            driver: Driver capability
            shadow_resolver: Shadow search engine (created if omitted)
            frame_manager: Frame traversal engine (created if omitted)
            auto_resolve_shadow_dom: Enable the exhaustive shadow fallback
            auto_resolve_frames: Enable the frame fallback
            timeout_ms: Wait applied to deep selectors and both fallbacks
                (resolution.timeout_ms by default)
        """
        self.driver = driver
        self.timeout_ms = timeout_ms if timeout_ms is not None else configured_timeout_ms()
        self.shadow_resolver = shadow_resolver or ShadowDomResolver(driver, timeout_ms=self.timeout_ms)
        self.frame_manager = frame_manager or FrameManager(driver, timeout_ms=self.timeout_ms)
        self.auto_resolve_shadow_dom = auto_resolve_shadow_dom
        self.auto_resolve_frames = auto_resolve_frames

    async def resolve(self, selector_or_handle: Any, timeout_ms: Optional[int] = None) -> Any:
        """
        Resolve a selector to a handle, falling back as configured.

        Args:
            selector_or_handle: Selector text, parsed selector, or handle
            timeout_ms: Wait for this call (the resolver default if None).
                0 makes a single pass, for callers that poll themselves.

        Returns:
            The resolved handle, or the lazy (non-existent) handle from the
            plain query when every strategy misses

        Raises:
            WaitTimeoutError: For deep selectors that never resolve
        """
        if not isinstance(selector_or_handle, (str, PlainSelector, DeepSelector)):
            return selector_or_handle

        outcome, lazy_handle = await self._run_chain(
            parse_selector(selector_or_handle), self._timeout(timeout_ms)
        )
        if outcome is not None:
            return outcome.handle
        return lazy_handle

    async def locate(
        self,
        selector_or_handle: Any,
        timeout_ms: Optional[int] = None,
    ) -> Optional[ResolutionOutcome]:
        """
        Resolve and report which strategy found the element.

        Args:
            selector_or_handle: Selector text, parsed selector, or handle
            timeout_ms: Wait for this call (the resolver default if None)

        Returns:
            ResolutionOutcome, or None when every strategy misses
        """
        if not isinstance(selector_or_handle, (str, PlainSelector, DeepSelector)):
            return ResolutionOutcome(
                handle=selector_or_handle,
                frame_path=self.frame_manager.get_current_frame_path(),
                strategy="handle",
            )

        outcome, _ = await self._run_chain(
            parse_selector(selector_or_handle), self._timeout(timeout_ms)
        )
        return outcome

    def _timeout(self, timeout_ms: Optional[int]) -> int:
        return self.timeout_ms if timeout_ms is None else max(0, int(timeout_ms))

    async def _run_chain(self, selector, timeout_ms: int):
        if isinstance(selector, DeepSelector):
            logger.debug(f"Resolving deep shadow selector: {selector}")
            handle = await self.shadow_resolver.find_in_shadow_dom(selector, timeout_ms)
            return ResolutionOutcome(
                handle=handle,
                frame_path=self.frame_manager.get_current_frame_path(),
                strategy="deep_selector",
            ), handle

        css = selector.selector
        started = time.monotonic()
        handle = await self.driver.query(css)
        if await self._exists(handle):
            return ResolutionOutcome(
                handle=handle,
                frame_path=self.frame_manager.get_current_frame_path(),
                strategy="plain",
            ), handle

        if self.auto_resolve_shadow_dom:
            outcome = await self._try_shadow_fallback(css, timeout_ms)
            if outcome is not None:
                return outcome, handle

        if self.auto_resolve_frames:
            # Both fallbacks share one budget
            elapsed_ms = (time.monotonic() - started) * 1000
            remaining_ms = max(0, int(timeout_ms - elapsed_ms))
            outcome = await self._try_frame_fallback(css, remaining_ms)
            if outcome is not None:
                return outcome, handle

        logger.debug(f'Element "{css}" not resolved by any strategy; returning lazy handle')
        return None, handle

    async def _exists(self, handle: Any) -> bool:
        try:
            return await self.driver.handle_exists(handle)
        except Exception as e:
            logger.debug(f"Existence check failed: {e}")
            return False

    async def _try_shadow_fallback(self, css: str, timeout_ms: int) -> Optional[ResolutionOutcome]:
        try:
            has_shadow = await self.shadow_resolver.has_shadow_dom()
        except Exception as e:
            logger.debug(f"Shadow DOM probe failed: {e}")
            has_shadow = False
        if not has_shadow:
            return None

        logger.debug(f'Element "{css}" not in DOM - trying shadow roots')
        try:
            found = await self.shadow_resolver.deep_find_element(css, timeout_ms)
        except Exception as e:
            logger.debug(f"Deep shadow search failed: {e}")
            found = None
        if found is None:
            return None

        logger.warning(f'⚠️ Element "{css}" resolved through shadow DOM fallback')
        return ResolutionOutcome(
            handle=found,
            frame_path=self.frame_manager.get_current_frame_path(),
            strategy="shadow_search",
        )

    async def _try_frame_fallback(self, css: str, timeout_ms: int) -> Optional[ResolutionOutcome]:
        try:
            frame_count = await self.frame_manager.get_frame_count()
        except Exception as e:
            logger.debug(f"Frame count probe failed: {e}")
            frame_count = 0
        if frame_count <= 0:
            return None

        logger.debug(f'Element "{css}" not in DOM - trying {frame_count} frame(s)')
        try:
            result = await self.frame_manager.find_element_across_frames(css, timeout_ms)
        except Exception as e:
            logger.debug(f"Frame search failed: {e}")
            result = None

        if result is not None:
            logger.warning(
                f'⚠️ Element "{css}" resolved inside frame path {result.frame_path}'
            )
            return ResolutionOutcome(
                handle=result.handle,
                frame_path=list(result.frame_path),
                strategy="frames",
            )

        await self.frame_manager.switch_to_default_content()
        return None


__all__ = [
    "ElementResolver",
    "ResolutionOutcome",
]
