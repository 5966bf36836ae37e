"""
================================================================================
Browser Driver Capability
================================================================================

The resolution engine never talks to Playwright directly. It consumes the
narrow capability defined by `BrowserDriver`:

    - evaluate / evaluate_element / evaluate_elements: run a script in the
      active context (one round-trip per call)
    - query / query_all: locate nodes in the active context
    - handle_exists / handle_is_displayed: probe a handle
    - frame_elements / count_frames: enumerate the active context's frames
    - switch_to_frame / switch_to_parent_frame: change the active browsing
      context
    - release: dispose element handles the caller owns
    - poll: timeout-driven retry used by every engine wait

`PlaywrightDriver` implements the capability on top of a Playwright `Page`.
Playwright addresses frames as objects instead of switching a session,
so the adapter keeps the "active frame" itself and exposes WebDriver-style
switching to the engine.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Union

from loguru import logger
from playwright.async_api import ElementHandle, Frame, Locator, Page
from playwright.async_api import Error as PlaywrightError

from .wait_helpers import WaitConfig, poll_until


# Elements that host a nested browsing context
FRAME_SELECTOR = "iframe, frame"

FrameRef = Union[int, ElementHandle, None]


class FrameSwitchError(Exception):
    """Raised when the driver cannot enter a frame (detached, no content)."""
    pass


class FrameIndexError(FrameSwitchError):
    """Raised when a frame index is outside the active context's frames."""
    pass


class BrowserDriver(ABC):
    """
    Driver capability consumed by the resolution engine.

    Every method is a coroutine: the engine issues one awaited call at a
    time and never queries two contexts in parallel.
    """

    @abstractmethod
    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run `script` in the active context and return a JSON value."""

    @abstractmethod
    async def evaluate_element(self, script: str, arg: Any = None) -> Optional[Any]:
        """Run `script` and return the element it produced, or None."""

    @abstractmethod
    async def evaluate_elements(self, script: str, arg: Any = None) -> List[Any]:
        """Run `script` and return the list of elements it produced."""

    @abstractmethod
    async def query(self, selector: str) -> Any:
        """Return a (possibly empty) handle for `selector` in the active context."""

    @abstractmethod
    async def query_all(self, selector: str) -> List[Any]:
        """Return handles for every match of `selector` in the active context."""

    @abstractmethod
    async def handle_exists(self, handle: Any) -> bool:
        """True if `handle` points at a node attached to its document."""

    @abstractmethod
    async def handle_is_displayed(self, handle: Any) -> bool:
        """True if `handle` points at a visible node."""

    @abstractmethod
    async def frame_elements(self) -> List[Any]:
        """Frame elements of the active context in document order."""

    @abstractmethod
    async def switch_to_frame(self, ref: FrameRef) -> Optional[int]:
        """
        Change the active context.

        Args:
            ref: None for the default content, an index among the active
                context's frame elements, or a frame element handle

        Returns:
            The index of the entered frame within its parent, or None when
            switching to the default content

        Raises:
            FrameIndexError: Index out of range
            FrameSwitchError: The frame has no content to enter
        """

    @abstractmethod
    async def switch_to_parent_frame(self) -> None:
        """Make the parent of the active context active (no-op at the root)."""

    async def count_frames(self) -> int:
        """Number of frame elements in the active context."""
        return len(await self.frame_elements())

    async def release(self, handles: List[Any]) -> None:
        """Release element handles the caller no longer needs (no-op by default)."""

    async def poll(
        self,
        predicate: Callable[[], Union[Any, Awaitable[Any]]],
        timeout_ms: int,
        interval_ms: Optional[int] = None,
        message: Optional[str] = None,
        description: str = "Waiting for condition",
        config: Optional[WaitConfig] = None,
    ) -> Any:
        """
        Retry `predicate` until it yields a value or the timeout expires.

        Raises:
            WaitTimeoutError: With `message` when the timeout expires
        """
        return await poll_until(
            predicate,
            timeout_ms=timeout_ms,
            interval_ms=interval_ms,
            message=message,
            description=description,
            config=config,
        )


class PlaywrightDriver(BrowserDriver):
    """
    Playwright implementation of the driver capability.

    Usage:
        >>> driver = PlaywrightDriver(page)
        >>> await driver.switch_to_frame(0)
        >>> locator = await driver.query("#submit")
    """

    def __init__(self, page: Page):
        """
        Initialize the driver.

        Args:
            page: Playwright Page object
        """
        self.page = page
        self._frame: Frame = page.main_frame

    @property
    def active_frame(self) -> Frame:
        """The Playwright frame that queries and scripts run against."""
        return self._frame

    # =========================================================================
    # Script Evaluation
    # =========================================================================

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._frame.evaluate(script, arg)

    async def evaluate_element(self, script: str, arg: Any = None) -> Optional[ElementHandle]:
        js_handle = await self._frame.evaluate_handle(script, arg)
        element = js_handle.as_element()
        if element is None:
            await js_handle.dispose()
        return element

    async def evaluate_elements(self, script: str, arg: Any = None) -> List[ElementHandle]:
        js_handle = await self._frame.evaluate_handle(script, arg)
        try:
            properties = await js_handle.get_properties()
            indexed = sorted(
                (int(key), value) for key, value in properties.items() if key.isdigit()
            )
            elements = []
            for _, value in indexed:
                element = value.as_element()
                if element is not None:
                    elements.append(element)
            return elements
        finally:
            await js_handle.dispose()

    # =========================================================================
    # Queries
    # =========================================================================

    async def query(self, selector: str) -> Locator:
        return self._frame.locator(selector).first

    async def query_all(self, selector: str) -> List[Locator]:
        return await self._frame.locator(selector).all()

    async def handle_exists(self, handle: Any) -> bool:
        if handle is None:
            return False
        try:
            if isinstance(handle, Locator):
                return await handle.count() > 0
            return bool(await handle.evaluate("el => el.isConnected"))
        except PlaywrightError as e:
            logger.debug(f"Handle existence check failed: {e}")
            return False

    async def handle_is_displayed(self, handle: Any) -> bool:
        if handle is None:
            return False
        try:
            return await handle.is_visible()
        except PlaywrightError as e:
            logger.debug(f"Handle visibility check failed: {e}")
            return False

    # =========================================================================
    # Frame Switching
    # =========================================================================

    async def frame_elements(self) -> List[ElementHandle]:
        """
        Frame elements of the active context, in document order.

        The caller owns the returned handles and should dispose them.
        """
        return await self._frame.query_selector_all(FRAME_SELECTOR)

    async def count_frames(self) -> int:
        # Locator count creates no element handles
        return await self._frame.locator(FRAME_SELECTOR).count()

    async def switch_to_frame(self, ref: FrameRef) -> Optional[int]:
        if ref is None:
            self._frame = self.page.main_frame
            return None

        if isinstance(ref, int):
            content = await self._child_frame_at(ref)
            index = ref
        else:
            content, index = await self._child_frame_of(ref)

        if content is None or content.is_detached():
            raise FrameSwitchError(f"Frame {index} has no content to switch into")

        self._frame = content
        return index

    async def switch_to_parent_frame(self) -> None:
        parent = self._frame.parent_frame
        self._frame = parent if parent is not None else self.page.main_frame

    async def _child_frame_at(self, index: int) -> Optional[Frame]:
        """Content frame of the frame element at `index` in the active context."""
        elements = await self.frame_elements()
        try:
            if index < 0 or index >= len(elements):
                raise FrameIndexError(
                    f"Frame index {index} out of range ({len(elements)} frames found)"
                )
            try:
                return await elements[index].content_frame()
            except PlaywrightError as e:
                raise FrameSwitchError(f"Cannot enter frame {index}: {e}") from e
        finally:
            await self.release(elements)

    async def _child_frame_of(self, ref: Any) -> Tuple[Optional[Frame], int]:
        """
        Content frame of a frame element handle and its index.

        The index is the element's position in `frame_elements()`, the same
        enumeration traversal uses, so frames inside shadow roots are
        numbered consistently.

        Raises:
            FrameSwitchError: The handle is not a frame of the active context
        """
        owned = isinstance(ref, Locator)
        element = await ref.element_handle() if owned else ref
        try:
            try:
                content = await element.content_frame()
            except PlaywrightError as e:
                raise FrameSwitchError(f"Cannot enter frame {ref}: {e}") from e
            if content is None:
                raise FrameSwitchError(f"{ref} is not a frame element")

            candidates = await self.frame_elements()
            try:
                for index, candidate in enumerate(candidates):
                    if await candidate.content_frame() == content:
                        return content, index
            finally:
                await self.release(candidates)
        finally:
            if owned:
                await self.release([element])

        raise FrameSwitchError(f"{ref} is not a frame of the active context")

    async def release(self, handles: List[Any]) -> None:
        for handle in handles:
            try:
                await handle.dispose()
            except PlaywrightError as e:
                logger.debug(f"Handle dispose failed: {e}")


__all__ = [
    "FRAME_SELECTOR",
    "FrameRef",
    "FrameSwitchError",
    "FrameIndexError",
    "BrowserDriver",
    "PlaywrightDriver",
]
