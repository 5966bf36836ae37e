"""
================================================================================
Frame Manager
================================================================================

Searches the main document and every nested iframe/frame for an element,
removing the need for manual frame switching in tests.

Capabilities:
    - Depth-first traversal of nested frames (bounded by max_depth)
    - Switches INTO the frame that holds the match, so the caller can act
      on the element immediately
    - Tracks the active frame path ([] = main document, [1, 0] = first
      child of the second top-level frame)
    - Manual switching helpers and scoped helpers that always restore the
      default content

Context discipline:
    The driver's active frame is shared state. Every traversal step that
    enters a frame and misses switches back to the parent before the next
    sibling is tried, on every exit path. A search that fails completely
    leaves the driver in the default content.

Usage:
    >>> frames = FrameManager(driver)
    >>> result = await frames.find_element_across_frames(".submit-btn")
    >>> result.frame_path
    [1, 0]

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Sequence, TypeVar, Union

from loguru import logger

from .driver import BrowserDriver, FrameIndexError, FrameSwitchError
from .timeouts import configured_max_depth, configured_timeout_ms
from .wait_helpers import WaitTimeoutError, get_wait_config


T = TypeVar("T")

FrameReference = Union[int, str, Any]


@dataclass
class FrameSearchResult:
    """An element found by frame traversal and the frames leading to it."""
    handle: Any
    frame_path: List[int] = field(default_factory=list)


@dataclass
class FrameInfo:
    """A frame element discovered during enumeration."""
    handle: Any
    path: List[int]


class FrameContext:
    """
    Breadcrumb of frame indices mirroring the driver's active frame.

    Only the FrameManager mutates it, and only right after the matching
    driver call succeeded, so `path` always equals the real context.
    """

    def __init__(self) -> None:
        self._path: List[int] = []

    @property
    def path(self) -> List[int]:
        """Copy of the active frame path."""
        return list(self._path)

    @property
    def depth(self) -> int:
        return len(self._path)

    @property
    def is_default(self) -> bool:
        return not self._path

    def enter(self, index: int) -> None:
        self._path.append(index)

    def leave(self) -> None:
        if self._path:
            self._path.pop()

    def replace(self, path: Sequence[int]) -> None:
        self._path = list(path)

    def reset(self) -> None:
        self._path.clear()

    def __repr__(self) -> str:
        return f"FrameContext(path={self._path})"


class FrameManager:
    """
    Recursive element search across nested frames.

    Attributes:
        driver: Driver capability used for queries and context switches
        max_depth: Maximum frame nesting searched (frames at path length
            <= max_depth are searched)
        context: FrameContext tracking the active frame path
    """

    def __init__(
        self,
        driver: BrowserDriver,
        max_depth: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        poll_interval_ms: Optional[int] = None,
        context: Optional[FrameContext] = None,
    ):
        """
        Initialize frame manager.

        Args:
            driver: Driver capability
            max_depth: Maximum frame nesting to search (frames.max_depth by default)
            timeout_ms: Default wait for find_element_across_frames
                (resolution.timeout_ms by default)
            poll_interval_ms: Interval between full traversals
            context: Frame path tracker (a fresh one by default)
        """
        self.driver = driver
        self.max_depth = max_depth if max_depth is not None else configured_max_depth()
        self.timeout_ms = timeout_ms if timeout_ms is not None else configured_timeout_ms()
        self.wait_config = get_wait_config("frames")
        self.poll_interval_ms = (
            poll_interval_ms if poll_interval_ms is not None else self.wait_config.interval_ms
        )
        self.context = context or FrameContext()

    # =========================================================================
    # Cross-frame Search
    # =========================================================================

    async def find_element_across_frames(
        self,
        selector: str,
        timeout_ms: Optional[int] = None,
    ) -> Optional[FrameSearchResult]:
        """
        Search the main document and every nested frame for `selector`.

        When the match lives inside a frame, the driver is left switched
        into that frame.

        Args:
            selector: Plain selector to locate
            timeout_ms: Max wait time in milliseconds

        Returns:
            FrameSearchResult (empty frame_path = main document), or None
            after the timeout, with the driver back in the default content
        """
        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        logger.debug(f"Searching all frames for: {selector}")

        result = await self._search_once(selector)
        if result:
            return result
        if timeout_ms <= 0:
            await self.switch_to_default_content()
            return None

        try:
            return await self.driver.poll(
                lambda: self._search_once(selector),
                timeout_ms=timeout_ms,
                interval_ms=self.poll_interval_ms,
                message=f'Element "{selector}" not found in any frame after {timeout_ms}ms',
                description=f"frame search {selector}",
                config=self.wait_config,
            )
        except WaitTimeoutError as e:
            logger.warning(f"Frame search exhausted: {e}")
            await self.switch_to_default_content()
            return None

    async def _search_once(self, selector: str) -> Optional[FrameSearchResult]:
        """One full pass: default content first, then the frame tree."""
        await self.switch_to_default_content()

        handle = await self._query_existing(selector)
        if handle is not None:
            logger.debug(f'Found "{selector}" in main content')
            return FrameSearchResult(handle=handle, frame_path=[])

        result = await self._search_frames_recursive(selector, depth=0)
        if result:
            logger.debug(
                f'Found "{selector}" in frame path: '
                f"[{' -> '.join(str(i) for i in result.frame_path)}]"
            )
        return result

    async def _search_frames_recursive(
        self,
        selector: str,
        depth: int,
    ) -> Optional[FrameSearchResult]:
        """
        Search the frames of the active context, depth-first.

        On a hit the driver stays inside the matching frame. On a miss the
        driver is back in the context this call started in.
        """
        try:
            frame_count = await self.driver.count_frames()
        except Exception as e:
            logger.debug(f"Cannot enumerate frames at {self.context.path}: {e}")
            return None

        if frame_count and depth >= self.max_depth:
            logger.warning(
                f"Frame nesting depth exceeded {self.max_depth} at "
                f"{self.context.path} - stopping recursion"
            )
            return None

        for index in range(frame_count):
            if not await self._enter_frame(index):
                continue

            stay = False
            try:
                handle = await self._query_existing(selector)
                if handle is not None:
                    stay = True
                    return FrameSearchResult(handle=handle, frame_path=self.context.path)

                nested = await self._search_frames_recursive(selector, depth + 1)
                if nested:
                    stay = True
                    return nested
            finally:
                if not stay:
                    await self._leave_frame()

        return None

    async def _enter_frame(self, index: int) -> bool:
        try:
            await self.driver.switch_to_frame(index)
        except Exception as e:
            logger.debug(f"Cannot switch to frame {index} at {self.context.path}: {e}")
            return False
        self.context.enter(index)
        return True

    async def _leave_frame(self) -> None:
        await self.driver.switch_to_parent_frame()
        self.context.leave()

    async def _query_existing(self, selector: str) -> Optional[Any]:
        """Plain query in the active context; None unless the node exists."""
        try:
            handle = await self.driver.query(selector)
            if await self.driver.handle_exists(handle):
                return handle
        except Exception as e:
            logger.debug(f'Query "{selector}" failed at {self.context.path}: {e}')
        return None

    # =========================================================================
    # Enumeration
    # =========================================================================

    async def get_all_frames(self) -> List[FrameInfo]:
        """
        Enumerate every frame on the page, all levels deep.

        Returns:
            FrameInfo entries in depth-first document order. The driver ends
            in the default content. The caller owns the frame handles and
            releases them with `driver.release`.
        """
        await self.switch_to_default_content()
        frames: List[FrameInfo] = []
        try:
            await self._collect_frames(frames, depth=0)
        finally:
            await self.switch_to_default_content()
        return frames

    async def _collect_frames(self, results: List[FrameInfo], depth: int) -> None:
        try:
            elements = await self.driver.frame_elements()
        except Exception as e:
            logger.debug(f"Cannot enumerate frames at {self.context.path}: {e}")
            return

        if elements and depth >= self.max_depth:
            logger.warning(
                f"Frame nesting depth exceeded {self.max_depth} at "
                f"{self.context.path} - not enumerating deeper"
            )
            await self.driver.release(elements)
            return

        for index, element in enumerate(elements):
            results.append(FrameInfo(handle=element, path=self.context.path + [index]))

            if not await self._enter_frame(index):
                continue
            try:
                await self._collect_frames(results, depth + 1)
            finally:
                await self._leave_frame()

    async def get_frame_count(self) -> int:
        """Number of frames in the active context (top level only)."""
        return await self.driver.count_frames()

    # =========================================================================
    # Manual Switching
    # =========================================================================

    async def switch_to_frame(self, frame_ref: FrameReference) -> None:
        """
        Switch into a child frame of the active context.

        Args:
            frame_ref: Index, name/id attribute (falls back to a CSS
                selector), or frame element handle

        Raises:
            FrameIndexError: Index out of range
            FrameSwitchError: Frame cannot be entered
        """
        target = frame_ref
        if isinstance(frame_ref, str):
            target = await self._frame_by_name(frame_ref)

        entered = await self.driver.switch_to_frame(target)
        self.context.enter(entered)
        logger.debug(f"Switched to frame: {frame_ref} (path={self.context.path})")

    async def _frame_by_name(self, name: str) -> Any:
        by_attribute = (
            f'iframe[name="{name}"], iframe[id="{name}"], '
            f'frame[name="{name}"], frame[id="{name}"]'
        )
        try:
            handle = await self.driver.query(by_attribute)
            if await self.driver.handle_exists(handle):
                return handle
        except Exception as e:
            logger.debug(f"Frame lookup by name/id failed for {name}: {e}")

        handle = await self.driver.query(name)
        if not await self.driver.handle_exists(handle):
            raise FrameSwitchError(f"No frame matches name, id or selector: {name}")
        return handle

    async def switch_to_parent_frame(self) -> None:
        """Switch one level up."""
        await self._leave_frame()

    async def switch_to_default_content(self) -> None:
        """Switch back to the main document. Never raises."""
        try:
            await self.driver.switch_to_frame(None)
            self.context.reset()
        except Exception as e:
            logger.warning(f"switch_to_default_content: {e}")

    async def switch_to_frame_path(self, frame_path: Sequence[int]) -> None:
        """
        Enter a nested frame path from the main document.

        Args:
            frame_path: Frame indices from root to target, e.g. [1, 0]

        Raises:
            FrameIndexError: An index is out of range at some depth (the
                driver is returned to the default content)
        """
        await self.switch_to_default_content()
        for depth, index in enumerate(frame_path):
            try:
                await self.driver.switch_to_frame(index)
            except FrameSwitchError as e:
                await self.switch_to_default_content()
                if isinstance(e, FrameIndexError):
                    raise FrameIndexError(
                        f"Frame index {index} out of range at depth {depth}"
                    ) from e
                raise
            self.context.enter(index)

    def get_current_frame_path(self) -> List[int]:
        """Copy of the active frame path."""
        return self.context.path

    # =========================================================================
    # Scoped Execution
    # =========================================================================

    @asynccontextmanager
    async def frame_scope(self, frame_ref: FrameReference) -> AsyncIterator["FrameManager"]:
        """
        Run a block inside a frame, then return to the default content.

        Usage:
            async with frames.frame_scope("payment") as scope:
                await (await scope.driver.query("#card")).fill("4242")
        """
        try:
            await self.switch_to_frame(frame_ref)
            yield self
        finally:
            await self.switch_to_default_content()

    @asynccontextmanager
    async def frame_path_scope(self, frame_path: Sequence[int]) -> AsyncIterator["FrameManager"]:
        """Run a block inside a nested frame path, then restore the default content."""
        try:
            await self.switch_to_frame_path(frame_path)
            yield self
        finally:
            await self.switch_to_default_content()

    async def within_frame(
        self,
        frame_ref: FrameReference,
        callback: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Execute `callback` within a frame, restoring the default content
        even if it raises.

        Returns:
            The callback's return value
        """
        async with self.frame_scope(frame_ref):
            return await callback()

    async def within_frame_path(
        self,
        frame_path: Sequence[int],
        callback: Callable[[], Awaitable[T]],
    ) -> T:
        """Execute `callback` within a nested frame path, then restore context."""
        async with self.frame_path_scope(frame_path):
            return await callback()


__all__ = [
    "FrameManager",
    "FrameContext",
    "FrameSearchResult",
    "FrameInfo",
]
