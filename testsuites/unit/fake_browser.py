"""
In-memory browser used by the unit tests.

Models documents, open shadow roots and (i)frames, and emulates the in-page
scripts of the shadow resolver in Python. The driver records every context
switch so tests can assert the exact traversal order.

Supported selectors: `tag`, `#id`, `.class`, `[attr="value"]`, compounds
of those (`button.save#ok`) and comma-separated lists. No combinators.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Any, Callable, Iterator, List, Optional

from testsuites.ui_testing.framework.driver import (
    BrowserDriver,
    FrameIndexError,
    FrameSwitchError,
)
from testsuites.ui_testing.framework.shadow_dom_resolver import (
    COUNT_SHADOW_ROOTS_JS,
    DEEP_SEARCH_ALL_JS,
    DEEP_SEARCH_JS,
    GUIDED_DESCENT_ALL_JS,
    GUIDED_DESCENT_JS,
    HAS_SHADOW_DOM_JS,
)


_COMPOUND = re.compile(r'([#.][\w-]+|\[[\w-]+="[^"]*"\])')
_ATTRIBUTE = re.compile(r'\[([\w-]+)="([^"]*)"\]')


class ElementNotFound(Exception):
    """Raised when acting on a lazy handle whose selector matches nothing."""


def _matches_compound(node: "FakeNode", selector: str) -> bool:
    match = re.match(r"^[a-zA-Z][\w-]*", selector)
    tag = match.group(0) if match else None
    rest = selector[len(tag):] if tag else selector
    if tag and node.tag != tag.lower():
        return False
    if "".join(_COMPOUND.findall(rest)) != rest:
        raise ValueError(f"Unsupported selector: {selector}")

    for part in _COMPOUND.findall(rest):
        if part.startswith("#") and node.id != part[1:]:
            return False
        if part.startswith(".") and part[1:] not in node.classes:
            return False
        if part.startswith("["):
            name, value = _ATTRIBUTE.match(part).groups()
            if node.get_attribute_sync(name) != value:
                return False
    return True


def matches(node: "FakeNode", selector: str) -> bool:
    return any(_matches_compound(node, part.strip()) for part in selector.split(","))


class FakeRoot:
    """A document or a shadow root: an ordered list of light-DOM children."""

    def __init__(self, *children: "FakeNode"):
        self.children: List[FakeNode] = list(children)

    def walk(self) -> Iterator["FakeNode"]:
        """Light-DOM nodes in document order (does not enter shadow roots or frames)."""
        for child in self.children:
            yield child
            yield from child.walk()

    def query(self, selector: str) -> Optional["FakeNode"]:
        return next((node for node in self.walk() if matches(node, selector)), None)

    def query_all(self, selector: str) -> List["FakeNode"]:
        return [node for node in self.walk() if matches(node, selector)]


class FakeDocument(FakeRoot):
    pass


class FakeNode:
    """An element, optionally a shadow host or a frame."""

    def __init__(
        self,
        tag: str,
        *children: "FakeNode",
        id: Optional[str] = None,
        classes: str = "",
        text: str = "",
        attrs: Optional[dict] = None,
        shadow: Optional[FakeRoot] = None,
        content: Optional[FakeDocument] = None,
        visible: bool = True,
        on_click: Optional[Callable[["FakeNode"], None]] = None,
    ):
        self.tag = tag.lower()
        self.children = list(children)
        self.id = id
        self.classes = set(classes.split())
        self.text = text
        self.attrs = dict(attrs or {})
        self.shadow_root = shadow
        self.content = content
        self.visible = visible
        self.connected = True
        self.value = ""
        self.clicks = 0
        self.on_click = on_click

    def walk(self) -> Iterator["FakeNode"]:
        for child in self.children:
            yield child
            yield from child.walk()

    def get_attribute_sync(self, name: str) -> Optional[str]:
        if name == "id":
            return self.id
        if name == "class":
            return " ".join(sorted(self.classes)) or None
        return self.attrs.get(name)

    # Element-handle surface used by actions and page objects

    async def click(self, **kwargs: Any) -> None:
        self.clicks += 1
        if self.on_click:
            self.on_click(self)

    async def fill(self, value: str, **kwargs: Any) -> None:
        self.value = value

    async def inner_text(self, **kwargs: Any) -> str:
        return self.text

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.get_attribute_sync(name)

    def __repr__(self) -> str:
        label = self.tag
        if self.id:
            label += f"#{self.id}"
        for cls in sorted(self.classes):
            label += f".{cls}"
        return f"<{label}>"


def iframe(content: Optional[FakeDocument], **kwargs: Any) -> FakeNode:
    """Frame element; `content=None` models a detached or unloaded frame."""
    return FakeNode("iframe", content=content, **kwargs)


class FakeLocator:
    """Lazy handle bound to the root that was active when it was created."""

    def __init__(self, root: FakeRoot, selector: str):
        self.root = root
        self.selector = selector

    def element(self) -> Optional[FakeNode]:
        return self.root.query(self.selector)

    def _require(self) -> FakeNode:
        node = self.element()
        if node is None:
            raise ElementNotFound(f"No element matches {self.selector}")
        return node

    async def click(self, **kwargs: Any) -> None:
        await self._require().click(**kwargs)

    async def fill(self, value: str, **kwargs: Any) -> None:
        await self._require().fill(value, **kwargs)

    async def inner_text(self, **kwargs: Any) -> str:
        return await self._require().inner_text()

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self._require().get_attribute(name)

    def __repr__(self) -> str:
        return f"FakeLocator({self.selector!r})"


class FakeBrowserDriver(BrowserDriver):
    """
    Driver over a FakeDocument.

    Attributes:
        switch_log: ("enter", index) / ("parent",) / ("default",) entries
        calls: Counter of driver methods invoked
        released: Handles passed to release()
    """

    def __init__(self, document: FakeDocument):
        self.document = document
        self._stack: List[FakeRoot] = [document]
        self.switch_log: List[tuple] = []
        self.calls: Counter = Counter()
        self.released: List[Any] = []

    @property
    def current(self) -> FakeRoot:
        return self._stack[-1]

    @property
    def depth(self) -> int:
        return len(self._stack) - 1

    # Scripts

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.calls["evaluate"] += 1
        if script == HAS_SHADOW_DOM_JS:
            return any(node.shadow_root is not None for node in self.current.walk())
        if script == COUNT_SHADOW_ROOTS_JS:
            return self._count_roots(self.current)
        raise NotImplementedError("Unknown script")

    async def evaluate_element(self, script: str, arg: Any = None) -> Optional[Any]:
        self.calls["evaluate_element"] += 1
        if script == GUIDED_DESCENT_JS:
            return self._guided(arg)
        if script == DEEP_SEARCH_JS:
            return self._deep_search(self.current, arg)
        raise NotImplementedError("Unknown script")

    async def evaluate_elements(self, script: str, arg: Any = None) -> List[Any]:
        self.calls["evaluate_elements"] += 1
        if script == GUIDED_DESCENT_ALL_JS:
            context = self.current
            for segment in arg[:-1]:
                host = context.query(segment)
                if host is None or host.shadow_root is None:
                    return []
                context = host.shadow_root
            return context.query_all(arg[-1])
        if script == DEEP_SEARCH_ALL_JS:
            results: List[FakeNode] = []
            self._deep_collect(self.current, arg, results)
            return results
        raise NotImplementedError("Unknown script")

    def _guided(self, segments: List[str]) -> Optional[FakeNode]:
        context = self.current
        for i, segment in enumerate(segments):
            element = context.query(segment)
            if element is None:
                return None
            if i == len(segments) - 1:
                return element
            if element.shadow_root is None:
                return None
            context = element.shadow_root
        return None

    def _deep_search(self, root: FakeRoot, selector: str) -> Optional[FakeNode]:
        found = root.query(selector)
        if found is not None:
            return found
        for node in root.walk():
            if node.shadow_root is not None:
                found = self._deep_search(node.shadow_root, selector)
                if found is not None:
                    return found
        return None

    def _deep_collect(self, root: FakeRoot, selector: str, results: List[FakeNode]) -> None:
        results.extend(root.query_all(selector))
        for node in root.walk():
            if node.shadow_root is not None:
                self._deep_collect(node.shadow_root, selector, results)

    def _count_roots(self, root: FakeRoot) -> int:
        count = 0
        for node in root.walk():
            if node.shadow_root is not None:
                count += 1 + self._count_roots(node.shadow_root)
        return count

    # Queries

    async def query(self, selector: str) -> FakeLocator:
        self.calls["query"] += 1
        return FakeLocator(self.current, selector)

    async def query_all(self, selector: str) -> List[FakeNode]:
        self.calls["query_all"] += 1
        return self.current.query_all(selector)

    async def handle_exists(self, handle: Any) -> bool:
        if handle is None:
            return False
        if isinstance(handle, FakeLocator):
            node = handle.element()
            return node is not None and node.connected
        return handle.connected

    async def handle_is_displayed(self, handle: Any) -> bool:
        node = handle.element() if isinstance(handle, FakeLocator) else handle
        return node is not None and node.connected and node.visible

    # Frames

    async def frame_elements(self) -> List[FakeNode]:
        self.calls["frame_elements"] += 1
        return self._frames()

    async def count_frames(self) -> int:
        self.calls["count_frames"] += 1
        return len(self._frames())

    async def release(self, handles: List[Any]) -> None:
        self.released.extend(handles)

    async def poll(self, predicate, timeout_ms, **kwargs):
        self.calls["poll"] += 1
        return await super().poll(predicate, timeout_ms, **kwargs)

    def _frames(self) -> List[FakeNode]:
        return [node for node in self.current.walk() if node.tag in ("iframe", "frame")]

    async def switch_to_frame(self, ref: Any) -> Optional[int]:
        if ref is None:
            self._stack = [self.document]
            self.switch_log.append(("default",))
            return None

        frames = self._frames()
        if isinstance(ref, int):
            if ref < 0 or ref >= len(frames):
                raise FrameIndexError(f"Frame index {ref} out of range ({len(frames)} frames found)")
            element, index = frames[ref], ref
        else:
            element = ref.element() if isinstance(ref, FakeLocator) else ref
            if element not in frames:
                raise FrameSwitchError(f"{element!r} is not a frame of the active context")
            index = frames.index(element)

        if element.content is None:
            raise FrameSwitchError(f"Frame {index} has no content to switch into")

        self._stack.append(element.content)
        self.switch_log.append(("enter", index))
        return index

    async def switch_to_parent_frame(self) -> None:
        if len(self._stack) > 1:
            self._stack.pop()
        self.switch_log.append(("parent",))


def nested_frames(depth: int, target: FakeNode) -> FakeDocument:
    """Document whose only frame chain is `depth` levels deep, target at the bottom."""
    document = FakeDocument(target)
    for _ in range(depth):
        document = FakeDocument(iframe(document))
    return document
