"""
================================================================================
Selector Grammar
================================================================================

Parses selector strings into a tagged variant:

    - PlainSelector: a standard query expression ("#login", ".btn-primary")
    - DeepSelector:  shadow-piercing segments joined by ">>>"
                     ("my-app >>> settings-panel >>> .save-button")

Parsing is pure: no I/O and no syntax validation. Each segment is handed
to the query engine as-is, so an invalid CSS segment surfaces as a query
error at resolution time.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


DEEP_SELECTOR_DELIMITER = ">>>"


@dataclass(frozen=True)
class PlainSelector:
    """A selector that is queried directly in the active context."""
    selector: str

    def __str__(self) -> str:
        return self.selector


@dataclass(frozen=True)
class DeepSelector:
    """
    A selector that pierces one shadow root per delimiter.

    Attributes:
        raw: Original selector text
        segments: Ordered plain selectors. Every segment except the last
            names a shadow host; the last one names the target inside the
            innermost shadow root.
    """
    raw: str
    segments: Tuple[str, ...]

    @property
    def hosts(self) -> Tuple[str, ...]:
        """Segments that must expose a shadow root."""
        return self.segments[:-1]

    @property
    def target(self) -> str:
        """Segment matched inside the innermost shadow root."""
        return self.segments[-1]

    def __str__(self) -> str:
        return f" {DEEP_SELECTOR_DELIMITER} ".join(self.segments)


Selector = Union[PlainSelector, DeepSelector]


def is_deep_selector(selector: object) -> bool:
    """Return True if `selector` is a string containing the deep delimiter."""
    return isinstance(selector, str) and DEEP_SELECTOR_DELIMITER in selector


def parse_segments(selector: str) -> Tuple[str, ...]:
    """
    Split a deep selector into trimmed segments.

    Args:
        selector: Selector text, e.g. "host-a >>> host-b >>> .target"

    Returns:
        Tuple of segments. A selector without the delimiter yields a
        single segment.
    """
    return tuple(part.strip() for part in selector.split(DEEP_SELECTOR_DELIMITER))


def parse_selector(selector: Union[str, Selector]) -> Selector:
    """
    Parse selector text into its tagged form.

    Already-parsed selectors are returned unchanged.

    Examples:
        >>> parse_selector("#app >>> .widget")
        DeepSelector(raw='#app >>> .widget', segments=('#app', '.widget'))
        >>> parse_selector("#login")
        PlainSelector(selector='#login')
    """
    if isinstance(selector, (PlainSelector, DeepSelector)):
        return selector
    if not isinstance(selector, str):
        raise TypeError(
            f"Selector must be a string, got {type(selector).__name__}"
        )
    if is_deep_selector(selector):
        return DeepSelector(raw=selector, segments=parse_segments(selector))
    return PlainSelector(selector=selector.strip())


__all__ = [
    "DEEP_SELECTOR_DELIMITER",
    "PlainSelector",
    "DeepSelector",
    "Selector",
    "is_deep_selector",
    "parse_segments",
    "parse_selector",
]
