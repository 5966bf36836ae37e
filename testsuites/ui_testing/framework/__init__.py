"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based UI automation framework that resolves elements across
shadow DOM and frame boundaries.

Components:
    - selector_grammar: Plain and deep (">>>") selector parsing
    - wait_helpers: Deadline-driven polling
    - driver: Driver capability and its Playwright adapter
    - shadow_dom_resolver: Guided and exhaustive shadow root search
    - frame_manager: Nested frame traversal and switching
    - element_resolver: Resolution chain with opt-in fallbacks
    - element_actions: Retry-aware interactions
    - page_base: Base page object
    - browser_manager: Browser lifecycle management

Author: Automation Team
License: MIT
================================================================================
"""

from .selector_grammar import DeepSelector, PlainSelector, parse_selector
from .wait_helpers import WaitTimeoutError, poll_until
from .driver import BrowserDriver, FrameIndexError, FrameSwitchError, PlaywrightDriver
from .shadow_dom_resolver import ShadowDomResolver
from .frame_manager import FrameContext, FrameManager, FrameSearchResult
from .element_resolver import ElementResolver, ResolutionOutcome
from .element_actions import ElementActions, RetryConfig
from .page_base import BasePage
from .browser_manager import BrowserManager
from .timeouts import Timeouts

__all__ = [
    "DeepSelector",
    "PlainSelector",
    "parse_selector",
    "WaitTimeoutError",
    "poll_until",
    "BrowserDriver",
    "PlaywrightDriver",
    "FrameSwitchError",
    "FrameIndexError",
    "ShadowDomResolver",
    "FrameContext",
    "FrameManager",
    "FrameSearchResult",
    "ElementResolver",
    "ResolutionOutcome",
    "ElementActions",
    "RetryConfig",
    "BasePage",
    "BrowserManager",
    "Timeouts",
]
