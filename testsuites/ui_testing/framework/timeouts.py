"""
================================================================================
Timeouts
================================================================================

Centralised timeout defaults (milliseconds, Playwright convention).

The values here are defaults only. Overrides go through the configuration
layer (`config/config.yaml` or the matching environment variable):
    - resolution.timeout_ms  (RESOLUTION_TIMEOUT_MS)  -> element waits
    - frames.max_depth       (FRAMES_MAX_DEPTH)       -> frame search depth
    - browser.navigation_timeout_ms                   -> page loads
================================================================================
"""

from boundary_tools.common import get_config


class Timeouts:
    """Timeout values shared across the framework."""

    # Default wait for a single element to appear
    ELEMENT_WAIT: int = 15000

    PAGE_LOAD: int = 30000
    SCRIPT: int = 30000

    SHORT: int = 5000
    MEDIUM: int = 15000
    LONG: int = 30000

    # Polling interval for custom waits
    POLL_INTERVAL: int = 500

    # Nested frame search depth
    FRAME_MAX_DEPTH: int = 5


def configured_timeout_ms() -> int:
    """Element wait from resolution.timeout_ms, ELEMENT_WAIT if unset."""
    return int(get_config("resolution.timeout_ms", Timeouts.ELEMENT_WAIT))


def configured_max_depth() -> int:
    """Frame search depth from frames.max_depth, FRAME_MAX_DEPTH if unset."""
    return int(get_config("frames.max_depth", Timeouts.FRAME_MAX_DEPTH))


__all__ = [
    "Timeouts",
    "configured_timeout_ms",
    "configured_max_depth",
]
