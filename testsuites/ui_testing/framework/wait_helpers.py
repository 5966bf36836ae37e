# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Timeout-driven polling shared by every element resolution strategy.
# A search that misses on its first synchronous attempt is retried here until
# it yields a value or the deadline passes.
#
# Key Features:
#   - Constant or exponential polling intervals (with optional jitter)
#   - Named wait scenarios for elements, shadow roots, frames and text
#   - Sync or async check functions
#   - Timeout errors that carry the target description and the bound
#
# Usage:
#   handle = await poll_until(lambda: driver.evaluate_element(js, segs),
#                             timeout_ms=10000,
#                             message="Shadow element not found: a >>> b")
#
# ================================================================================

import asyncio
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union

from loguru import logger


T = TypeVar('T')

CheckFn = Callable[[], Union[Optional[T], Awaitable[Optional[T]]]]


@dataclass
class WaitConfig:
    """
    Configuration for wait operations.

    Attributes:
        interval_ms: Initial wait between attempts in milliseconds
        multiplier: Interval multiplier per attempt (1.0 = constant polling)
        max_interval_ms: Upper bound for the interval
        timeout_ms: Total timeout in milliseconds
        jitter: Add random jitter to the interval
    """
    interval_ms: int = 500
    multiplier: float = 1.0
    max_interval_ms: int = 2000
    timeout_ms: int = 10000
    jitter: bool = False


# Pre-configured wait strategies for resolution scenarios
WAIT_SCENARIOS: Dict[str, WaitConfig] = {
    "default": WaitConfig(),

    # Plain element lookup in the active context
    "element": WaitConfig(
        interval_ms=250,
        timeout_ms=10000,
    ),

    # One in-page script per tick; all shadow recursion happens in-page
    "shadow_dom": WaitConfig(
        interval_ms=500,
        timeout_ms=10000,
    ),

    # A tick walks the whole frame tree, so back off a little
    "frames": WaitConfig(
        interval_ms=500,
        multiplier=1.5,
        max_interval_ms=2000,
        timeout_ms=10000,
    ),

    # Text assertions on already-resolved elements
    "text": WaitConfig(
        interval_ms=250,
        timeout_ms=15000,
    ),
}


class WaitTimeoutError(Exception):
    """
    Raised when a wait operation times out.

    Attributes:
        message: Description of what was awaited (selector or segment path)
        timeout_ms: The bound that expired
        elapsed_ms: Time actually spent waiting
        attempts: Number of checks performed
        last_error: Last exception raised by the check function, if any
    """

    def __init__(
        self,
        message: str,
        timeout_ms: int = 0,
        elapsed_ms: float = 0.0,
        attempts: int = 0,
        last_error: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.timeout_ms = timeout_ms
        self.elapsed_ms = elapsed_ms
        self.attempts = attempts
        self.last_error = last_error


def get_wait_config(scenario: str) -> WaitConfig:
    """
    Get wait configuration for a specific scenario.

    Args:
        scenario: Scenario name (e.g., "shadow_dom", "frames")

    Returns:
        WaitConfig for the scenario, or default if not found
    """
    return WAIT_SCENARIOS.get(scenario, WAIT_SCENARIOS["default"])


def calculate_next_interval(
    current_interval_ms: float,
    config: WaitConfig
) -> float:
    """
    Calculate the next wait interval with backoff and jitter.

    Args:
        current_interval_ms: Current interval in milliseconds
        config: Wait configuration

    Returns:
        Next interval in milliseconds
    """
    next_interval = min(
        current_interval_ms * config.multiplier,
        config.max_interval_ms
    )

    if config.jitter:
        # Add +/- 25% jitter
        jitter_factor = 0.75 + (random.random() * 0.5)
        next_interval = next_interval * jitter_factor

    return next_interval


def _is_satisfied(result: Any) -> bool:
    return result is not None and result is not False


async def poll_until(
    check_fn: CheckFn,
    timeout_ms: Optional[int] = None,
    interval_ms: Optional[int] = None,
    message: Optional[str] = None,
    description: str = "Waiting for condition",
    config: Optional[WaitConfig] = None,
) -> T:
    """
    Poll `check_fn` until it returns something other than None/False.

    The deadline is only checked between attempts: an attempt that is
    already running (a driver round-trip, or a frame walk restoring its
    context) is never interrupted.

    Args:
        check_fn: Sync or async callable; None/False means "not yet"
        timeout_ms: Total timeout (overrides config)
        interval_ms: Initial polling interval (overrides config)
        message: Error message used when the deadline passes
        description: Human-readable description for logging
        config: Optional WaitConfig (defaults to the "default" scenario)

    Returns:
        The first satisfying value returned by check_fn

    Raises:
        WaitTimeoutError: If the deadline passes without success
    """
    config = config or get_wait_config("default")
    timeout_ms = config.timeout_ms if timeout_ms is None else timeout_ms
    current_interval = config.interval_ms if interval_ms is None else interval_ms

    start_time = time.monotonic()
    attempt = 0
    last_error: Optional[str] = None

    logger.debug(f"Starting wait: {description} (timeout={timeout_ms}ms)")

    while True:
        attempt += 1

        try:
            result = check_fn()
            if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
                result = await result

            if _is_satisfied(result):
                elapsed_ms = (time.monotonic() - start_time) * 1000
                logger.debug(
                    f"Wait successful after {attempt} attempts "
                    f"({elapsed_ms:.0f}ms): {description}"
                )
                return result

        except Exception as e:
            last_error = str(e)
            logger.warning(f"Attempt {attempt} failed with error: {e}")

        elapsed_ms = (time.monotonic() - start_time) * 1000
        remaining_ms = timeout_ms - elapsed_ms

        if remaining_ms <= 0:
            error_msg = message or f"Timeout after {timeout_ms}ms: {description}"
            logger.debug(
                f"{error_msg} (attempts={attempt}, last error={last_error})"
            )
            raise WaitTimeoutError(
                error_msg,
                timeout_ms=timeout_ms,
                elapsed_ms=elapsed_ms,
                attempts=attempt,
                last_error=last_error,
            )

        # Never sleep past the deadline; one final check runs at the bound
        await asyncio.sleep(min(current_interval, remaining_ms) / 1000)
        current_interval = calculate_next_interval(current_interval, config)


class AsyncWaiter:
    """
    Reusable waiter bound to one WaitConfig.

    Example:
        waiter = AsyncWaiter(get_wait_config("frames"))
        result = await waiter.wait(search_once, description="frame search")
    """

    def __init__(self, config: WaitConfig = None):
        """
        Initialize async waiter.

        Args:
            config: Default wait configuration
        """
        self.config = config or WaitConfig()

    async def wait(
        self,
        check_fn: CheckFn,
        description: str = "Waiting for condition",
        message: Optional[str] = None,
    ) -> T:
        """Wait for `check_fn` using this waiter's configuration."""
        return await poll_until(
            check_fn,
            message=message,
            description=description,
            config=self.config,
        )


__all__ = [
    "WaitConfig",
    "WAIT_SCENARIOS",
    "WaitTimeoutError",
    "get_wait_config",
    "calculate_next_interval",
    "poll_until",
    "AsyncWaiter",
]
