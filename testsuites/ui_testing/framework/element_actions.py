# ================================================================================
# Element Actions Module
# ================================================================================
#
# Retry-aware element interactions built on the ElementResolver.
#
# Every attempt resolves the target again, so an element that was re-rendered,
# moved into a shadow root or reloaded inside a frame between attempts is
# picked up fresh instead of failing on a stale handle.
#
# Key Features:
#   - Retry with backoff (RetryConfig)
#   - Text and attribute waits that re-resolve on every poll
#   - Collection helpers (visible elements, texts, counts)
#   - Allure step integration
#
# ================================================================================

from __future__ import annotations

import asyncio
import time
from functools import wraps
from typing import Any, Awaitable, Callable, List, Optional

import allure
from loguru import logger

from .element_resolver import ElementResolver
from .timeouts import configured_timeout_ms
from .wait_helpers import get_wait_config


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        delay_seconds: float = 0.5,
        backoff_multiplier: float = 1.0,
        max_delay_seconds: float = 5.0
    ):
        """
        Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts
            delay_seconds: Initial delay between attempts
            backoff_multiplier: Multiplier for exponential backoff
            max_delay_seconds: Maximum delay between attempts
        """
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.backoff_multiplier = backoff_multiplier
        self.max_delay_seconds = max_delay_seconds


def with_retry(func: Callable[..., Awaitable[Any]]):
    """
    Decorator adding retry logic to ElementActions coroutines.

    Reads the RetryConfig from the instance (`self.retry_config`), so each
    ElementActions object can tune its own attempts and delays.
    """
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        config: RetryConfig = self.retry_config
        last_exception: Optional[Exception] = None
        delay = config.delay_seconds

        for attempt in range(1, config.max_attempts + 1):
            try:
                return await func(self, *args, **kwargs)
            except Exception as e:
                last_exception = e
                if attempt < config.max_attempts:
                    logger.warning(
                        f"⚠️ Attempt {attempt}/{config.max_attempts} failed for "
                        f"{func.__name__}: {str(e)}. Retrying in {delay}s..."
                    )
                    await asyncio.sleep(delay)
                    delay = min(
                        delay * config.backoff_multiplier,
                        config.max_delay_seconds
                    )

        logger.error(
            f"❌ All {config.max_attempts} attempts failed for {func.__name__}: "
            f"{str(last_exception)}"
        )
        raise last_exception

    return wrapper


class ElementActions:
    """
    Element interactions that resolve through shadow roots and frames.

    Example:
        actions = ElementActions(resolver)
        await actions.safe_click("checkout-app >>> #pay")
        await actions.safe_fill("#card-number", "4242424242424242")
        await actions.wait_for_text_to_be(".status", "Paid")
    """

    def __init__(
        self,
        resolver: ElementResolver,
        default_timeout: Optional[int] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        """
        Initialize ElementActions.

        Args:
            resolver: Resolver used to locate every target
            default_timeout: Default wait in milliseconds
            retry_config: Retry behavior (3 attempts, 0.5s apart by default)
        """
        self.resolver = resolver
        self.driver = resolver.driver
        self.default_timeout = default_timeout or configured_timeout_ms()
        self.retry_config = retry_config or RetryConfig()
        self.wait_config = get_wait_config("text")

    # =========================================================================
    # Safe Interactions
    # =========================================================================

    @with_retry
    async def safe_click(self, target: Any, timeout: Optional[int] = None) -> None:
        """
        Click an element, retrying on failure.

        Args:
            target: Selector (plain or deep) or handle
            timeout: Wait for the element to be displayed, in milliseconds
        """
        timeout = timeout or self.default_timeout
        with allure.step(f"Click element: {target}"):
            element = await self._displayed(target, timeout)
            await element.click(timeout=timeout)
        logger.debug(f"Successfully clicked: {target}")

    @with_retry
    async def safe_fill(self, target: Any, value: str, timeout: Optional[int] = None) -> None:
        """
        Replace an input's value, retrying on failure.

        Args:
            target: Selector (plain or deep) or handle
            value: Text to enter
            timeout: Wait for the element to be displayed, in milliseconds
        """
        timeout = timeout or self.default_timeout
        with allure.step(f"Fill input: {target}"):
            element = await self._displayed(target, timeout)
            await element.fill(value, timeout=timeout)
        logger.debug(f"Successfully filled: {target}")

    @with_retry
    async def safe_get_text(self, target: Any, timeout: Optional[int] = None) -> str:
        """
        Read an element's visible text, retrying on failure.

        Returns:
            The element's inner text
        """
        timeout = timeout or self.default_timeout
        with allure.step(f"Get text: {target}"):
            element = await self._displayed(target, timeout)
            text = await element.inner_text(timeout=timeout)
        logger.debug(f"Got text from {target}: '{text}'")
        return text

    # =========================================================================
    # Waits
    # =========================================================================

    async def wait_for_text_to_be(
        self,
        target: Any,
        expected_text: str,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Wait until the element's trimmed text equals `expected_text`.

        Raises:
            WaitTimeoutError: Text never matched
        """
        timeout = timeout or self.default_timeout

        async def matches() -> bool:
            text = await self._read_text(target)
            return text is not None and text.strip() == expected_text

        with allure.step(f"Wait for text of {target} to be '{expected_text}'"):
            await self.driver.poll(
                matches,
                timeout_ms=timeout,
                message=f'Text did not become "{expected_text}" within {timeout}ms',
                description=f"text of {target}",
                config=self.wait_config,
            )

    async def wait_for_text_contains(
        self,
        target: Any,
        partial_text: str,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Wait until the element's text contains `partial_text`.

        Raises:
            WaitTimeoutError: Text never contained the substring
        """
        timeout = timeout or self.default_timeout

        async def contains() -> bool:
            text = await self._read_text(target)
            return text is not None and partial_text in text

        with allure.step(f"Wait for text of {target} to contain '{partial_text}'"):
            await self.driver.poll(
                contains,
                timeout_ms=timeout,
                message=f'Text did not contain "{partial_text}" within {timeout}ms',
                description=f"text of {target}",
                config=self.wait_config,
            )

    async def wait_for_attribute_to_be(
        self,
        target: Any,
        attribute: str,
        expected_value: str,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Wait until an attribute of the element equals `expected_value`.

        Raises:
            WaitTimeoutError: Attribute never matched
        """
        timeout = timeout or self.default_timeout

        async def matches() -> bool:
            element = await self.resolver.resolve(target, timeout_ms=0)
            return await element.get_attribute(attribute) == expected_value

        await self.driver.poll(
            matches,
            timeout_ms=timeout,
            message=(
                f'Attribute "{attribute}" did not become "{expected_value}" '
                f"within {timeout}ms"
            ),
            description=f"attribute {attribute} of {target}",
            config=self.wait_config,
        )

    async def wait_for_element_count(
        self,
        selector: str,
        expected_count: int,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Wait until exactly `expected_count` elements match in the active context.

        Raises:
            WaitTimeoutError: Count never matched
        """
        timeout = timeout or self.default_timeout

        async def count_matches() -> bool:
            return len(await self.driver.query_all(selector)) == expected_count

        await self.driver.poll(
            count_matches,
            timeout_ms=timeout,
            message=f'Expected {expected_count} elements for "{selector}" within {timeout}ms',
            description=f"count of {selector}",
            config=self.wait_config,
        )

    # =========================================================================
    # Collections
    # =========================================================================

    async def get_visible_elements(self, selector: str) -> List[Any]:
        """All displayed matches of `selector` in the active context."""
        visible = []
        for element in await self.driver.query_all(selector):
            if await self.driver.handle_is_displayed(element):
                visible.append(element)
        return visible

    async def get_text_from_all(self, selector: str) -> List[str]:
        """Inner text of every match of `selector`, in document order."""
        return [await element.inner_text() for element in await self.driver.query_all(selector)]

    async def click_element_by_text(self, selector: str, text: str) -> None:
        """
        Click the first match of `selector` whose trimmed text equals `text`.

        Raises:
            LookupError: No match carries that text
        """
        for element in await self.driver.query_all(selector):
            if (await element.inner_text()).strip() == text:
                with allure.step(f"Click '{text}' in {selector}"):
                    await element.click()
                return
        raise LookupError(f'No element matching "{selector}" found with text "{text}"')

    async def is_text_present_in_any(self, selector: str, text: str) -> bool:
        """True if any match of `selector` contains `text`."""
        for element in await self.driver.query_all(selector):
            if text in await element.inner_text():
                return True
        return False

    async def count_visible_elements(self, selector: str) -> int:
        return len(await self.get_visible_elements(selector))

    # =========================================================================
    # Internals
    # =========================================================================

    async def _displayed(self, target: Any, timeout: int) -> Any:
        """Resolve `target` and wait for it to be displayed, within `timeout` overall."""
        started = time.monotonic()
        element = await self.resolver.resolve(target, timeout_ms=timeout)
        remaining = max(0, int(timeout - (time.monotonic() - started) * 1000))
        await self.driver.poll(
            lambda: self.driver.handle_is_displayed(element),
            timeout_ms=remaining,
            message=f"Element {target} not displayed after {timeout}ms",
            description=f"visibility of {target}",
            config=get_wait_config("element"),
        )
        return element

    async def _read_text(self, target: Any) -> Optional[str]:
        # Single pass: the surrounding wait owns the deadline
        element = await self.resolver.resolve(target, timeout_ms=0)
        if not await self.driver.handle_exists(element):
            return None
        return await element.inner_text()


__all__ = [
    "ElementActions",
    "RetryConfig",
    "with_retry",
]
