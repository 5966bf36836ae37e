import time

import pytest

from fake_browser import (
    ElementNotFound,
    FakeBrowserDriver,
    FakeDocument,
    FakeLocator,
    FakeNode,
    FakeRoot,
    iframe,
)
from testsuites.ui_testing.framework.element_resolver import ElementResolver
from testsuites.ui_testing.framework.frame_manager import FrameManager
from testsuites.ui_testing.framework.shadow_dom_resolver import ShadowDomResolver
from testsuites.ui_testing.framework.wait_helpers import WaitTimeoutError


def _resolver(document, shadow=False, frames=False, timeout_ms=40):
    driver = FakeBrowserDriver(document)
    resolver = ElementResolver(
        driver,
        shadow_resolver=ShadowDomResolver(driver, timeout_ms=timeout_ms, poll_interval_ms=10),
        frame_manager=FrameManager(driver, timeout_ms=timeout_ms, poll_interval_ms=10),
        auto_resolve_shadow_dom=shadow,
        auto_resolve_frames=frames,
        timeout_ms=timeout_ms,
    )
    return resolver, driver


@pytest.mark.asyncio
async def test_handle_passes_through_untouched():
    node = FakeNode("div")
    resolver, driver = _resolver(FakeDocument(node), shadow=True, frames=True)

    assert await resolver.resolve(node) is node
    assert sum(driver.calls.values()) == 0


@pytest.mark.asyncio
async def test_plain_selector_in_main_document_skips_fallbacks():
    button = FakeNode("button", id="go")
    document = FakeDocument(button, FakeNode("x-host", shadow=FakeRoot()), iframe(FakeDocument()))
    resolver, driver = _resolver(document, shadow=True, frames=True)

    outcome = await resolver.locate("#go")

    assert outcome.strategy == "plain"
    assert outcome.frame_path == []
    assert outcome.handle.element() is button
    assert driver.calls["evaluate"] == 0
    assert driver.calls["count_frames"] == 0


@pytest.mark.asyncio
async def test_deep_selector_resolves_in_one_round_trip():
    widget = FakeNode("div", classes="widget")
    resolver, driver = _resolver(FakeDocument(FakeNode("div", id="app", shadow=FakeRoot(widget))))

    assert await resolver.resolve("#app >>> .widget") is widget
    assert driver.calls["evaluate_element"] == 1
    assert driver.calls["query"] == 0


@pytest.mark.asyncio
async def test_deep_selector_timeout_propagates():
    resolver, _ = _resolver(FakeDocument(FakeNode("div", id="app")))

    with pytest.raises(WaitTimeoutError):
        await resolver.resolve("#app >>> .widget")


@pytest.mark.asyncio
async def test_shadow_fallback_when_enabled(warnings_logged):
    badge = FakeNode("span", classes="badge")
    document = FakeDocument(FakeNode("x-status", shadow=FakeRoot(badge)))
    resolver, _ = _resolver(document, shadow=True)

    outcome = await resolver.locate(".badge")

    assert outcome.strategy == "shadow_search"
    assert outcome.handle is badge
    assert any("shadow DOM fallback" in m for m in warnings_logged())


@pytest.mark.asyncio
async def test_fallbacks_are_off_by_default():
    badge = FakeNode("span", classes="badge")
    document = FakeDocument(FakeNode("x-status", shadow=FakeRoot(badge)), iframe(FakeDocument(FakeNode("p", id="x"))))
    resolver, driver = _resolver(document)

    handle = await resolver.resolve(".badge")

    assert isinstance(handle, FakeLocator)
    assert await driver.handle_exists(handle) is False
    assert await resolver.locate("#x") is None
    assert driver.calls["evaluate"] == 0
    assert driver.calls["count_frames"] == 0


@pytest.mark.asyncio
async def test_frame_fallback_reports_path_and_stays_in_frame():
    card = FakeNode("input", id="card")
    inner = FakeDocument(card)
    document = FakeDocument(iframe(FakeDocument()), iframe(inner))
    resolver, driver = _resolver(document, frames=True)

    outcome = await resolver.locate("#card")

    assert outcome.strategy == "frames"
    assert outcome.frame_path == [1]
    assert driver.current is inner
    assert resolver.frame_manager.get_current_frame_path() == [1]


@pytest.mark.asyncio
async def test_shadow_fallback_runs_before_frame_fallback():
    in_shadow = FakeNode("span", classes="target", text="shadow")
    in_frame = FakeNode("span", classes="target", text="frame")
    document = FakeDocument(
        FakeNode("x-host", shadow=FakeRoot(in_shadow)),
        iframe(FakeDocument(in_frame)),
    )
    resolver, _ = _resolver(document, shadow=True, frames=True)

    assert (await resolver.locate(".target")).strategy == "shadow_search"


@pytest.mark.asyncio
async def test_missing_element_without_shadow_or_frames_skips_expensive_searches():
    document = FakeDocument(FakeNode("div"))
    resolver, driver = _resolver(document, shadow=True, frames=True)

    handle = await resolver.resolve(".missing")

    assert isinstance(handle, FakeLocator)
    assert handle.selector == ".missing"
    # one has_shadow_dom probe and one frame count, nothing else
    assert driver.calls["evaluate"] == 1
    assert driver.calls["evaluate_element"] == 0
    assert driver.calls["count_frames"] == 1
    assert driver.switch_log == []


@pytest.mark.asyncio
async def test_failed_frame_fallback_returns_lazy_handle_in_default_content():
    document = FakeDocument(iframe(FakeDocument(iframe(FakeDocument()))))
    resolver, driver = _resolver(document, frames=True)

    handle = await resolver.resolve(".missing")

    assert isinstance(handle, FakeLocator)
    assert handle.root is document
    assert driver.current is document
    assert resolver.frame_manager.get_current_frame_path() == []


@pytest.mark.asyncio
async def test_lazy_handle_fails_on_interaction():
    resolver, _ = _resolver(FakeDocument(FakeNode("div")))
    handle = await resolver.resolve(".missing")

    with pytest.raises(ElementNotFound):
        await handle.click()


@pytest.mark.asyncio
async def test_flags_are_per_resolver():
    badge = FakeNode("span", classes="badge")
    document = FakeDocument(FakeNode("x-status", shadow=FakeRoot(badge)))
    with_shadow, _ = _resolver(document, shadow=True)
    without, _ = _resolver(document)

    assert await with_shadow.resolve(".badge") is badge
    assert await without.locate(".badge") is None


@pytest.mark.asyncio
async def test_shadow_and_frame_fallbacks_share_one_timeout():
    document = FakeDocument(FakeNode("x-host", shadow=FakeRoot()), iframe(FakeDocument()))
    resolver, driver = _resolver(document, shadow=True, frames=True, timeout_ms=300)

    started = time.monotonic()
    assert await resolver.locate(".missing") is None

    assert time.monotonic() - started < 0.5
    assert driver.current is document


@pytest.mark.asyncio
async def test_zero_timeout_makes_a_single_pass():
    document = FakeDocument(FakeNode("x-host", shadow=FakeRoot()), iframe(FakeDocument()))
    resolver, driver = _resolver(document, shadow=True, frames=True, timeout_ms=1500)

    started = time.monotonic()
    handle = await resolver.resolve(".missing", timeout_ms=0)

    assert time.monotonic() - started < 0.3
    assert isinstance(handle, FakeLocator)
    assert driver.calls["poll"] == 0
    assert driver.current is document


@pytest.mark.asyncio
async def test_zero_timeout_still_finds_framed_element():
    target = FakeNode("input", id="card")
    resolver, _ = _resolver(FakeDocument(iframe(FakeDocument(target))), frames=True, timeout_ms=1500)

    outcome = await resolver.locate("#card", timeout_ms=0)

    assert outcome.strategy == "frames"
    assert outcome.frame_path == [0]
