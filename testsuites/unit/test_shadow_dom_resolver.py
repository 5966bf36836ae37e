import pytest

from fake_browser import FakeBrowserDriver, FakeDocument, FakeNode, FakeRoot
from testsuites.ui_testing.framework.shadow_dom_resolver import ShadowDomResolver
from testsuites.ui_testing.framework.wait_helpers import WaitTimeoutError


def _settings_app():
    save = FakeNode("button", classes="save", text="Save")
    panel = FakeNode("settings-panel", shadow=FakeRoot(save))
    app = FakeNode("my-app", shadow=FakeRoot(FakeNode("header"), panel))
    return FakeDocument(app), save


def _resolver(document, timeout_ms=60):
    driver = FakeBrowserDriver(document)
    return ShadowDomResolver(driver, timeout_ms=timeout_ms, poll_interval_ms=10), driver


@pytest.mark.asyncio
async def test_guided_descent_through_nested_hosts():
    document, save = _settings_app()
    resolver, driver = _resolver(document)

    found = await resolver.find_in_shadow_dom("my-app >>> settings-panel >>> .save")

    assert found is save
    assert driver.calls["evaluate_element"] == 1


@pytest.mark.asyncio
async def test_two_segment_selector_is_one_round_trip():
    widget = FakeNode("div", classes="widget")
    document = FakeDocument(FakeNode("div", id="app", shadow=FakeRoot(widget)))
    resolver, driver = _resolver(document)

    assert await resolver.find_in_shadow_dom("#app >>> .widget") is widget
    assert sum(driver.calls.values()) == 1


@pytest.mark.asyncio
async def test_host_without_shadow_root_times_out_instead_of_matching_light_dom():
    # `.save` exists in the light DOM of the host, but the host has no shadow root
    document = FakeDocument(FakeNode("my-app", FakeNode("button", classes="save")))
    resolver, _ = _resolver(document)

    with pytest.raises(WaitTimeoutError) as exc_info:
        await resolver.find_in_shadow_dom("my-app >>> .save", timeout_ms=40)

    assert str(exc_info.value) == "Shadow element not found after 40ms: my-app >>> .save"


@pytest.mark.asyncio
async def test_guided_descent_picks_up_late_rendering():
    save = FakeNode("button", classes="save")
    host = FakeNode("my-app")
    document = FakeDocument(host)
    resolver, driver = _resolver(document, timeout_ms=500)

    original = driver.evaluate_element

    async def render_then_evaluate(script, arg=None):
        if driver.calls["evaluate_element"] == 2:
            host.shadow_root = FakeRoot(save)
        return await original(script, arg)

    driver.evaluate_element = render_then_evaluate

    assert await resolver.find_in_shadow_dom("my-app >>> .save") is save
    assert driver.calls["poll"] == 1


@pytest.mark.asyncio
async def test_zero_timeout_checks_shadow_path_once():
    document = FakeDocument(FakeNode("my-app", shadow=FakeRoot()))
    resolver, driver = _resolver(document, timeout_ms=1000)

    with pytest.raises(WaitTimeoutError, match="after 0ms: my-app >>> .save"):
        await resolver.find_in_shadow_dom("my-app >>> .save", timeout_ms=0)
    assert await resolver.deep_find_element(".save", timeout_ms=0) is None

    assert driver.calls["evaluate_element"] == 2
    assert driver.calls["poll"] == 0


@pytest.mark.asyncio
async def test_find_all_returns_every_match_in_innermost_root():
    items = [FakeNode("li", classes="item", text=str(i)) for i in range(3)]
    document = FakeDocument(FakeNode("todo-list", shadow=FakeRoot(FakeNode("ul", *items))))
    resolver, _ = _resolver(document)

    assert await resolver.find_all_in_shadow_dom("todo-list >>> .item") == items
    assert await resolver.find_all_in_shadow_dom("missing-host >>> .item") == []


@pytest.mark.asyncio
async def test_deep_find_element_at_any_depth_in_document_order():
    deepest = FakeNode("span", classes="badge", text="deep")
    shallow = FakeNode("span", classes="badge", text="shallow")
    level2 = FakeNode("inner-el", shadow=FakeRoot(deepest))
    level1 = FakeNode("outer-el", shadow=FakeRoot(level2))
    document = FakeDocument(level1, FakeNode("side-el", shadow=FakeRoot(shallow)))
    resolver, _ = _resolver(document)

    assert await resolver.deep_find_element(".badge") is deepest
    assert await resolver.deep_find_all_elements(".badge") == [deepest, shallow]


@pytest.mark.asyncio
async def test_deep_find_prefers_light_dom_match():
    light = FakeNode("span", classes="badge")
    document = FakeDocument(FakeNode("x-host", shadow=FakeRoot(FakeNode("span", classes="badge"))), light)
    resolver, _ = _resolver(document)

    assert await resolver.deep_find_element(".badge") is light


@pytest.mark.asyncio
async def test_deep_find_element_returns_none_when_absent(warnings_logged):
    document, _ = _settings_app()
    resolver, _ = _resolver(document)

    assert await resolver.deep_find_element(".nope", timeout_ms=30) is None
    assert any("Deep shadow search failed" in m for m in warnings_logged())


@pytest.mark.asyncio
async def test_probes():
    document, _ = _settings_app()
    resolver, _ = _resolver(document)

    assert await resolver.has_shadow_dom() is True
    assert await resolver.count_shadow_roots() == 2

    flat, _ = _resolver(FakeDocument(FakeNode("div")))
    assert await flat.has_shadow_dom() is False
    assert await flat.count_shadow_roots() == 0


def test_is_deep_selector():
    assert ShadowDomResolver.is_deep_selector("a >>> b")
    assert not ShadowDomResolver.is_deep_selector(".plain")
