"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Fixtures for browser-backed resolution tests.

Key Features:
- Browser and page lifecycle management (skips when no browser can launch)
- Self-contained fixture pages (srcdoc frames, script-built shadow roots)
- Page object fixtures with short resolution timeouts
- Failure capture (screenshot, URL, frame path) attached to Allure

================================================================================
"""

import html
from typing import AsyncGenerator, Callable

import pytest
from loguru import logger
from playwright.async_api import Page

from boundary_tools.common import ResolutionSettings
from testsuites.ui_testing.framework.browser_manager import BrowserManager
from testsuites.ui_testing.framework.driver import PlaywrightDriver
from testsuites.ui_testing.pages.widget_page import WidgetPage


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture
async def browser_manager() -> AsyncGenerator[BrowserManager, None]:
    """
    Started browser manager configured from the `browser` section.

    Skips the test when Playwright or its browser binaries are unavailable.
    """
    manager = BrowserManager.from_config()
    try:
        await manager.start()
    except Exception as e:
        pytest.skip(f"Browser could not be launched: {e}")
    yield manager
    await manager.close()


@pytest.fixture
async def page(browser_manager: BrowserManager) -> AsyncGenerator[Page, None]:
    """Fresh page in its own context."""
    page = await browser_manager.new_page()
    yield page
    await page.close()


@pytest.fixture
def driver(page: Page) -> PlaywrightDriver:
    return PlaywrightDriver(page)


@pytest.fixture
def fast_settings() -> ResolutionSettings:
    """Short waits so negative cases finish quickly."""
    return ResolutionSettings(timeout_ms=800, poll_interval_ms=100, frame_max_depth=5)


# ================================================================================
# Fixture Pages
# ================================================================================

def frame_html(inner: str, name: str = "") -> str:
    """An iframe whose document is `inner`, inlined through srcdoc."""
    name_attr = f' name="{name}"' if name else ""
    return f'<iframe{name_attr} srcdoc="{html.escape(inner, quote=True)}"></iframe>'


@pytest.fixture
def make_frame() -> Callable[..., str]:
    return frame_html


WIDGET_DASHBOARD = """
<h1 id="title">Widgets</h1>
<widget-panel></widget-panel>
<status-widget></status-widget>
<light-host><button class="save">Light DOM save</button></light-host>
{feedback_frame}
<script>
  const panel = document.querySelector('widget-panel').attachShadow({{mode: 'open'}});
  panel.innerHTML = `
    <settings-menu></settings-menu>
    <input class="title" value="Untitled">
    <button class="save">Save</button>`;
  const menu = panel.querySelector('settings-menu').attachShadow({{mode: 'open'}});
  menu.innerHTML = '<button class="open">Settings</button><div class="menu" hidden>Menu</div>';
  menu.querySelector('button.open').addEventListener('click', () => {{
    menu.querySelector('.menu').hidden = false;
  }});

  const status = document.querySelector('status-widget').attachShadow({{mode: 'open'}});
  status.innerHTML = '<span class="status-badge">Idle</span>';

  panel.querySelector('button.save').addEventListener('click', () => {{
    const title = panel.querySelector('input.title').value;
    status.querySelector('.status-badge').textContent = 'Saved: ' + title;
  }});
</script>
"""

FEEDBACK_FORM = """
<input id="feedback">
<button id="send-feedback"
  onclick="document.getElementById('feedback-result').textContent =
           'Thanks for: ' + document.getElementById('feedback').value">Send</button>
<p id="feedback-result"></p>
"""


@pytest.fixture
async def widget_dashboard(page: Page) -> Page:
    """Page with shadow-DOM widgets and a feedback form inside an iframe."""
    content = WIDGET_DASHBOARD.format(feedback_frame=frame_html(FEEDBACK_FORM, name="feedback"))
    await page.set_content(content)
    return page


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
async def widget_page(
    request,
    widget_dashboard: Page,
    fast_settings: ResolutionSettings,
) -> AsyncGenerator[WidgetPage, None]:
    """
    WidgetPage over the dashboard fixture.

    Captures failure details (screenshot, URL, frame path) when the test fails.
    """
    widget = WidgetPage(widget_dashboard, base_url="http://localhost", settings=fast_settings)
    yield widget

    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed:
        try:
            await widget.capture_failure(request.node.name)
        except Exception as e:
            logger.warning(f"Failed to capture failure details: {e}")


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Expose each phase's report on the item for fixture teardown."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)
