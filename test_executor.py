import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from playword.core.errors import FAILED, is_failure
from playword.core.executor import Actuator, run_action
from playword.core.orchestrator import PlayWord
from playword.dom.elements import collect_locations, parse_locations

PAGE = """
<html><body>
  <div id="header">Header</div>
  <button data-testid="search-btn" class="btn">Search</button>
  <a href="/login" class="nav">Login</a>
  <a href="/help">Help</a>
  <a href="/help">Support</a>
  <span class="badge">New</span>
  <span class="badge">Sale</span>
  <button hidden>Ghost</button>
</body></html>
"""


class StubPage:
    """Just enough of a Playwright page for the Actuator's location code."""

    def __init__(self, html="", script_error=None, content_error=None):
        self.html = html
        self.script_error = script_error
        self.content_error = content_error
        self.frames = []

    def is_closed(self):
        return False

    async def wait_for_load_state(self, state):
        pass

    async def evaluate(self, script, arg=None):
        if self.script_error:
            raise self.script_error
        return [{"xpath": "//button[1]", "html": "<button>Go</button>"}]

    async def content(self):
        if self.content_error:
            raise self.content_error
        return self.html


class StubFrame(StubPage):
    url = "https://pay.x.test/frame"

    def is_detached(self):
        return False


class StubContext:
    def __init__(self, page):
        self.page = page
        self.pages = [page]
        self.listeners = {}

    def on(self, event, handler):
        self.listeners[event] = handler

    async def new_page(self):
        return self.page


def test_locations_come_from_the_page_script():
    actuator = Actuator(StubContext(StubPage()))
    locations = asyncio.run(actuator.element_locations(["button"]))
    assert locations == [{"xpath": "//button[1]", "html": "<button>Go</button>"}]


def test_locations_fall_back_to_snapshot_when_script_fails():
    page = StubPage(PAGE, script_error=PlaywrightError("Execution context was destroyed"))
    actuator = Actuator(StubContext(page))

    locations = asyncio.run(actuator.element_locations(["a", "button"]))
    xpaths = [loc["xpath"] for loc in locations]
    print("Snapshot locations:", xpaths)
    assert xpaths == [
        '//*[@data-testid="search-btn"]',
        '//a[@href="/login"]',
        "//html/body/a[2]",
        "//html/body/a[3]",
    ]


def test_failed_snapshot_gives_no_locations():
    page = StubPage(
        script_error=PlaywrightError("Execution context was destroyed"),
        content_error=PlaywrightError("Target closed"),
    )
    actuator = Actuator(StubContext(page))
    assert asyncio.run(actuator.element_locations(["a"])) == []


def test_locations_in_a_frame_carry_frame_src():
    actuator = Actuator(StubContext(StubPage()))
    actuator.frame = StubFrame()
    locations = asyncio.run(actuator.element_locations(["button"]))
    assert locations[0]["frameSrc"] == "https://pay.x.test/frame"


def test_actuator_without_context():
    actuator = Actuator(None)
    assert actuator.page is None


def test_playword_without_context(reasoner):
    playword = PlayWord(reasoner=reasoner, delay=0)
    assert playword.page is None
    assert playword.recorder is None


def test_only_the_sentinel_is_a_failure():
    assert is_failure(FAILED)
    assert not is_failure("Failed login attempts: 0")
    assert not is_failure(False)


def test_run_action_maps_recorded_param_names(actuator):
    action = {"name": "click", "params": {"xpath": "//a[1]", "frameSrc": None, "html": "<a/>"}}
    assert asyncio.run(run_action(actuator, action)) == "Clicked on //a[1]"
    assert asyncio.run(run_action(actuator, {"name": "teleport", "params": {}})) == FAILED


async def _collect_in_browser(html, tags):
    async with async_playwright() as p:
        try:
            browser = await p.chromium.launch()
        except PlaywrightError as e:
            return None, e.message
        try:
            page = await browser.new_page()
            await page.set_content(html)
            return await collect_locations(page, tags), ""
        finally:
            await browser.close()


def test_page_script_and_snapshot_agree_on_locators():
    tags = ["a", "button", "span", "div"]
    live, reason = asyncio.run(_collect_in_browser(PAGE, tags))
    if live is None:
        pytest.skip(f"No browser available: {reason}")

    expected = [loc["xpath"] for loc in parse_locations(PAGE, tags)]
    assert [loc["xpath"] for loc in live] == expected
    assert '//span[@class="badge" and text()="Sale"]' in expected
    assert not any("Ghost" in loc["html"] for loc in live)
