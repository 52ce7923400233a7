import asyncio
import inspect
import os
import re
from typing import Any, List, Optional, Union

from playwright.async_api import BrowserContext, Frame, Page
from playwright.async_api import Error as PlaywrightError

from .config import (
    ACTION_TIMEOUT_MS,
    FRAME_WAIT_TIMEOUT,
    VARIABLE_PATTERN,
    WAIT_FOR_TEXT_TIMEOUT_MS,
)
from .errors import FAILED, UnhandledActuatorError
from .logger import Logger
from .types import Action, ActionResult, ElementLocation
from ..dom.elements import collect_locations, parse_locations
from ..dom.scripts import CLEAR_SITE_DATA
from ..utils.imaging import image_to_data_url

Handle = Union[Page, Frame]


def fill_variables(text: str) -> str:
    """Replace ``{NAME}`` with the environment variable NAME when it is set."""
    if not text:
        return text
    return VARIABLE_PATTERN.sub(lambda m: os.getenv(m.group(1), m.group(0)), text)


class Actuator:
    """Page primitives on top of a Playwright ``BrowserContext``.

    Element-level problems (locator timeout, detached node, ...) come back as the
    ``FAILED`` sentinel. Assertions come back as ``False``. Navigation errors
    raise ``UnhandledActuatorError``.
    """

    def __init__(self, context: Optional[BrowserContext], logger: Optional[Logger] = None):
        self.context = context
        self.logger = logger or Logger()
        self.page: Optional[Page] = None
        self.frame: Optional[Frame] = None
        if context is not None:
            context.on("page", self._on_page)

    # --- page tracking ---

    def _on_page(self, page: Page) -> None:
        self.logger.info("Actuator", f"Switched to new page {page.url}")
        self.page = page
        self.frame = None
        page.on("close", self._on_close)

    def _on_close(self, page: Page) -> None:
        if page is not self.page:
            return
        pages = self.context.pages
        self.page = pages[-1] if pages else None
        self.frame = None

    async def new_page(self) -> Page:
        page = await self.context.new_page()
        self.page = page
        return page

    async def ensure_page(self) -> Page:
        if self.page is None or self.page.is_closed():
            return await self.new_page()
        return self.page

    async def _wait_for_frame(self, frame_src: str) -> Optional[Frame]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + FRAME_WAIT_TIMEOUT
        while loop.time() < deadline:
            for frame in self.page.frames:
                if frame.url == frame_src:
                    return frame
            await asyncio.sleep(0.5)
        return None

    async def handle(self, frame_src: Optional[str] = None) -> Handle:
        """Page or frame the next action runs against."""
        page = await self.ensure_page()
        if frame_src:
            self.frame = await self._wait_for_frame(frame_src)
        if self.frame is not None and self.frame.is_detached():
            self.frame = None
        target = self.frame or page
        await target.wait_for_load_state("domcontentloaded")
        return target

    async def _locator(self, xpath: str, frame_src: Optional[str] = None):
        target = await self.handle(frame_src)
        return target.locator(xpath).first

    # --- operations ---

    async def goto(self, url: str) -> str:
        page = await self.ensure_page()
        try:
            await page.goto(url)
        except PlaywrightError as e:
            raise UnhandledActuatorError(f"Navigation to {url} failed: {e}") from e
        self.frame = None
        return f"Navigated to {url}"

    async def click(self, xpath: str, frame_src: Optional[str] = None) -> str:
        try:
            locator = await self._locator(xpath, frame_src)
            await locator.wait_for(state="visible", timeout=ACTION_TIMEOUT_MS)
            await locator.click(timeout=ACTION_TIMEOUT_MS)
        except PlaywrightError as e:
            self.logger.info("Actuator", f"click failed on {xpath}: {e}")
            return FAILED
        return f"Clicked on {xpath}"

    async def hover(self, xpath: str, duration: Optional[int] = None, frame_src: Optional[str] = None) -> str:
        try:
            locator = await self._locator(xpath, frame_src)
            await locator.wait_for(state="visible", timeout=ACTION_TIMEOUT_MS)
            await locator.hover(timeout=ACTION_TIMEOUT_MS)
            if duration:
                await self.page.wait_for_timeout(duration)
        except PlaywrightError as e:
            self.logger.info("Actuator", f"hover failed on {xpath}: {e}")
            return FAILED
        return f"Hovered on {xpath}"

    async def input(self, xpath: str, text: str, frame_src: Optional[str] = None) -> str:
        text = fill_variables(text)
        try:
            locator = await self._locator(xpath, frame_src)
            await locator.wait_for(state="visible", timeout=ACTION_TIMEOUT_MS)
            await locator.fill(text, timeout=ACTION_TIMEOUT_MS)
        except PlaywrightError as e:
            self.logger.info("Actuator", f"fill failed on {xpath}: {e}")
            return FAILED
        return f"Filled {xpath} with {text}"

    async def select(self, xpath: str, option: str, frame_src: Optional[str] = None) -> str:
        try:
            locator = await self._locator(xpath, frame_src)
            await locator.wait_for(state="visible", timeout=ACTION_TIMEOUT_MS)
            await locator.select_option(value=option, timeout=ACTION_TIMEOUT_MS)
        except PlaywrightError as e:
            self.logger.info("Actuator", f"select failed on {xpath}: {e}")
            return FAILED
        return f"Selected {option} from {xpath}"

    async def press_keys(self, keys: str) -> str:
        page = await self.ensure_page()
        try:
            await page.keyboard.press(keys)
        except PlaywrightError:
            return FAILED
        return f"Pressed keys {keys}"

    async def scroll(self, direction: str, frame_src: Optional[str] = None) -> str:
        scripts = {
            "up": "() => window.scrollBy({ top: -window.innerHeight })",
            "down": "() => window.scrollBy({ top: window.innerHeight })",
            "top": "() => window.scrollTo({ top: 0 })",
            "bottom": "() => window.scrollTo({ top: document.body.scrollHeight })",
        }
        if direction not in scripts:
            return f"Unsupported scroll direction {direction}"
        try:
            target = await self.handle(frame_src)
            await target.evaluate(scripts[direction])
        except PlaywrightError:
            return FAILED
        return f"Scrolled {direction}"

    async def sleep(self, duration: int) -> str:
        await asyncio.sleep(duration / 1000)
        return f"Slept for {duration} milliseconds"

    async def switch_frame(self, frame_number: Optional[int] = None) -> str:
        page = await self.ensure_page()
        if frame_number is None:
            self.frame = None
            return "Switched to main frame"
        frames = page.frames
        if not 0 <= frame_number < len(frames):
            return FAILED
        self.frame = frames[frame_number]
        return f"Switched to frame {frame_number}"

    async def switch_page(self, page_number: int = 0) -> str:
        pages = self.context.pages
        if not 0 <= page_number < len(pages):
            return FAILED
        self.page = pages[page_number]
        self.frame = None
        await self.page.bring_to_front()
        return f"Switched to page {page_number}"

    async def wait_for_text(self, text: str, frame_src: Optional[str] = None) -> str:
        text = fill_variables(text)
        try:
            target = await self.handle(frame_src)
            await target.get_by_text(text).first.wait_for(state="visible", timeout=WAIT_FOR_TEXT_TIMEOUT_MS)
        except PlaywrightError:
            return FAILED
        return f"Waited for text: {text}"

    # --- queries ---

    async def get_text(self, xpath: str, frame_src: Optional[str] = None) -> str:
        try:
            locator = await self._locator(xpath, frame_src)
            text = await locator.text_content(timeout=ACTION_TIMEOUT_MS)
        except PlaywrightError:
            return FAILED
        return (text or "").strip()

    async def get_attribute(self, xpath: str, attribute: str, frame_src: Optional[str] = None) -> str:
        try:
            locator = await self._locator(xpath, frame_src)
            value = await locator.get_attribute(attribute, timeout=ACTION_TIMEOUT_MS)
        except PlaywrightError:
            return FAILED
        return value or ""

    async def snapshot(self) -> str:
        try:
            target = await self.handle()
            return await target.content()
        except PlaywrightError:
            return FAILED

    async def screenshot(self) -> bytes:
        page = await self.ensure_page()
        return await page.screenshot(type="jpeg", quality=80)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        target = await self.handle()
        return await target.evaluate(script, arg)

    async def element_locations(self, tags: List[str]) -> List[ElementLocation]:
        target = await self.handle()
        try:
            locations = await collect_locations(target, tags)
        except PlaywrightError as e:
            self.logger.warn("Actuator", f"Location script failed ({e.message}), parsing a snapshot instead")
            html = await self.snapshot()
            locations = [] if html == FAILED else parse_locations(html, tags)
        if self.frame is not None:
            for loc in locations:
                loc["frameSrc"] = self.frame.url
        return locations

    # --- assertions ---

    async def _text_of(self, xpath: str, frame_src: Optional[str]) -> Optional[str]:
        locator = await self._locator(xpath, frame_src)
        return await locator.text_content(timeout=ACTION_TIMEOUT_MS)

    async def assert_element_contains(self, xpath: str, text: str, frame_src: Optional[str] = None) -> bool:
        try:
            content = await self._text_of(xpath, frame_src)
        except PlaywrightError:
            return False
        return fill_variables(text) in (content or "")

    async def assert_element_not_contain(self, xpath: str, text: str, frame_src: Optional[str] = None) -> bool:
        try:
            content = await self._text_of(xpath, frame_src)
        except PlaywrightError:
            return False
        return fill_variables(text) not in (content or "")

    async def assert_element_content_equals(self, xpath: str, text: str, frame_src: Optional[str] = None) -> bool:
        try:
            content = await self._text_of(xpath, frame_src)
        except PlaywrightError:
            return False
        return (content or "").strip() == fill_variables(text).strip()

    async def assert_element_content_not_equal(self, xpath: str, text: str, frame_src: Optional[str] = None) -> bool:
        try:
            content = await self._text_of(xpath, frame_src)
        except PlaywrightError:
            return False
        return (content or "").strip() != fill_variables(text).strip()

    async def assert_element_visible(self, xpath: str, frame_src: Optional[str] = None) -> bool:
        try:
            locator = await self._locator(xpath, frame_src)
            return await locator.is_visible()
        except PlaywrightError:
            return False

    async def assert_element_not_visible(self, xpath: str, frame_src: Optional[str] = None) -> bool:
        try:
            locator = await self._locator(xpath, frame_src)
            return await locator.is_hidden()
        except PlaywrightError:
            return False

    async def _text_visible(self, text: str, frame_src: Optional[str]) -> bool:
        target = await self.handle(frame_src)
        for locator in await target.get_by_text(fill_variables(text)).all():
            if await locator.is_visible():
                return True
        return False

    async def assert_page_contains(self, text: str, frame_src: Optional[str] = None) -> bool:
        try:
            return await self._text_visible(text, frame_src)
        except PlaywrightError:
            return False

    async def assert_page_not_contain(self, text: str, frame_src: Optional[str] = None) -> bool:
        try:
            return not await self._text_visible(text, frame_src)
        except PlaywrightError:
            return False

    async def assert_page_title_equals(self, text: str) -> bool:
        try:
            page = await self.ensure_page()
            return await page.title() == fill_variables(text)
        except PlaywrightError:
            return False

    async def assert_page_url_matches(self, pattern: str) -> bool:
        try:
            page = await self.ensure_page()
            return re.search(pattern, page.url) is not None
        except (PlaywrightError, re.error):
            return False

    # --- session ---

    async def reset(self) -> None:
        """Clear cookies, storage, caches, IndexedDB and service workers, then reopen a blank page."""
        await self.context.clear_cookies()
        for page in list(self.context.pages):
            try:
                await page.evaluate(CLEAR_SITE_DATA)
            except PlaywrightError as e:
                # about:blank and friends have no storage to clear
                self.logger.info("Actuator", f"Skipped storage reset on {page.url}: {e}")
        for page in list(self.context.pages):
            await page.close()
        self.page = None
        self.frame = None
        await self.new_page()


ACTIONS = {
    "goto",
    "click",
    "hover",
    "input",
    "select",
    "press_keys",
    "scroll",
    "sleep",
    "switch_frame",
    "switch_page",
    "wait_for_text",
    "get_text",
    "get_attribute",
    "assert_element_contains",
    "assert_element_not_contain",
    "assert_element_content_equals",
    "assert_element_content_not_equal",
    "assert_element_visible",
    "assert_element_not_visible",
    "assert_page_contains",
    "assert_page_not_contain",
    "assert_page_title_equals",
    "assert_page_url_matches",
}

# Recorded param names -> Actuator keyword arguments
_PARAM_NAMES = {
    "frameSrc": "frame_src",
    "frameNumber": "frame_number",
    "pageNumber": "page_number",
}


async def run_action(actuator: Actuator, action: Action, reasoner=None) -> ActionResult:
    """Replay one recorded Action against the Actuator."""
    name = action["name"]
    params = action.get("params") or {}
    if name == "analyze_screenshot":
        if reasoner is None:
            return FAILED
        image = await actuator.screenshot()
        return await reasoner.analyze_image(image_to_data_url(image), params.get("input", ""))
    if name not in ACTIONS:
        return FAILED
    method = getattr(actuator, name)
    accepted = inspect.signature(method).parameters
    kwargs = {}
    for key, value in params.items():
        key = _PARAM_NAMES.get(key, key)
        if key in accepted and value is not None:
            kwargs[key] = value
    return await method(**kwargs)
