"""Turns a captured gesture into the Action the step description asks for.

Same tool names as the operation and assertion catalogues, but nothing runs:
each tool merges its arguments into the pending gesture passed as
``configurable["action"]`` and returns the resulting Action.
"""

from typing import Literal

from langchain_core.runnables import RunnableConfig
from langchain_core.tools import tool
from pydantic import BaseModel, Field

from ..core.types import Action


class NoInput(BaseModel):
    pass


class TextInput(BaseModel):
    text: str = Field(description="The text to type or verify")


class UrlInput(BaseModel):
    url: str = Field(description="The URL to navigate to")


class PatternInput(BaseModel):
    pattern: str = Field(description="Regular expression the page URL should match")


class DurationInput(BaseModel):
    duration: int = Field(default=1000, description="Milliseconds")


class OptionInput(BaseModel):
    option: str = Field(description="The option to select")


class DirectionInput(BaseModel):
    direction: Literal["up", "down", "top", "bottom"]


class KeysInput(BaseModel):
    keys: str = Field(description="Keys in Playwright notation")


def _pending(config: RunnableConfig) -> dict:
    return dict(config["configurable"]["action"].get("params") or {})


@tool("Click", args_schema=NoInput)
async def click(config: RunnableConfig) -> Action:
    """Click on the element."""
    return {"name": "click", "params": _pending(config)}


@tool("GoTo", args_schema=UrlInput)
async def goto(url: str) -> Action:
    """Navigate to a URL."""
    return {"name": "goto", "params": {"url": url}}


@tool("Hover", args_schema=DurationInput)
async def hover(config: RunnableConfig, duration: int = 1000) -> Action:
    """Hover over the element."""
    return {"name": "hover", "params": {**_pending(config), "duration": duration}}


@tool("Input", args_schema=TextInput)
async def input_text(text: str, config: RunnableConfig) -> Action:
    """Type text into the element."""
    return {"name": "input", "params": {**_pending(config), "text": text}}


@tool("PressKeys", args_schema=KeysInput)
async def press_keys(keys: str) -> Action:
    """Press a key or key combination."""
    return {"name": "press_keys", "params": {"keys": keys}}


@tool("Scroll", args_schema=DirectionInput)
async def scroll(direction: str) -> Action:
    """Scroll the page."""
    return {"name": "scroll", "params": {"direction": direction}}


@tool("Select", args_schema=OptionInput)
async def select(option: str, config: RunnableConfig) -> Action:
    """Select an option from the element."""
    return {"name": "select", "params": {**_pending(config), "option": option}}


@tool("Sleep", args_schema=DurationInput)
async def sleep(duration: int = 1000) -> Action:
    """Wait for a fixed amount of time."""
    return {"name": "sleep", "params": {"duration": duration}}


@tool("WaitForText", args_schema=TextInput)
async def wait_for_text(text: str) -> Action:
    """Wait until a text shows up."""
    return {"name": "wait_for_text", "params": {"text": text}}


@tool("AssertElementContains", args_schema=TextInput)
async def assert_element_contains(text: str, config: RunnableConfig) -> Action:
    """Verify that the element contains a text."""
    return {"name": "assert_element_contains", "params": {**_pending(config), "text": text}}


@tool("AssertElementNotContain", args_schema=TextInput)
async def assert_element_not_contain(text: str, config: RunnableConfig) -> Action:
    """Verify that the element does not contain a text."""
    return {"name": "assert_element_not_contain", "params": {**_pending(config), "text": text}}


@tool("AssertElementContentEquals", args_schema=TextInput)
async def assert_element_content_equals(text: str, config: RunnableConfig) -> Action:
    """Verify that the element text is exactly the given text."""
    return {"name": "assert_element_content_equals", "params": {**_pending(config), "text": text}}


@tool("AssertElementContentNotEqual", args_schema=TextInput)
async def assert_element_content_not_equal(text: str, config: RunnableConfig) -> Action:
    """Verify that the element text is not the given text."""
    return {"name": "assert_element_content_not_equal", "params": {**_pending(config), "text": text}}


@tool("AssertElementVisible", args_schema=NoInput)
async def assert_element_visible(config: RunnableConfig) -> Action:
    """Verify that the element is visible."""
    return {"name": "assert_element_visible", "params": _pending(config)}


@tool("AssertElementNotVisible", args_schema=NoInput)
async def assert_element_not_visible(config: RunnableConfig) -> Action:
    """Verify that the element is hidden."""
    return {"name": "assert_element_not_visible", "params": _pending(config)}


@tool("AssertPageContains", args_schema=TextInput)
async def assert_page_contains(text: str) -> Action:
    """Verify that the page shows a text."""
    return {"name": "assert_page_contains", "params": {"text": text}}


@tool("AssertPageNotContain", args_schema=TextInput)
async def assert_page_not_contain(text: str) -> Action:
    """Verify that the page does not show a text."""
    return {"name": "assert_page_not_contain", "params": {"text": text}}


@tool("AssertPageTitleEquals", args_schema=TextInput)
async def assert_page_title_equals(text: str) -> Action:
    """Verify the page title."""
    return {"name": "assert_page_title_equals", "params": {"text": text}}


@tool("AssertPageUrlMatches", args_schema=PatternInput)
async def assert_page_url_matches(pattern: str) -> Action:
    """Verify that the page URL matches a regular expression."""
    return {"name": "assert_page_url_matches", "params": {"pattern": pattern}}


CLASSIFIER_TOOLS = [
    assert_element_contains,
    assert_element_not_contain,
    assert_element_content_equals,
    assert_element_content_not_equal,
    assert_element_visible,
    assert_element_not_visible,
    assert_page_contains,
    assert_page_not_contain,
    assert_page_title_equals,
    assert_page_url_matches,
    click,
    goto,
    hover,
    input_text,
    press_keys,
    scroll,
    select,
    sleep,
    wait_for_text,
]
