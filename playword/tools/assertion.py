"""Checks that answer True or False about the page or one of its elements."""

from langchain_core.runnables import RunnableConfig
from langchain_core.tools import tool
from pydantic import BaseModel, Field

from .common import perform, session_of, target_params
from ..core.config import ALLOWED_TAGS

KEYWORDS = "Words from the user input that describe the element to check"


class ElementTextInput(BaseModel):
    keywords: str = Field(description=KEYWORDS)
    text: str = Field(description="The text to verify")


class ElementInput(BaseModel):
    keywords: str = Field(description=KEYWORDS)


class PageTextInput(BaseModel):
    text: str = Field(description="The text to verify")


class UrlPatternInput(BaseModel):
    pattern: str = Field(description="Regular expression the page URL should match")


async def _check_element(config: RunnableConfig, name: str, keywords: str, **extra) -> bool:
    session = session_of(config)
    params = await target_params(session, keywords, ALLOWED_TAGS)
    return await perform(session, name, {**params, **extra})


@tool("AssertElementContains", args_schema=ElementTextInput)
async def assert_element_contains(keywords: str, text: str, config: RunnableConfig) -> bool:
    """Verify that an element contains a text."""
    return await _check_element(config, "assert_element_contains", keywords, text=text)


@tool("AssertElementNotContain", args_schema=ElementTextInput)
async def assert_element_not_contain(keywords: str, text: str, config: RunnableConfig) -> bool:
    """Verify that an element does not contain a text."""
    return await _check_element(config, "assert_element_not_contain", keywords, text=text)


@tool("AssertElementContentEquals", args_schema=ElementTextInput)
async def assert_element_content_equals(keywords: str, text: str, config: RunnableConfig) -> bool:
    """Verify that the text of an element is exactly the given text."""
    return await _check_element(config, "assert_element_content_equals", keywords, text=text)


@tool("AssertElementContentNotEqual", args_schema=ElementTextInput)
async def assert_element_content_not_equal(keywords: str, text: str, config: RunnableConfig) -> bool:
    """Verify that the text of an element is not the given text."""
    return await _check_element(config, "assert_element_content_not_equal", keywords, text=text)


@tool("AssertElementVisible", args_schema=ElementInput)
async def assert_element_visible(keywords: str, config: RunnableConfig) -> bool:
    """Verify that an element is visible."""
    return await _check_element(config, "assert_element_visible", keywords)


@tool("AssertElementNotVisible", args_schema=ElementInput)
async def assert_element_not_visible(keywords: str, config: RunnableConfig) -> bool:
    """Verify that an element is hidden."""
    return await _check_element(config, "assert_element_not_visible", keywords)


@tool("AssertPageContains", args_schema=PageTextInput)
async def assert_page_contains(text: str, config: RunnableConfig) -> bool:
    """Verify that the page shows a text."""
    return await perform(session_of(config), "assert_page_contains", {"text": text})


@tool("AssertPageNotContain", args_schema=PageTextInput)
async def assert_page_not_contain(text: str, config: RunnableConfig) -> bool:
    """Verify that the page does not show a text."""
    return await perform(session_of(config), "assert_page_not_contain", {"text": text})


@tool("AssertPageTitleEquals", args_schema=PageTextInput)
async def assert_page_title_equals(text: str, config: RunnableConfig) -> bool:
    """Verify the page title."""
    return await perform(session_of(config), "assert_page_title_equals", {"text": text})


@tool("AssertPageUrlMatches", args_schema=UrlPatternInput)
async def assert_page_url_matches(pattern: str, config: RunnableConfig) -> bool:
    """Verify that the page URL matches a regular expression."""
    return await perform(session_of(config), "assert_page_url_matches", {"pattern": pattern})


ASSERTION_TOOLS = [
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
]
