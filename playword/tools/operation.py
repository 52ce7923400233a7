"""Tools that drive the browser: navigation, pointer, keyboard and waits."""

import json
from typing import Literal

from langchain_core.runnables import RunnableConfig
from langchain_core.tools import tool
from pydantic import BaseModel, Field

from .common import perform, session_of, target_params
from ..core.config import ALLOWED_TAGS, INPUT_TAGS, SELECT_TAGS
from ..core.errors import ReasonerMalformedOutput

KEYWORDS = "Words from the user input that describe the target element"


class ClickInput(BaseModel):
    keywords: str = Field(description=KEYWORDS)


class GoToInput(BaseModel):
    url: str = Field(description="Full URL including the protocol, e.g. https://example.com")


class HoverInput(BaseModel):
    keywords: str = Field(description=KEYWORDS)
    duration: int = Field(default=1000, description="How long to stay over the element, in milliseconds")


class InputInput(BaseModel):
    keywords: str = Field(description=KEYWORDS)
    text: str = Field(description="Text to type")


class PressKeysInput(BaseModel):
    keys: str = Field(description="Keys in Playwright notation, e.g. Enter or Control+A")


class ScrollInput(BaseModel):
    direction: Literal["up", "down", "top", "bottom"]


class SelectInput(BaseModel):
    keywords: str = Field(description=KEYWORDS)
    option: str = Field(description="Value of the option to select")


class SleepInput(BaseModel):
    duration: int = Field(description="Milliseconds to wait")


class SwitchFrameInput(BaseModel):
    enterFrame: bool = Field(description="True to enter a frame, false to go back to the main page")
    keywords: str = Field(default="", description="Words from the user input that describe the frame")


class SwitchPageInput(BaseModel):
    pageNumber: int = Field(description="Index of the page or tab, starting from 0")


class WaitForTextInput(BaseModel):
    text: str = Field(description="Text to wait for")


@tool("Click", args_schema=ClickInput)
async def click(keywords: str, config: RunnableConfig) -> str:
    """Click on an element."""
    session = session_of(config)
    params = await target_params(session, keywords, ALLOWED_TAGS)
    return await perform(session, "click", params)


@tool("GoTo", args_schema=GoToInput)
async def goto(url: str, config: RunnableConfig) -> str:
    """Go to a URL."""
    return await perform(session_of(config), "goto", {"url": url})


@tool("Hover", args_schema=HoverInput)
async def hover(keywords: str, config: RunnableConfig, duration: int = 1000) -> str:
    """Hover over an element."""
    session = session_of(config)
    params = await target_params(session, keywords, ALLOWED_TAGS)
    return await perform(session, "hover", {**params, "duration": duration})


@tool("Input", args_schema=InputInput)
async def input_text(keywords: str, text: str, config: RunnableConfig) -> str:
    """Type text into an input field or textarea."""
    session = session_of(config)
    params = await target_params(session, keywords, INPUT_TAGS)
    return await perform(session, "input", {**params, "text": text})


@tool("PressKeys", args_schema=PressKeysInput)
async def press_keys(keys: str, config: RunnableConfig) -> str:
    """Press a key or key combination."""
    return await perform(session_of(config), "press_keys", {"keys": keys})


@tool("Scroll", args_schema=ScrollInput)
async def scroll(direction: str, config: RunnableConfig) -> str:
    """Scroll the page."""
    return await perform(session_of(config), "scroll", {"direction": direction})


@tool("Select", args_schema=SelectInput)
async def select(keywords: str, option: str, config: RunnableConfig) -> str:
    """Select an option from a select element."""
    session = session_of(config)
    params = await target_params(session, keywords, SELECT_TAGS)
    return await perform(session, "select", {**params, "option": option})


@tool("Sleep", args_schema=SleepInput)
async def sleep(duration: int, config: RunnableConfig) -> str:
    """Wait for a fixed amount of time."""
    return await perform(session_of(config), "sleep", {"duration": duration})


@tool("SwitchFrame", args_schema=SwitchFrameInput)
async def switch_frame(enterFrame: bool, config: RunnableConfig, keywords: str = "") -> str:
    """Enter a frame, or return from a frame to the main page."""
    session = session_of(config)
    page = await session.actuator.ensure_page()
    frames = page.frames
    if not enterFrame or len(frames) < 2:
        return await perform(session, "switch_frame", {})

    described = [json.dumps({"name": f.name, "url": f.url}) for f in frames]
    index = await session.reasoner.get_best_candidate(keywords or session.input, described)
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(frames):
        raise ReasonerMalformedOutput(f"Frame index {index!r} is outside [0, {len(frames)})")
    return await perform(session, "switch_frame", {"frameNumber": index})


@tool("SwitchPage", args_schema=SwitchPageInput)
async def switch_page(pageNumber: int, config: RunnableConfig) -> str:
    """Switch to another page or tab."""
    return await perform(session_of(config), "switch_page", {"pageNumber": pageNumber})


@tool("WaitForText", args_schema=WaitForTextInput)
async def wait_for_text(text: str, config: RunnableConfig) -> str:
    """Wait until a text shows up on the page."""
    return await perform(session_of(config), "wait_for_text", {"text": text})


OPERATION_TOOLS = [
    click,
    goto,
    hover,
    input_text,
    press_keys,
    scroll,
    select,
    sleep,
    switch_frame,
    switch_page,
    wait_for_text,
]
