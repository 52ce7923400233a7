"""Tools that read information from the page."""

from langchain_core.runnables import RunnableConfig
from langchain_core.tools import tool
from pydantic import BaseModel, Field

from .common import perform, session_of, target_params
from ..core.config import ALLOWED_TAGS


class GetTextInput(BaseModel):
    keywords: str = Field(description="Words from the user input that describe the element to read")


class GetAttributeInput(BaseModel):
    keywords: str = Field(description="Words from the user input that describe the element to read")
    attribute: str = Field(description="Name of the attribute, e.g. href or value")


class AnalyzeScreenshotInput(BaseModel):
    pass


@tool("GetText", args_schema=GetTextInput)
async def get_text(keywords: str, config: RunnableConfig) -> str:
    """Read the text of an element."""
    session = session_of(config)
    params = await target_params(session, keywords, ALLOWED_TAGS)
    return await perform(session, "get_text", params)


@tool("GetAttribute", args_schema=GetAttributeInput)
async def get_attribute(keywords: str, attribute: str, config: RunnableConfig) -> str:
    """Read an attribute value of an element."""
    session = session_of(config)
    params = await target_params(session, keywords, ALLOWED_TAGS)
    return await perform(session, "get_attribute", {**params, "attribute": attribute})


@tool("AnalyzeScreenshot", args_schema=AnalyzeScreenshotInput)
async def analyze_screenshot(config: RunnableConfig) -> str:
    """Answer the user input from a screenshot of the current page."""
    session = session_of(config)
    return await perform(session, "analyze_screenshot", {"input": session.input})


QUERY_TOOLS = [get_text, get_attribute, analyze_screenshot]
