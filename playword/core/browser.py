from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import BrowserContext, async_playwright

from .config import SessionConfig


@asynccontextmanager
async def open_context(config: SessionConfig) -> AsyncIterator[BrowserContext]:
    """Launch the configured browser and yield a fresh context."""
    async with async_playwright() as p:
        browser = await getattr(p, config.browser).launch(headless=config.headless)
        context = await browser.new_context()
        try:
            yield context
        finally:
            await context.close()
            await browser.close()
