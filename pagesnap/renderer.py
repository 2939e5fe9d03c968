"""Renderers that turn a URL into settled HTML plus its final base URL."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Tuple

from playwright.async_api import async_playwright

from .config import CloneConfig

logger = logging.getLogger("pagesnap")


class Renderer(Protocol):
    async def render(self, url: str) -> Tuple[str, str]:
        ...


class PlaywrightRenderer:
    """Load the page in headless Chromium and read the DOM once it settles."""

    def __init__(self, config: CloneConfig) -> None:
        self.config = config

    async def render(self, url: str) -> Tuple[str, str]:
        """Navigate to a URL using Playwright and return the HTML and final URL."""
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True)
            page = await browser.new_page(user_agent=self.config.user_agent)
            page.set_default_navigation_timeout(self.config.navigation_timeout * 1000)
            try:
                logger.info("Loading %s", url)
                await page.goto(url, wait_until="networkidle")
                if self.config.wait_after_load:
                    await page.wait_for_timeout(int(self.config.wait_after_load * 1000))
                html = await page.content()
                final_url = page.url
            finally:
                await browser.close()
        return html, final_url


class RequestsRenderer:
    """Fetch the raw HTML without executing scripts."""

    def __init__(self, client) -> None:
        self.client = client

    async def render(self, url: str) -> Tuple[str, str]:
        logger.info("Fetching %s without a browser", url)
        response = await asyncio.to_thread(self.client.get, url)
        return response.text(), response.url


def get_renderer(config: CloneConfig, client) -> Renderer:
    if config.render_js:
        return PlaywrightRenderer(config)
    return RequestsRenderer(client)
