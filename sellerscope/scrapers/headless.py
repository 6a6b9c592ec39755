"""Headless browser page source.

This module provides a Playwright-backed page source for listing pages whose
seller panel only appears after user interaction. The seller panel is opened
by clicking the real control and observed with a browser-side
MutationObserver that reports back through an exposed binding.

Key features:
- Playwright Chromium lifecycle as an async context manager
- Blocking of heavy media and tracking requests
- Selector fallback loops over live elements
- Mutation observation bridged into asyncio callbacks
"""

import itertools
import logging
from collections.abc import Sequence
from typing import Any

from playwright.async_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Page,
    Playwright,
    Route,
    async_playwright,
)

from ..config import BrowserConfig
from .base import BasePageSource, Disconnect, MutationCallback

logger = logging.getLogger(__name__)

BINDING_NAME = "__sellerscopeMutation"

BLOCKED_DOMAINS = [
    "google-analytics",
    "googletagmanager",
    "facebook",
    "doubleclick",
    "adsystem",
    "pinterest",
]

OBSERVE_SCRIPT = """
([selectors, token, binding]) => {
    const target = selectors.map((s) => document.querySelector(s)).find(Boolean);
    if (!target) {
        return false;
    }
    const observer = new MutationObserver(() => window[binding](token));
    observer.observe(target, { childList: true, subtree: true, characterData: true, attributes: true });
    window.__sellerscopeObservers = window.__sellerscopeObservers || {};
    window.__sellerscopeObservers[token] = observer;
    return true;
}
"""

DISCONNECT_SCRIPT = """
(token) => {
    const observers = window.__sellerscopeObservers || {};
    if (observers[token]) {
        observers[token].disconnect();
        delete observers[token];
    }
}
"""


class BrowserPageSource(BasePageSource):
    """Page source backed by a live Playwright page."""

    interactive = True

    def __init__(self, page: Page):
        super().__init__(page.url, "browser")
        self.page = page
        self._callbacks: dict[int, MutationCallback] = {}
        self._tokens = itertools.count(1)
        self._binding_ready = False

    async def _first(self, selectors: Sequence[str]) -> ElementHandle | None:
        for selector in selectors:
            try:
                element = await self.page.query_selector(selector)
            except Exception as e:
                self.logger.debug(f"Selector {selector} failed: {e}")
                continue
            if element is not None:
                return element
        return None

    async def query_text(self, selectors: Sequence[str]) -> str | None:
        for selector in selectors:
            for element in await self.page.query_selector_all(selector):
                text = await element.text_content()
                if text and text.strip():
                    return text.strip()
        return None

    async def query_html(self, selectors: Sequence[str]) -> str | None:
        element = await self._first(selectors)
        if element is None:
            return None
        return await element.evaluate("(e) => e.outerHTML")

    async def exists(self, selectors: Sequence[str]) -> bool:
        return await self._first(selectors) is not None

    async def click(self, selectors: Sequence[str]) -> bool:
        for selector in selectors:
            element = await self.page.query_selector(selector)
            if element is None:
                continue
            try:
                await element.click(timeout=3000)
                self.logger.debug(f"Clicked {selector}")
                return True
            except Exception as e:
                self.logger.warning(f"Click on {selector} failed: {e}")
        return False

    def _dispatch(self, token: int) -> None:
        callback = self._callbacks.get(token)
        if callback is not None:
            callback()

    async def observe(self, selectors: Sequence[str], callback: MutationCallback) -> Disconnect:
        if not self._binding_ready:
            await self.page.expose_function(BINDING_NAME, self._dispatch)
            self._binding_ready = True

        token = next(self._tokens)
        self._callbacks[token] = callback
        attached = await self.page.evaluate(OBSERVE_SCRIPT, [list(selectors), token, BINDING_NAME])
        if not attached:
            self.logger.debug("Observer target disappeared before attaching")

        async def disconnect() -> None:
            self._callbacks.pop(token, None)
            if not self.page.is_closed():
                await self.page.evaluate(DISCONNECT_SCRIPT, token)

        return disconnect

    async def dismiss(self, selectors: Sequence[str]) -> None:
        if await self.click(selectors):
            return
        await self.page.keyboard.press("Escape")


class HeadlessBrowser:
    """Headless browser manager for interactive listing pages."""

    def __init__(self, config: BrowserConfig | None = None) -> None:
        self.config = config or BrowserConfig()
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.playwright: Playwright | None = None

    async def __aenter__(self) -> "HeadlessBrowser":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.stop()

    async def start(self) -> None:
        """Start the headless browser."""
        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(
                headless=self.config.headless,
                args=[
                    "--no-sandbox",
                    "--disable-setuid-sandbox",
                    "--disable-dev-shm-usage",
                    "--no-first-run",
                    "--no-default-browser-check",
                    "--disable-blink-features=AutomationControlled",
                ],
            )
            self.context = await self.browser.new_context(
                user_agent=(
                    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
                ),
                viewport={"width": 1366, "height": 768},
                locale="en-US",
                timezone_id="America/New_York",
            )
            await self.context.route("**/*", self._route_handler)
            logger.info("Headless browser started successfully")

        except Exception as e:
            logger.error(f"Failed to start headless browser: {e}")
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the headless browser and cleanup resources."""
        try:
            if self.context:
                await self.context.close()
                self.context = None

            if self.browser:
                await self.browser.close()
                self.browser = None

            if self.playwright:
                await self.playwright.stop()
                self.playwright = None

            logger.debug("Headless browser stopped and cleaned up")

        except Exception as e:
            logger.warning(f"Error during browser cleanup: {e}")

    async def _route_handler(self, route: Route) -> None:
        """Block media and tracking requests to speed up page loading."""
        request = route.request
        if request.resource_type in ["image", "media", "font"]:
            await route.abort()
        elif any(domain in request.url for domain in BLOCKED_DOMAINS):
            await route.abort()
        else:
            await route.continue_()

    async def open(self, url: str) -> BrowserPageSource:
        """Navigate a new page to ``url``.

        Args:
            url: Listing page URL.

        Returns:
            BrowserPageSource for the loaded page.
        """
        if self.context is None:
            raise RuntimeError("Browser not started. Call start() first.")

        page = await self.context.new_page()
        logger.debug(f"Loading page with headless browser: {url}")
        await page.goto(url, wait_until="domcontentloaded", timeout=self.config.navigation_timeout)
        return BrowserPageSource(page)
