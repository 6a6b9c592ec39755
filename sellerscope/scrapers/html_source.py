"""Static HTML page source.

Wraps a fetched or saved listing page in BeautifulSoup. The snapshot cannot
be interacted with: clicks never happen and no mutations are observed, so
the seller panel is only read when it was already present in the markup.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

import aiohttp
from bs4 import BeautifulSoup, Tag

from .base import BasePageSource, Disconnect, MutationCallback

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def element_text(element: Tag) -> str:
    """Return an element's text, including raw script contents."""
    if element.string is not None:
        return str(element.string).strip()
    return element.get_text(" ", strip=True)


class HtmlPageSource(BasePageSource):
    """Read-only page source backed by a BeautifulSoup document."""

    interactive = False

    def __init__(self, html: str, url: str = ""):
        super().__init__(url, "html")
        self.soup = BeautifulSoup(html, "lxml")

    def _first(self, selectors: Sequence[str]) -> Tag | None:
        for selector in selectors:
            element = self.soup.select_one(selector)
            if element is not None:
                return element
        return None

    async def query_text(self, selectors: Sequence[str]) -> str | None:
        for selector in selectors:
            for element in self.soup.select(selector):
                text = element_text(element)
                if text:
                    return text
        return None

    async def query_html(self, selectors: Sequence[str]) -> str | None:
        element = self._first(selectors)
        return str(element) if element is not None else None

    async def exists(self, selectors: Sequence[str]) -> bool:
        return self._first(selectors) is not None

    async def click(self, selectors: Sequence[str]) -> bool:
        self.logger.debug("Static page source ignores clicks")
        return False

    async def observe(self, selectors: Sequence[str], callback: MutationCallback) -> Disconnect:
        async def disconnect() -> None:
            return None

        return disconnect

    async def dismiss(self, selectors: Sequence[str]) -> None:
        return None

    @classmethod
    def from_file(cls, path: Path, url: str = "") -> "HtmlPageSource":
        """Load a saved listing page from disk."""
        return cls(path.read_text(encoding="utf-8"), url=url or path.as_uri())


async def fetch_page_source(
    url: str, session: aiohttp.ClientSession, timeout: float = 20.0
) -> HtmlPageSource:
    """Fetch a listing page over HTTP into a static page source.

    Args:
        url: Listing page URL.
        session: aiohttp session for the request.
        timeout: Total request timeout in seconds.

    Returns:
        HtmlPageSource for the fetched document.

    Raises:
        aiohttp.ClientError: On network failure or non-success status.
    """
    logger.debug(f"Fetching listing page: {url}")
    async with session.get(
        url, headers=DEFAULT_HEADERS, timeout=aiohttp.ClientTimeout(total=timeout)
    ) as response:
        response.raise_for_status()
        html = await response.text()
    return HtmlPageSource(html, url=str(url))
