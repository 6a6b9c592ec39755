"""Page access abstraction for listing pages.

Defines the protocol every page source implements so the pipeline can run
against a live browser page or a static HTML snapshot without knowing
which one it has.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, runtime_checkable

MutationCallback = Callable[[], None]
Disconnect = Callable[[], Awaitable[None]]


@runtime_checkable
class PageSource(Protocol):
    """Protocol for page sources.

    Selector arguments are ordered fallback lists: implementations try each
    selector in turn and use the first match.
    """

    url: str
    interactive: bool

    async def query_text(self, selectors: Sequence[str]) -> str | None:
        """Return the first non-empty text content among the selectors."""
        ...

    async def query_html(self, selectors: Sequence[str]) -> str | None:
        """Return the outer HTML of the first matching element."""
        ...

    async def exists(self, selectors: Sequence[str]) -> bool:
        """Check whether any selector matches."""
        ...

    async def click(self, selectors: Sequence[str]) -> bool:
        """Click the first matching element, returning whether a click happened."""
        ...

    async def observe(self, selectors: Sequence[str], callback: MutationCallback) -> Disconnect:
        """Call ``callback`` on every DOM mutation under the first match."""
        ...

    async def dismiss(self, selectors: Sequence[str]) -> None:
        """Close the open panel using the first matching close control."""
        ...


class BasePageSource:
    """Shared state for page source implementations."""

    interactive = False

    def __init__(self, url: str, source_name: str):
        """Initialize the page source.

        Args:
            url: URL the page was loaded from.
            source_name: Short name used for the logger.
        """
        self.url = url
        self.source_name = source_name
        self.logger = logging.getLogger(f"{__name__}.{source_name}")
