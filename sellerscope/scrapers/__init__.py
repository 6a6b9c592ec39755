"""Page access and DOM scraping for listing pages."""

from .base import PageSource
from .html_source import HtmlPageSource

__all__ = ["PageSource", "HtmlPageSource"]
