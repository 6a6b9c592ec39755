"""Formatting and parsing helpers shared across the pipeline."""

import re
from datetime import datetime
from secrets import randbelow

PRICE_SENTINEL = "N/A"
ARRIVAL_SENTINEL = "N/A"
UNKNOWN_SELLER = "Unknown Seller"

_PRICE_RE = re.compile(r"\d[\d,]*(?:\.\d+)?|\.\d+")
_ITEM_ID_RE = re.compile(r"/ip/(?:[^/?#]+/)?(\d+)")


def format_price(price: str | float | int | None) -> str:
    """Format a price value as ``$<amount>``.

    Args:
        price: Raw price text ("$1,299.00", "Now $12.99") or a number.

    Returns:
        Formatted price, or "N/A" when no amount can be found.
    """
    if price is None or isinstance(price, bool):
        return PRICE_SENTINEL

    if isinstance(price, int | float):
        return f"${price:.2f}" if price > 0 else PRICE_SENTINEL

    match = _PRICE_RE.search(price)
    if not match:
        return PRICE_SENTINEL
    amount = match.group(0).replace(",", "")
    if float(amount) <= 0:
        return PRICE_SENTINEL
    return f"${amount}"


def format_delivery_date(value: str | None) -> str | None:
    """Format an ISO delivery date as "Mon D".

    Args:
        value: ISO 8601 date or timestamp.

    Returns:
        Short month and day ("May 3"), or None if the value cannot be parsed.
    """
    if not value:
        return None
    try:
        date = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    return f"{date:%b} {date.day}"


def product_id_from_url(url: str | None) -> str | None:
    """Extract the item id from a product page URL.

    Args:
        url: Product page URL such as ``https://www.walmart.com/ip/slug/123``.

    Returns:
        Item id string, or None if the URL is not a product page.
    """
    if not url:
        return None
    match = _ITEM_ID_RE.search(url)
    return match.group(1) if match else None


def clean_text(text: str | None) -> str:
    """Collapse whitespace and strip."""
    if not text:
        return ""
    return " ".join(text.split())


def random_factor(min_factor: float, max_factor: float) -> float:
    """Pick a multiplier between bounds with millisecond granularity."""
    span = int((max_factor - min_factor) * 1000)
    return min_factor + randbelow(span + 1) / 1000
