"""Seller panel scraping.

Opens the "compare all sellers" panel, watches it until its rows settle and
parses one offer per row. Also reads the single on-page seller block used
when a listing has only one seller.

Key features:
- Idempotent panel trigger (no click when the panel is already open)
- Bounded polling for the panel to appear
- Debounced mutation watch with a hard timeout that closes the panel
- Per-field selector fallbacks loaded from configuration
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from bs4 import BeautifulSoup, Tag

from ..config import ReconciliationConfig, SelectorConfig
from ..models import OfferSignals
from ..utils import format_price
from .base import PageSource
from .fields import (
    FieldExtractor,
    FieldSpec,
    attr,
    closest_text,
    first_match,
    own_text,
    text_of,
    value_of,
    within,
)
from .mutation_watch import DebouncedWatch

logger = logging.getLogger(__name__)

SOLD_BY_PREFIX = re.compile(r"^\s*sold\s+and\s+shipped\s+by\s+", re.IGNORECASE)
SELLER_TESTID = re.compile(r"seller", re.IGNORECASE)
ARRIVES_RE = re.compile(r"arrives\s+(\w+(?:\s+\d{1,2}\b)?)", re.IGNORECASE)

PLATFORM_FULFILLED_PHRASE = "fulfilled by walmart"
SELLER_SHIPPED_PHRASE = "sold and shipped by"


def _is_seller_name(candidate: str) -> bool:
    lowered = candidate.lower()
    return "sold" not in lowered and "shipped" not in lowered


def build_offer_extractor(selectors: SelectorConfig) -> FieldExtractor:
    """Build the field extractor for seller rows.

    Args:
        selectors: Selector fallback lists.

    Returns:
        FieldExtractor with ``seller_name`` and ``price`` fields.
    """
    info = selectors.seller_info
    name_strategies = [
        within(info, attr("aria-label", strip_prefix=SOLD_BY_PREFIX)),
        within(info, text_of("a[data-testid='seller-name-link']")),
        within(info, own_text()),
        within(info, text_of("[data-testid='seller-name']")),
        within(info, text_of("[data-testid='seller-display-name']")),
        within(info, closest_text(SELLER_TESTID, strip_prefix=SOLD_BY_PREFIX)),
    ]
    return FieldExtractor(
        {
            "seller_name": FieldSpec(name_strategies, accept=_is_seller_name),
            "price": FieldSpec([value_of(selector) for selector in selectors.price]),
        }
    )


def extract_delivery(row: Tag, selectors: Sequence[str]) -> str | None:
    """Read the delivery estimate of a row.

    The first option mentioning "arrives" wins and is reduced to the date
    words that follow; otherwise the first option's text is used.
    """
    if not selectors:
        return None
    options = row.select(", ".join(selectors))
    if not options:
        return None

    for option in options:
        text = option.get_text(" ", strip=True)
        if "arrives" in text.lower():
            match = ARRIVES_RE.search(text)
            return match.group(1) if match else text

    return options[0].get_text(" ", strip=True) or None


def _mentions(row: Tag, phrase: str) -> bool:
    if phrase in row.get_text(" ", strip=True).lower():
        return True
    for element in row.find_all(attrs={"aria-label": True}):
        label = element.get("aria-label")
        if isinstance(label, str) and phrase in label.lower():
            return True
    return False


class SellerPanelScraper:
    """Scrape seller offers from the compare-sellers panel."""

    def __init__(
        self,
        selectors: SelectorConfig,
        settings: ReconciliationConfig,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.selectors = selectors
        self.settings = settings
        self._sleep = sleep
        self._extractor = build_offer_extractor(selectors)
        self.logger = logging.getLogger(f"{__name__}.panel")

    def parse_row(self, row: Tag) -> OfferSignals | None:
        """Parse one seller row.

        Args:
            row: Row element (or a document containing the seller block).

        Returns:
            OfferSignals, or None when no seller name can be found.
        """
        fields = self._extractor.extract(row)
        name = fields["seller_name"]
        if not name:
            self.logger.debug("Skipping seller row without a seller name")
            return None

        platform_fulfilled = _mentions(row, PLATFORM_FULFILLED_PHRASE) or (
            first_match(row, self.selectors.wfs_indicator) is not None
        )
        return OfferSignals(
            seller_name=name,
            price=format_price(fields["price"]),
            arrival=extract_delivery(row, self.selectors.delivery),
            is_pro_seller=first_match(row, self.selectors.pro_badge) is not None,
            platform_fulfilled=platform_fulfilled,
            seller_shipped=not platform_fulfilled and _mentions(row, SELLER_SHIPPED_PHRASE),
        )

    def parse_panel(self, html: str) -> list[OfferSignals]:
        """Parse every seller row in the panel markup.

        Row selectors are tried in order and the first one matching any rows
        is used. When no row selector matches, each seller info block in the
        panel is treated as a row.
        """
        soup = BeautifulSoup(html, "lxml")

        rows: list[Tag] = []
        for selector in self.selectors.seller_row:
            rows = soup.select(selector)
            if rows:
                break

        if not rows:
            for selector in self.selectors.seller_info:
                blocks = soup.select(selector)
                if blocks:
                    rows = [BeautifulSoup(str(block), "lxml") for block in blocks]
                    break

        offers = [offer for offer in (self.parse_row(row) for row in rows) if offer is not None]
        self.logger.debug(f"Parsed {len(offers)} offers from {len(rows)} panel rows")
        return offers

    async def read_offers(self, source: PageSource) -> list[OfferSignals]:
        """Parse the panel as it currently is on the page."""
        html = await source.query_html(self.selectors.panel_wrapper)
        if not html:
            return []
        return self.parse_panel(html)

    async def open_panel(self, source: PageSource) -> bool:
        """Reveal the seller panel and wait for it to appear.

        The trigger is skipped when the panel is already open.

        Returns:
            True if the panel is present on the page.
        """
        if await source.exists(self.selectors.panel_wrapper):
            self.logger.debug("Seller panel already open, skipping trigger")
            return True

        clicked = await source.click(self.selectors.compare_button)
        if not clicked:
            self.logger.info("Compare-sellers control not available")
            if not source.interactive:
                return False

        for attempt in range(self.settings.panel_poll_attempts):
            await self._sleep(self.settings.panel_poll_interval)
            if await source.exists(self.selectors.panel_wrapper):
                self.logger.debug(f"Seller panel appeared after {attempt + 1} checks")
                return True

        self.logger.warning(
            f"Seller panel not found after {self.settings.panel_poll_attempts} checks"
        )
        return False

    async def collect(self, source: PageSource) -> list[OfferSignals]:
        """Open the panel and return the offers once its rows settle.

        Returns:
            Offers read from the panel, empty when the panel never appears
            or holds no rows by the hard timeout.
        """
        if not await self.open_panel(source):
            return []

        async def close_panel() -> None:
            await source.dismiss(self.selectors.close_button)

        watch: DebouncedWatch[OfferSignals] = DebouncedWatch(
            extract=lambda: self.read_offers(source),
            debounce_delay=self.settings.debounce_delay,
            hard_timeout=self.settings.hard_timeout,
            on_timeout=close_panel,
        )
        result = await watch.run(
            lambda callback: source.observe(self.selectors.panel_wrapper, callback)
        )

        self.logger.info(
            f"Seller panel watch finished: {len(result.rows)} offers, "
            f"{watch.mutation_count} mutations, {result.extractions} extractions"
            + (" (timed out)" if result.timed_out else "")
        )
        return result.rows

    async def read_single(self, source: PageSource) -> OfferSignals | None:
        """Read the on-page seller block of a single-seller listing."""
        html = await source.query_html(self.selectors.seller_info)
        if not html:
            return None
        return self.parse_row(BeautifulSoup(html, "lxml"))
