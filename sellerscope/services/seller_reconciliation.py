"""Seller reconciliation pipeline.

Resolves the competing sellers of a product through three strategies, each
falling through to the next:

1. REMOTE_QUERY - cached or freshly queried offers from the GraphQL API,
   gated by the seller cache, the rate limiter and the bot-protection cooldown
2. DOM_MULTI - the compare-sellers panel, opened and watched until it settles
3. DOM_SINGLE - the primary seller from the normalized record, with one DOM
   read when the record has no seller name

Listings with exactly one seller go straight to DOM_SINGLE. Every offer is
classified before it is returned. The pipeline never raises and always
returns at least one offer.
"""

import logging
from enum import Enum

from ..config import ReconciliationConfig
from ..models import (
    OfferSignals,
    ProductRecord,
    ReconciliationOutcome,
    SellerOffer,
    SellerStrategy,
)
from ..scrapers.base import PageSource
from ..scrapers.seller_panel import SellerPanelScraper
from ..utils import PRICE_SENTINEL, format_price
from .cache_service import TTLCache
from .classification import to_offer
from .offers_api import OffersClient
from .rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    INIT = "init"
    STRATEGY_SELECT = "strategy_select"
    REMOTE_QUERY = "remote_query"
    DOM_MULTI = "dom_multi"
    DOM_SINGLE = "dom_single"
    CLASSIFY = "classify"
    DONE = "done"


class SellerReconciler:
    """Resolve and classify the seller offers of a product."""

    def __init__(
        self,
        settings: ReconciliationConfig,
        seller_cache: TTLCache[tuple[SellerOffer, ...]],
        rate_limiter: SlidingWindowRateLimiter,
        offers_client: OffersClient,
        panel_scraper: SellerPanelScraper,
    ):
        self.settings = settings
        self.seller_cache = seller_cache
        self.rate_limiter = rate_limiter
        self.offers_client = offers_client
        self.panel_scraper = panel_scraper

    async def reconcile(self, record: ProductRecord, source: PageSource) -> ReconciliationOutcome:
        """Resolve the sellers of ``record``.

        Args:
            record: Normalized product record.
            source: Page the record was acquired from.

        Returns:
            ReconciliationOutcome with at least one classified offer.
        """
        try:
            return await self._run(record, source)
        except Exception as e:
            logger.error(f"Seller reconciliation failed for {record.product_id or '?'}: {e}")
            return ReconciliationOutcome(
                offers=self._classify(record, [self._record_signals(record)]),
                strategy=SellerStrategy.DOM_SINGLE,
            )

    async def _run(self, record: ProductRecord, source: PageSource) -> ReconciliationOutcome:
        state = PipelineState.INIT
        strategy = SellerStrategy.DOM_SINGLE
        signals: list[OfferSignals] = []
        offers: tuple[SellerOffer, ...] = ()

        while state is not PipelineState.DONE:
            logger.debug(f"Reconciliation of {record.product_id or '?'}: {state.value}")

            if state is PipelineState.INIT:
                state = PipelineState.STRATEGY_SELECT

            elif state is PipelineState.STRATEGY_SELECT:
                if record.inventory.total_sellers == 1:
                    state = PipelineState.DOM_SINGLE
                else:
                    state = PipelineState.REMOTE_QUERY

            elif state is PipelineState.REMOTE_QUERY:
                cached = self.seller_cache.get(record.product_id) if record.product_id else None
                if cached:
                    logger.info(f"Using cached offers for product {record.product_id}")
                    return ReconciliationOutcome(
                        offers=cached, strategy=SellerStrategy.REMOTE_QUERY, from_cache=True
                    )
                strategy = SellerStrategy.REMOTE_QUERY
                signals = await self._query_remote(record, source)
                state = self._next(state, signals, PipelineState.DOM_MULTI)

            elif state is PipelineState.DOM_MULTI:
                strategy = SellerStrategy.DOM_MULTI
                signals = await self._scrape_panel(source)
                state = self._next(state, signals, PipelineState.DOM_SINGLE)

            elif state is PipelineState.DOM_SINGLE:
                strategy = SellerStrategy.DOM_SINGLE
                signals = [await self._single_seller(record, source)]
                state = PipelineState.CLASSIFY

            elif state is PipelineState.CLASSIFY:
                offers = self._classify(record, signals)
                if strategy is SellerStrategy.REMOTE_QUERY and record.product_id:
                    self.seller_cache.set(record.product_id, offers)
                state = PipelineState.DONE

        logger.info(
            f"Resolved {len(offers)} offers for product {record.product_id or '?'} "
            f"via {strategy.value}"
        )
        return ReconciliationOutcome(offers=offers, strategy=strategy)

    @staticmethod
    def _next(
        state: PipelineState, signals: list[OfferSignals], fallback: PipelineState
    ) -> PipelineState:
        if signals:
            return PipelineState.CLASSIFY
        logger.info(f"{state.value} produced no offers, falling through to {fallback.value}")
        return fallback

    async def _query_remote(self, record: ProductRecord, source: PageSource) -> list[OfferSignals]:
        """Query the offers API if the limiter and cooldown allow it."""
        if not record.product_id:
            logger.debug("No product identity, skipping remote query")
            return []

        if not self.rate_limiter.can_proceed():
            logger.info("Remote query skipped: rate limit window exhausted")
            return []

        if self.offers_client.cooling_down:
            logger.info("Remote query skipped: bot-protection cooldown in effect")
            return []

        self.rate_limiter.record()
        try:
            return await self.offers_client.fetch_offers(record.product_id, referer=source.url or None)
        except Exception as e:
            logger.warning(f"Remote query failed for {record.product_id}: {e}")
            return []

    async def _scrape_panel(self, source: PageSource) -> list[OfferSignals]:
        try:
            return await self.panel_scraper.collect(source)
        except Exception as e:
            logger.warning(f"Seller panel scrape failed: {e}")
            return []

    @staticmethod
    def _record_signals(record: ProductRecord) -> OfferSignals:
        return OfferSignals(
            seller_name=record.primary_seller or None,
            price=format_price(record.current_price),
            is_storefront=record.seller_type == "INTERNAL",
        )

    async def _single_seller(self, record: ProductRecord, source: PageSource) -> OfferSignals:
        """Build the single offer from the record, reading the page only if needed."""
        signals = self._record_signals(record)
        if signals.seller_name:
            return signals

        try:
            dom_signals = await self.panel_scraper.read_single(source)
        except Exception as e:
            logger.warning(f"Single seller read failed: {e}")
            dom_signals = None

        if dom_signals is None:
            logger.info("No seller information found, using sentinel offer")
            return signals

        if signals.price != PRICE_SENTINEL:
            dom_signals = dom_signals.model_copy(update={"price": signals.price})
        return dom_signals

    def _classify(
        self, record: ProductRecord, signals: list[OfferSignals]
    ) -> tuple[SellerOffer, ...]:
        storefront = self.settings.storefront_name
        return tuple(to_offer(item, record.brand, storefront) for item in signals)
