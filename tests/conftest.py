"""Shared test fixtures.

Provides a controllable clock, a scripted in-memory page source that can
open a seller panel and replay DOM mutations, and builders for embedded
payloads and listing pages. No network or browser is used.
"""

import asyncio
import json
from collections.abc import Sequence
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from sellerscope.config import AcquisitionConfig, ReconciliationConfig, SelectorConfig
from sellerscope.scrapers.html_source import HtmlPageSource
from sellerscope.scrapers.seller_panel import SellerPanelScraper
from sellerscope.services.cache_service import CacheConfig, TTLCache
from sellerscope.services.rate_limiter import SlidingWindowRateLimiter
from sellerscope.services.seller_reconciliation import SellerReconciler

PRODUCT_URL = "https://www.walmart.com/ip/acme-widget/123456789"
PANEL_SELECTOR = "div[data-testid='ip-more-sellers-panel-offers-div-wrapper']"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_product(**overrides: Any) -> dict[str, Any]:
    product: dict[str, Any] = {
        "usItemId": "123456789",
        "name": "Acme Cordless Drill",
        "brand": "Acme",
        "brandUrl": "/brand/acme",
        "model": "AD-200",
        "upc": "012345678905",
        "priceInfo": {"currentPrice": {"price": 49.99, "priceString": "$49.99"}},
        "category": {
            "path": [
                {"name": "Home Improvement", "url": "/cp/home-improvement/1072864"},
                {"name": "Power Tools", "url": "/cp/power-tools/1031899"},
            ]
        },
        "imageInfo": {
            "thumbnailUrl": "https://i5.walmartimages.com/asr/thumb.jpeg",
            "allImages": [
                {"url": "https://i5.walmartimages.com/asr/front.jpeg"},
                {"url": "https://i5.walmartimages.com/asr/side.jpeg"},
            ],
        },
        "fulfillmentOptions": [
            {"type": "SHIPPING", "availableQuantity": 12},
            {"type": "PICKUP", "availableQuantity": 3},
        ],
        "additionalOfferCount": 2,
        "buyBoxSuppression": False,
        "badges": {"flags": [{"text": "Best seller"}, {"text": "Rollback"}]},
        "sellerName": "Walmart.com",
        "sellerDisplayName": "Walmart.com",
        "sellerType": "INTERNAL",
        "averageRating": 4.1,
        "variantCriteria": [{"name": "Color"}],
        "variantsMap": {"red": {"usItemId": "111"}, "blue": {"usItemId": "222"}},
    }
    product.update(overrides)
    return product


def build_idml(**overrides: Any) -> dict[str, Any]:
    idml: dict[str, Any] = {
        "specifications": [
            {"name": "Brand", "value": "Acme"},
            {"name": "Assembled Product Dimensions (L x W x H)", "value": "10.00 x 8.50 x 3.00 Inches"},
            {"name": "Assembled Product Weight", "value": "12 oz"},
        ],
        "videos": [{"title": "Drill demo", "versions": {"large": "https://example.com/v.mp4"}}],
    }
    idml.update(overrides)
    return idml


def build_reviews(**overrides: Any) -> dict[str, Any]:
    reviews: dict[str, Any] = {
        "totalReviewCount": 42,
        "reviewsWithTextCount": 30,
        "roundedAverageOverallRating": 4.3,
        "customerReviews": [
            {"reviewSubmissionTime": "3/10/2024"},
            {"reviewSubmissionTime": "3/25/2024"},
            {"reviewSubmissionTime": "1/2/2024"},
        ],
    }
    reviews.update(overrides)
    return reviews


def build_document(product: dict[str, Any] | None = None, idml: Any = None, reviews: Any = None) -> dict[str, Any]:
    data = {
        "product": build_product() if product is None else product,
        "idml": build_idml() if idml is None else idml,
        "reviews": build_reviews() if reviews is None else reviews,
    }
    return {"props": {"pageProps": {"initialData": {"data": data}}}}


def build_page(document: dict[str, Any] | None = None, body: str = "") -> str:
    payload = json.dumps(build_document() if document is None else document)
    return (
        "<html><head>"
        f'<script id="__NEXT_DATA__" type="application/json">{payload}</script>'
        f"</head><body>{body}</body></html>"
    )


def seller_row(
    name: str,
    price: str = "$49.99",
    arrival: str = "Arrives May 3",
    extra: str = "",
) -> str:
    return (
        '<div data-testid="allSellersOfferLine">'
        f'<span itemprop="price" content="{price.lstrip("$")}">{price}</span>'
        f'<span data-testid="product-seller-info" aria-label="Sold and shipped by {name}">'
        f'Sold and shipped by <a data-testid="seller-name-link">{name}</a></span>'
        f'<div data-testid="shipping-delivery-date">{arrival}</div>'
        f"{extra}"
        "</div>"
    )


def panel(*rows: str) -> str:
    return f'<div data-testid="ip-more-sellers-panel-offers-div-wrapper">{"".join(rows)}</div>'


COMPARE_BUTTON = '<button aria-label="Compare all sellers">Compare all sellers</button>'


class FakePageSource:
    """Interactive page source with a scripted seller panel.

    Clicking the compare-sellers control opens ``panel_on_click``. Once an
    observer is attached, each entry of ``mutations`` replaces the panel
    markup after ``mutation_interval`` seconds and notifies the observer.
    """

    interactive = True

    def __init__(
        self,
        page_html: str,
        url: str = PRODUCT_URL,
        panel_html: str | None = None,
        panel_on_click: str | None = None,
        mutations: Sequence[str] = (),
        mutation_interval: float = 0.005,
    ):
        self.url = url
        self.page_html = page_html
        self.panel_html = panel_html
        self.panel_on_click = panel_on_click
        self.mutations = list(mutations)
        self.mutation_interval = mutation_interval

        self.click_count = 0
        self.dismiss_count = 0
        self.disconnect_count = 0
        self.panel_reads = 0
        self._player: asyncio.Task[None] | None = None

    def _document(self) -> HtmlPageSource:
        html = self.page_html
        if self.panel_html is not None:
            html = html.replace("</body>", f"{self.panel_html}</body>")
        return HtmlPageSource(html, url=self.url)

    async def query_text(self, selectors: Sequence[str]) -> str | None:
        return await self._document().query_text(selectors)

    async def query_html(self, selectors: Sequence[str]) -> str | None:
        if PANEL_SELECTOR in selectors:
            self.panel_reads += 1
        return await self._document().query_html(selectors)

    async def exists(self, selectors: Sequence[str]) -> bool:
        return await self._document().exists(selectors)

    async def click(self, selectors: Sequence[str]) -> bool:
        if not await self._document().exists(selectors):
            return False
        self.click_count += 1
        if self.panel_on_click is not None:
            self.panel_html = self.panel_on_click
        return True

    async def observe(self, selectors: Sequence[str], callback):
        async def play() -> None:
            for state in self.mutations:
                await asyncio.sleep(self.mutation_interval)
                self.panel_html = state
                callback()

        if self.mutations:
            self._player = asyncio.create_task(play())

        async def disconnect() -> None:
            self.disconnect_count += 1
            if self._player is not None:
                self._player.cancel()

        return disconnect

    async def dismiss(self, selectors: Sequence[str]) -> None:
        self.dismiss_count += 1
        self.panel_html = None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fast_settings() -> ReconciliationConfig:
    """Reconciliation settings with timings short enough for tests."""
    return ReconciliationConfig(
        debounce_delay=0.05,
        hard_timeout=0.3,
        panel_poll_attempts=3,
        panel_poll_interval=0.01,
    )


@pytest.fixture
def acquisition_settings() -> AcquisitionConfig:
    return AcquisitionConfig(max_retries=3, retry_delay=0.0)


@pytest.fixture
def selectors() -> SelectorConfig:
    return SelectorConfig()


@pytest.fixture
def offers_client() -> MagicMock:
    client = MagicMock()
    client.cooling_down = False
    client.fetch_offers = AsyncMock(return_value=[])
    return client


@pytest.fixture
def make_reconciler(clock, fast_settings, selectors, offers_client):
    """Factory building a reconciler around shared fakes."""

    def factory(
        settings: ReconciliationConfig | None = None,
        client: Any = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
    ) -> SellerReconciler:
        settings = settings or fast_settings
        return SellerReconciler(
            settings=settings,
            seller_cache=TTLCache(CacheConfig(name="seller", ttl=settings.seller_cache_ttl), clock=clock),
            rate_limiter=rate_limiter
            or SlidingWindowRateLimiter(settings.rate_limit_max, settings.rate_limit_window, clock=clock),
            offers_client=client or offers_client,
            panel_scraper=SellerPanelScraper(selectors, settings),
        )

    return factory


class ListingKit:
    """Builders for listing pages and payloads."""

    url = PRODUCT_URL
    panel_selector = PANEL_SELECTOR
    compare_button = COMPARE_BUTTON
    product = staticmethod(build_product)
    idml = staticmethod(build_idml)
    reviews = staticmethod(build_reviews)
    document = staticmethod(build_document)
    page = staticmethod(build_page)
    row = staticmethod(seller_row)
    panel = staticmethod(panel)
    source = FakePageSource


@pytest.fixture
def listing() -> ListingKit:
    return ListingKit()
