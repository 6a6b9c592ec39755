"""Remote seller-offers query client.

Queries the marketplace GraphQL endpoint for every offer on a product. Bot
protection answers with HTTP 412 or a redirect to a ``/blocked`` page; after
such a response the client cools down exponentially and reports itself
unavailable until the cooldown ends, without sleeping.
"""

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

import aiohttp

from ..config import OffersApiConfig
from ..exceptions import OfferQueryBlockedError, OfferQueryError
from ..models import OfferSignals
from ..utils import format_delivery_date, random_factor

logger = logging.getLogger(__name__)

IN_STOCK = "IN_STOCK"
PLATFORM_FULFILLMENT_TYPE = "FC"
STOREFRONT_SELLER_TYPE = "INTERNAL"


def is_blocked_response(status: int, body: str) -> bool:
    """Detect a bot-protection response."""
    return status == 412 or ("redirectUrl" in body and "/blocked" in body)


def offer_to_signals(offer: dict[str, Any]) -> OfferSignals:
    """Map one ``allOffers`` entry to offer signals.

    Args:
        offer: Offer object from the GraphQL response.

    Returns:
        OfferSignals for classification.
    """
    price_info = offer.get("priceInfo") or {}
    current_price = price_info.get("currentPrice") or {}
    shipping_option = offer.get("shippingOption") or {}
    fulfillment_type = offer.get("fulfillmentType")
    fulfillment_options = offer.get("fulfillmentOptions") or [{}]

    platform_fulfilled = bool(offer.get("wfsEnabled")) or fulfillment_type == PLATFORM_FULFILLMENT_TYPE
    try:
        quantity = int(fulfillment_options[0].get("availableQuantity") or 0)
    except (AttributeError, TypeError, ValueError):
        quantity = 0

    return OfferSignals(
        seller_name=offer.get("sellerDisplayName") or offer.get("sellerName") or None,
        price=current_price.get("priceString"),
        arrival=format_delivery_date(shipping_option.get("deliveryDate")),
        is_pro_seller=bool(offer.get("hasSellerBadge")),
        platform_fulfilled=platform_fulfilled,
        seller_shipped=not platform_fulfilled and bool(fulfillment_type),
        is_storefront=offer.get("sellerType") == STOREFRONT_SELLER_TYPE,
        available_quantity=max(0, quantity),
    )


class OffersClient:
    """Client for the all-seller-offers GraphQL query."""

    def __init__(
        self,
        config: OffersApiConfig,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the client.

        Args:
            config: Endpoint, headers and cooldown settings.
            session: Shared aiohttp session; a short-lived one is opened per
                query when omitted.
            clock: Monotonic time source in seconds.
        """
        self.config = config
        self.session = session
        self._clock = clock
        self.consecutive_blocks = 0
        self._blocked_until = 0.0

    @property
    def cooling_down(self) -> bool:
        """Whether a bot-protection cooldown is in effect."""
        return self._clock() < self._blocked_until

    def _register_block(self) -> float:
        self.consecutive_blocks += 1
        exponent = min(self.consecutive_blocks, self.config.max_block_exponent)
        cooldown = self.config.block_cooldown * random_factor(1.0, 1.5) * (2**exponent)
        self._blocked_until = self._clock() + cooldown
        return cooldown

    def _build_request(self, product_id: str, referer: str | None) -> tuple[dict[str, str], dict[str, str]]:
        variables = {
            "id": product_id,
            "selected": True,
            "channel": self.config.channel,
            "pageType": self.config.page_type,
        }
        correlation_id = uuid.uuid4().hex[:13]
        headers = {
            "accept": "application/json",
            "accept-language": "en-US",
            "content-type": "application/json",
            "user-agent": self.config.user_agent,
            "x-apollo-operation-name": "GetAllSellerOffers",
            "x-o-gql-query": "query GetAllSellerOffers",
            "x-o-correlation-id": correlation_id,
            "x-o-platform": "rweb",
            "x-o-bu": "WALMART-US",
            "x-o-mart": "B2C",
        }
        if referer:
            headers["referer"] = referer
        params = {"variables": json.dumps(variables, separators=(",", ":"))}
        return headers, params

    async def fetch_offers(self, product_id: str, referer: str | None = None) -> list[OfferSignals]:
        """Fetch in-stock offers for a product.

        Args:
            product_id: Product identity.
            referer: Listing page URL sent as the Referer header.

        Returns:
            Offer signals for in-stock offers, possibly empty.

        Raises:
            OfferQueryBlockedError: On a bot-protection response.
            OfferQueryError: On network failure, non-success status or an
                unexpected response shape.
        """
        if self.session is not None:
            return await self._fetch(self.session, product_id, referer)

        async with aiohttp.ClientSession() as session:
            return await self._fetch(session, product_id, referer)

    async def _fetch(
        self, session: aiohttp.ClientSession, product_id: str, referer: str | None
    ) -> list[OfferSignals]:
        headers, params = self._build_request(product_id, referer)
        try:
            async with session.post(
                self.config.endpoint,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as response:
                status = response.status
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise OfferQueryError(f"Offers query failed for {product_id}: {e}") from e

        if is_blocked_response(status, body):
            cooldown = self._register_block()
            logger.warning(
                f"Offers query blocked by bot protection (status {status}), "
                f"pausing remote queries for {cooldown:.0f}s"
            )
            raise OfferQueryBlockedError("Offers query blocked by bot protection", status=status)

        self.consecutive_blocks = 0

        if status != 200:
            raise OfferQueryError(f"Offers query returned HTTP {status} for {product_id}")

        try:
            data = json.loads(body)
        except ValueError as e:
            raise OfferQueryError(f"Offers query returned invalid JSON: {e}") from e

        payload = data.get("data") if isinstance(data, dict) else None
        product = payload.get("product") if isinstance(payload, dict) else None
        offers = product.get("allOffers") if isinstance(product, dict) else None
        if not isinstance(offers, list):
            raise OfferQueryError("Offers query response has no allOffers list")

        in_stock = [
            offer_to_signals(offer)
            for offer in offers
            if isinstance(offer, dict) and offer.get("availabilityStatus") == IN_STOCK
        ]
        logger.debug(f"Offers query for {product_id}: {len(in_stock)}/{len(offers)} in stock")
        return in_stock
