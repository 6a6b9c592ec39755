"""Fulfillment classification of seller offers.

Brand affiliation is checked before raw fulfillment signals, so a brand
selling through platform fulfillment is BrandFulfilled rather than
PlatformFulfilled. The storefront check outranks everything.
"""

import re

from ..models import FulfillmentClass, OfferSignals, SellerOffer
from ..utils import ARRIVAL_SENTINEL, UNKNOWN_SELLER, clean_text, format_price


def _normalize_name(name: str | None) -> str:
    return clean_text(name).lower()


def _contains_phrase(haystack: str, needle: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(needle)}(?!\w)", haystack) is not None


def is_brand_match(brand: str | None, seller_name: str | None) -> bool:
    """Check whether a seller name and a brand refer to the same party.

    Case-insensitive whole-word containment in either direction: "Acme" matches
    "Acme Store" and "Acme Corp Official", but not "Acmeville".
    """
    brand_key = _normalize_name(brand)
    seller_key = _normalize_name(seller_name)
    if not brand_key or not seller_key:
        return False
    return _contains_phrase(seller_key, brand_key) or _contains_phrase(brand_key, seller_key)


def is_storefront(signals: OfferSignals, storefront_name: str) -> bool:
    if signals.is_storefront:
        return True
    return _normalize_name(signals.seller_name) == _normalize_name(storefront_name)


def classify(signals: OfferSignals, brand: str | None, storefront_name: str) -> FulfillmentClass:
    """Assign a fulfillment class, first matching rule wins.

    Args:
        signals: Offer data gathered by a strategy.
        brand: Product brand from the normalized record.
        storefront_name: Seller name of the platform's own storefront.

    Returns:
        The fulfillment class of the offer.
    """
    if is_storefront(signals, storefront_name):
        return FulfillmentClass.WMT

    if is_brand_match(brand, signals.seller_name):
        if signals.platform_fulfilled:
            return FulfillmentClass.BRAND_FULFILLED
        if signals.seller_shipped:
            return FulfillmentClass.BRAND_SELF_FULFILLED
        return FulfillmentClass.BRAND_UNKNOWN

    if signals.platform_fulfilled:
        return FulfillmentClass.PLATFORM_FULFILLED
    if signals.seller_shipped:
        return FulfillmentClass.SELF_FULFILLED
    return FulfillmentClass.UNKNOWN


def to_offer(signals: OfferSignals, brand: str | None, storefront_name: str) -> SellerOffer:
    """Classify ``signals`` and build the SellerOffer with sentinels filled in."""
    return SellerOffer(
        seller_name=clean_text(signals.seller_name) or UNKNOWN_SELLER,
        price=format_price(signals.price),
        fulfillment_class=classify(signals, brand, storefront_name),
        is_pro_seller=signals.is_pro_seller,
        arrival_estimate=clean_text(signals.arrival) or ARRIVAL_SENTINEL,
        available_quantity=max(0, signals.available_quantity),
    )
