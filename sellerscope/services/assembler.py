"""Result assembly.

Combines the normalized product record with its classified offers into the
final ListingResult. The offer list is never empty and the buy-box seller,
when present among the offers, comes first.
"""

import logging

from ..models import ListingResult, ProductRecord, ReconciliationOutcome, SellerOffer
from ..utils import clean_text

logger = logging.getLogger(__name__)


def order_offers(record: ProductRecord, offers: tuple[SellerOffer, ...]) -> tuple[SellerOffer, ...]:
    """Move the offer from the record's primary seller to the front.

    Args:
        record: Normalized product record.
        offers: Classified offers in strategy order.

    Returns:
        Offers with the primary seller first, otherwise unchanged order.
    """
    primary = clean_text(record.primary_seller).lower()
    if not primary:
        return offers

    for index, offer in enumerate(offers):
        if offer.seller_name.lower() == primary:
            if index == 0:
                return offers
            return (offer, *offers[:index], *offers[index + 1 :])
    return offers


def assemble(record: ProductRecord, outcome: ReconciliationOutcome) -> ListingResult:
    """Build the final listing result.

    Args:
        record: Normalized product record.
        outcome: Seller reconciliation outcome.

    Returns:
        ListingResult with at least one offer.
    """
    offers = outcome.offers or (SellerOffer(),)
    result = ListingResult(
        product=record,
        offers=order_offers(record, offers),
        strategy=outcome.strategy,
    )
    logger.debug(
        f"Assembled product {record.product_id or '?'}: {result.seller_count} sellers, "
        f"storefront_sells={result.storefront_sells}, brand_sells={result.brand_sells}"
    )
    return result
