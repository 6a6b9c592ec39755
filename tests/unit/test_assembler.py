"""Tests for listing result assembly."""

from sellerscope.models import (
    FulfillmentClass,
    ProductRecord,
    ReconciliationOutcome,
    SellerOffer,
    SellerStrategy,
)
from sellerscope.services.assembler import assemble, order_offers


def _offer(name: str, fulfillment: FulfillmentClass = FulfillmentClass.UNKNOWN) -> SellerOffer:
    return SellerOffer(seller_name=name, price="$10.00", fulfillment_class=fulfillment)


class TestOrderOffers:
    def test_primary_seller_moves_first(self) -> None:
        record = ProductRecord(seller_display_name="Acme Store")
        offers = (_offer("Gadget Hub"), _offer("Budget Deals"), _offer("acme store"))

        ordered = order_offers(record, offers)

        assert [o.seller_name for o in ordered] == ["acme store", "Gadget Hub", "Budget Deals"]

    def test_falls_back_to_seller_name(self) -> None:
        record = ProductRecord(seller_name="Budget Deals")
        offers = (_offer("Gadget Hub"), _offer("Budget Deals"))

        assert order_offers(record, offers)[0].seller_name == "Budget Deals"

    def test_unknown_primary_keeps_order(self) -> None:
        record = ProductRecord(seller_name="Nobody")
        offers = (_offer("Gadget Hub"), _offer("Budget Deals"))

        assert order_offers(record, offers) == offers

    def test_no_primary_keeps_order(self) -> None:
        offers = (_offer("Gadget Hub"), _offer("Budget Deals"))

        assert order_offers(ProductRecord(), offers) == offers


class TestAssemble:
    def test_empty_outcome_yields_placeholder_offer(self) -> None:
        outcome = ReconciliationOutcome(offers=(), strategy=SellerStrategy.DOM_SINGLE)

        result = assemble(ProductRecord(), outcome)

        assert result.seller_count == 1
        assert result.main_offer.seller_name == "Unknown Seller"
        assert result.main_offer.price == "N/A"
        assert result.main_offer.arrival_estimate == "N/A"
        assert result.main_offer.fulfillment_class is FulfillmentClass.UNKNOWN
        assert result.other_offers == ()

    def test_derived_counts(self) -> None:
        outcome = ReconciliationOutcome(
            offers=(
                _offer("Walmart.com", FulfillmentClass.WMT),
                _offer("Acme Store", FulfillmentClass.BRAND_FULFILLED),
                _offer("Gadget Hub", FulfillmentClass.PLATFORM_FULFILLED),
                _offer("Budget Deals", FulfillmentClass.SELF_FULFILLED),
            ),
            strategy=SellerStrategy.REMOTE_QUERY,
        )

        result = assemble(ProductRecord(seller_display_name="Walmart.com"), outcome)

        assert result.strategy is SellerStrategy.REMOTE_QUERY
        assert result.seller_count == 4
        assert result.platform_fulfilled_count == 2
        assert result.storefront_sells is True
        assert result.brand_sells is True
        assert [o.seller_name for o in result.other_offers] == ["Acme Store", "Gadget Hub", "Budget Deals"]

    def test_no_storefront_or_brand(self) -> None:
        outcome = ReconciliationOutcome(
            offers=(_offer("Gadget Hub", FulfillmentClass.SELF_FULFILLED),),
            strategy=SellerStrategy.DOM_MULTI,
        )

        result = assemble(ProductRecord(), outcome)

        assert result.storefront_sells is False
        assert result.brand_sells is False
        assert result.platform_fulfilled_count == 0

    def test_fee_inputs(self) -> None:
        record = ProductRecord(
            weight="0.75",
            shipping_length="10",
            shipping_width="8.5",
            shipping_height="3",
            current_price=49.99,
            main_category="Home Improvement",
        )
        outcome = ReconciliationOutcome(offers=(_offer("Gadget Hub"),), strategy=SellerStrategy.DOM_MULTI)

        fees = assemble(record, outcome).fee_inputs()

        assert fees.weight == 0.75
        assert fees.length == 10.0
        assert fees.width == 8.5
        assert fees.height == 3.0
        assert fees.current_price == 49.99
        assert fees.category == "Home Improvement"

    def test_fee_inputs_default_to_zero(self) -> None:
        outcome = ReconciliationOutcome(offers=(), strategy=SellerStrategy.DOM_SINGLE)

        fees = assemble(ProductRecord(), outcome).fee_inputs()

        assert (fees.weight, fees.length, fees.width, fees.height) == (0.0, 0.0, 0.0, 0.0)
