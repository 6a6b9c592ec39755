"""Data models for sellerscope.

Defines Pydantic models for every structure that crosses a pipeline stage:
the raw embedded payload, the normalized product record, pre-classification
offer signals, classified seller offers and the assembled listing result.
Records handed downstream are frozen; re-extraction builds new instances.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FulfillmentClass(str, Enum):
    """Who ships an offer and under whose logistics."""

    WMT = "WMT"
    BRAND_FULFILLED = "BrandFulfilled"
    BRAND_SELF_FULFILLED = "BrandSelfFulfilled"
    BRAND_UNKNOWN = "BrandUnknown"
    PLATFORM_FULFILLED = "PlatformFulfilled"
    SELF_FULFILLED = "SelfFulfilled"
    UNKNOWN = "Unknown"

    @property
    def is_brand(self) -> bool:
        return self in (
            FulfillmentClass.BRAND_FULFILLED,
            FulfillmentClass.BRAND_SELF_FULFILLED,
            FulfillmentClass.BRAND_UNKNOWN,
        )

    @property
    def is_platform_fulfilled(self) -> bool:
        return self in (FulfillmentClass.BRAND_FULFILLED, FulfillmentClass.PLATFORM_FULFILLED)


class SellerStrategy(str, Enum):
    """Strategy that produced a seller offer list."""

    REMOTE_QUERY = "remote_query"
    DOM_MULTI = "dom_multi"
    DOM_SINGLE = "dom_single"


class RawPayload(BaseModel):
    """Sub-objects of the page's embedded data.

    Attributes:
        product: Product sub-object (identity, price, inventory, media).
        idml: Item description sub-object (specifications, highlights, videos).
        reviews: Review aggregate sub-object.
    """

    product: dict[str, Any]
    idml: dict[str, Any] = Field(default_factory=dict)
    reviews: dict[str, Any] = Field(default_factory=dict)

    @property
    def product_id(self) -> str | None:
        """Stable product identity, None when the payload carries none."""
        item_id = self.product.get("usItemId")
        return str(item_id) if item_id else None


class AcquisitionResult(BaseModel):
    """Outcome of embedded payload acquisition.

    Attributes:
        available: Whether a usable payload was found.
        payload: The payload when available, None otherwise.
        attempts: Page reads performed (0 for a cache hit).
        from_cache: Whether the payload came from the raw-payload cache.
        error: Last failure reason when unavailable.
    """

    available: bool
    payload: RawPayload | None = None
    attempts: int = 0
    from_cache: bool = False
    error: str | None = None


class Category(BaseModel):
    """One step of the product's category path."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    url: str = ""


class FulfillmentOption(BaseModel):
    """Fulfillment channel with its available quantity.

    Attributes:
        type: Channel type as reported by the page (SHIPPING, PICKUP, ...).
        available_quantity: Units available through this channel.
    """

    model_config = ConfigDict(frozen=True)

    type: str = ""
    available_quantity: int = Field(default=0, ge=0)


class Inventory(BaseModel):
    """Stock and seller-count aggregates.

    Attributes:
        fulfillment_options: Per-channel availability.
        additional_offer_count: Offers besides the primary one.
        buy_box_suppressed: Whether the primary offer is suppressed.
    """

    model_config = ConfigDict(frozen=True)

    fulfillment_options: list[FulfillmentOption] = Field(default_factory=list)
    additional_offer_count: int = Field(default=0, ge=0)
    buy_box_suppressed: bool = False

    @property
    def total_stock(self) -> int:
        """Sum of available quantity across fulfillment channels."""
        return sum(option.available_quantity for option in self.fulfillment_options)

    @property
    def total_sellers(self) -> int:
        """Additional offers plus the primary offer unless it is suppressed."""
        return self.additional_offer_count + (0 if self.buy_box_suppressed else 1)


class ReviewSummary(BaseModel):
    """Review aggregates.

    Attributes:
        total_count: Number of ratings.
        with_text_count: Number of reviews with written text.
        recent_count: Reviews submitted in the last 30 days.
        average_rating: Average overall rating (0.0 when unknown).
        submission_dates: Raw submission timestamps of listed reviews.
    """

    model_config = ConfigDict(frozen=True)

    total_count: int = 0
    with_text_count: int = 0
    recent_count: int = 0
    average_rating: float = 0.0
    submission_dates: list[str] = Field(default_factory=list)


class ProductRecord(BaseModel):
    """Canonical normalized product record.

    Physical attributes are numeric strings and use the "0" sentinel when
    unresolved so downstream fee arithmetic stays total.

    Attributes:
        product_id: Stable product identity.
        name: Product title.
        brand: Brand name.
        brand_url: Brand page path.
        model: Manufacturer model number.
        upc: Universal product code.
        current_price: Current buy-box price in USD.
        shipping_length: Length in inches.
        shipping_width: Width in inches.
        shipping_height: Height in inches.
        weight: Weight in pounds.
        main_category: Top-level category name.
        categories: Full category path.
        image_url: Thumbnail URL.
        images: All image URLs.
        videos: Video descriptors from the item description.
        badges: Short badge texts.
        reviews: Review aggregates.
        inventory: Stock and seller-count aggregates.
        seller_name: On-page primary seller name.
        seller_display_name: On-page primary seller display name.
        seller_type: Primary seller type (INTERNAL, EXTERNAL, ...).
        variant_criteria: Names of the variant dimensions (size, color, ...).
        variant_item_ids: Item ids of sibling variants.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str = ""
    name: str = ""
    brand: str = ""
    brand_url: str = ""
    model: str = ""
    upc: str = ""
    current_price: float = 0.0
    shipping_length: str = "0"
    shipping_width: str = "0"
    shipping_height: str = "0"
    weight: str = "0"
    main_category: str = ""
    categories: list[Category] = Field(default_factory=list)
    image_url: str = ""
    images: list[str] = Field(default_factory=list)
    videos: list[dict[str, Any]] = Field(default_factory=list)
    badges: list[str] = Field(default_factory=list)
    reviews: ReviewSummary = Field(default_factory=ReviewSummary)
    inventory: Inventory = Field(default_factory=Inventory)
    seller_name: str = ""
    seller_display_name: str = ""
    seller_type: str = ""
    variant_criteria: list[str] = Field(default_factory=list)
    variant_item_ids: list[str] = Field(default_factory=list)

    @property
    def primary_seller(self) -> str:
        """Display name of the on-page seller, falling back to the account name."""
        return self.seller_display_name or self.seller_name


class OfferSignals(BaseModel):
    """Offer data gathered by a strategy before classification.

    Attributes:
        seller_name: Seller name, None when not found.
        price: Raw price text or formatted price string.
        arrival: Delivery estimate text.
        is_pro_seller: Whether a pro-seller badge is present.
        platform_fulfilled: Whether the offer ships through platform fulfillment.
        seller_shipped: Whether the offer is explicitly sold and shipped by the seller.
        is_storefront: Whether the source flags the seller as the platform itself.
        available_quantity: Units offered, 0 when unknown.
    """

    seller_name: str | None = None
    price: str | None = None
    arrival: str | None = None
    is_pro_seller: bool = False
    platform_fulfilled: bool = False
    seller_shipped: bool = False
    is_storefront: bool = False
    available_quantity: int = 0


class SellerOffer(BaseModel):
    """Classified seller offer.

    Attributes:
        seller_name: Seller name or "Unknown Seller".
        price: Formatted price or "N/A".
        fulfillment_class: Fulfillment classification.
        is_pro_seller: Whether the seller holds a pro badge.
        arrival_estimate: Delivery estimate or "N/A".
        available_quantity: Units offered, 0 when unknown.
    """

    model_config = ConfigDict(frozen=True)

    seller_name: str = "Unknown Seller"
    price: str = "N/A"
    fulfillment_class: FulfillmentClass = FulfillmentClass.UNKNOWN
    is_pro_seller: bool = False
    arrival_estimate: str = "N/A"
    available_quantity: int = 0


class ReconciliationOutcome(BaseModel):
    """Seller reconciliation result.

    Attributes:
        offers: Classified offers, never empty.
        strategy: Strategy that produced the offers.
        from_cache: Whether the offers came from the seller cache.
    """

    model_config = ConfigDict(frozen=True)

    offers: tuple[SellerOffer, ...]
    strategy: SellerStrategy
    from_cache: bool = False


class FeeInputs(BaseModel):
    """Inputs consumed by the external fee calculator."""

    model_config = ConfigDict(frozen=True)

    weight: float = 0.0
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0
    current_price: float = 0.0
    category: str = ""


class ListingResult(BaseModel):
    """Final record combining the product with its resolved sellers.

    Attributes:
        product: Normalized product record.
        offers: Classified seller offers, primary offer first.
        strategy: Strategy that resolved the offers.
    """

    model_config = ConfigDict(frozen=True)

    product: ProductRecord
    offers: tuple[SellerOffer, ...]
    strategy: SellerStrategy

    @property
    def main_offer(self) -> SellerOffer:
        return self.offers[0]

    @property
    def other_offers(self) -> tuple[SellerOffer, ...]:
        return self.offers[1:]

    @property
    def seller_count(self) -> int:
        return len(self.offers)

    @property
    def platform_fulfilled_count(self) -> int:
        return sum(1 for offer in self.offers if offer.fulfillment_class.is_platform_fulfilled)

    @property
    def storefront_sells(self) -> bool:
        return any(offer.fulfillment_class is FulfillmentClass.WMT for offer in self.offers)

    @property
    def brand_sells(self) -> bool:
        return any(offer.fulfillment_class.is_brand for offer in self.offers)

    def fee_inputs(self) -> FeeInputs:
        """Build the fee calculator input from normalized attributes.

        Returns:
            FeeInputs with numeric physical attributes, price and category.
        """
        return FeeInputs(
            weight=_to_float(self.product.weight),
            length=_to_float(self.product.shipping_length),
            width=_to_float(self.product.shipping_width),
            height=_to_float(self.product.shipping_height),
            current_price=self.product.current_price,
            category=self.product.main_category,
        )


def _to_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0
