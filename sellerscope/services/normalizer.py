"""Normalization of the raw embedded payload into a ProductRecord.

Pure mapping with no I/O. Every field degrades to a sentinel when missing
or malformed: numbers to zero, lists to empty, physical attributes to "0".

Physical attributes resolve from the product highlights first and the
specifications second. Within a source, entries are ranked by name (shipping,
then assembled product, then plain) and the best-ranked entry yielding a
complete value wins. Results from different sources are never merged.
"""

import logging
import math
import re
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

from ..models import (
    Category,
    FulfillmentOption,
    Inventory,
    ProductRecord,
    RawPayload,
    ReviewSummary,
)

logger = logging.getLogger(__name__)

DIMENSION_SOURCES = ("productHighlights", "specifications")
RECENT_REVIEW_WINDOW = timedelta(days=30)

# Accepted entry names in preference order. Capacity, load and packaging
# entries never match.
DIMENSION_NAMES = (
    "shipping dimensions",
    "assembled product dimensions",
    "product dimensions",
    "item dimensions",
    "dimensions",
)
WEIGHT_NAMES = (
    "shipping weight",
    "assembled product weight",
    "product weight",
    "item weight",
    "weight",
)

T = TypeVar("T")

_PARENTHESIZED_RE = re.compile(r"\([^)]*\)")
_NUMBER = r"(\d+(?:\.\d+)?)"
_DIMENSIONS_RE = re.compile(rf"{_NUMBER}\s*[x×]\s*{_NUMBER}\s*[x×]\s*{_NUMBER}", re.IGNORECASE)
_WEIGHT_RE = re.compile(rf"^\s*{_NUMBER}\s*([a-z]+)?\.?", re.IGNORECASE)

# Multipliers to pounds
WEIGHT_UNITS = {
    None: 1.0,
    "lb": 1.0,
    "lbs": 1.0,
    "pound": 1.0,
    "pounds": 1.0,
    "oz": 1 / 16,
    "ounce": 1 / 16,
    "ounces": 1 / 16,
    "kg": 2.20462,
    "kgs": 2.20462,
    "g": 0.00220462,
    "grams": 0.00220462,
}


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _str(value: Any) -> str:
    if value is None or isinstance(value, dict | list):
        return ""
    return str(value).strip()


def _float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _int(value: Any) -> int:
    return max(0, int(_float(value)))


def format_number(value: float) -> str:
    """Render a number as a compact decimal string ("8", "10.5", "0.625")."""
    text = f"{round(value, 3):.3f}".rstrip("0").rstrip(".")
    return text or "0"


def _entries(idml: dict[str, Any], source: str) -> list[tuple[str, str]]:
    """Name/value pairs of an item-description list."""
    pairs = []
    for entry in _list(idml.get(source)):
        entry = _dict(entry)
        name = _str(entry.get("name") or entry.get("key"))
        value = _str(entry.get("value"))
        if name and value:
            pairs.append((name.lower(), value))
    return pairs


def parse_dimensions(value: str) -> tuple[str, str, str] | None:
    """Parse "L x W x H [unit]" into three numeric strings."""
    match = _DIMENSIONS_RE.search(value.replace(",", ""))
    if not match:
        return None
    return tuple(format_number(float(token)) for token in match.groups())  # type: ignore[return-value]


def parse_weight(value: str) -> str | None:
    """Parse "<number> [unit]" into pounds, converting ounces and metric units."""
    match = _WEIGHT_RE.match(value.replace(",", ""))
    if not match:
        return None
    amount, unit = match.groups()
    unit_key = unit.lower() if unit else None
    if unit_key not in WEIGHT_UNITS:
        return None
    return format_number(float(amount) * WEIGHT_UNITS[unit_key])


def _attribute_name(name: str) -> str:
    """Lowercase an entry name and drop parenthesized notes ("(L x W x H)")."""
    return " ".join(_PARENTHESIZED_RE.sub(" ", name).lower().split())


def _resolve(idml: dict[str, Any], names: tuple[str, ...], parse: Callable[[str], T | None]) -> T | None:
    # Name rank decides within a source; sources are tried in order
    for source in DIMENSION_SOURCES:
        entries = [(_attribute_name(name), value) for name, value in _entries(idml, source)]
        for wanted in names:
            for name, value in entries:
                if name != wanted:
                    continue
                parsed = parse(value)
                if parsed:
                    return parsed
    return None


def resolve_dimensions(idml: dict[str, Any]) -> tuple[str, str, str]:
    return _resolve(idml, DIMENSION_NAMES, parse_dimensions) or ("0", "0", "0")


def resolve_weight(idml: dict[str, Any]) -> str:
    return _resolve(idml, WEIGHT_NAMES, parse_weight) or "0"


def _parse_review_date(value: str) -> datetime | None:
    for parse in (
        lambda v: datetime.strptime(v, "%m/%d/%Y"),
        datetime.fromisoformat,
    ):
        try:
            parsed = parse(value)
        except ValueError:
            continue
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


def count_recent(dates: list[str], as_of: datetime) -> int:
    """Count submission dates within the recent-review window before ``as_of``."""
    recent = 0
    for value in dates:
        submitted = _parse_review_date(value)
        if submitted is None:
            continue
        age = as_of - submitted
        if timedelta(0) <= age <= RECENT_REVIEW_WINDOW:
            recent += 1
    return recent


def _image_urls(images: list[Any]) -> list[str]:
    urls = []
    for image in images:
        url = _str(_dict(image).get("url")) if isinstance(image, dict) else _str(image)
        if url:
            urls.append(url)
    return urls


def normalize(raw: RawPayload, as_of: datetime | None = None) -> ProductRecord:
    """Map a raw payload to a ProductRecord.

    Args:
        raw: Acquired payload.
        as_of: Reference time for recent-review counting, now (UTC) by default.

    Returns:
        ProductRecord with sentinels for every unresolved field.
    """
    as_of = as_of or datetime.now(UTC)
    product = _dict(raw.product)
    idml = _dict(raw.idml)
    reviews = _dict(raw.reviews)

    length, width, height = resolve_dimensions(idml)
    weight = resolve_weight(idml)

    path = [_dict(step) for step in _list(_dict(product.get("category")).get("path"))]
    categories = [Category(name=_str(step.get("name")), url=_str(step.get("url"))) for step in path]

    image_info = _dict(product.get("imageInfo"))
    price_info = _dict(_dict(product.get("priceInfo")).get("currentPrice"))

    submission_dates = [
        _str(_dict(review).get("reviewSubmissionTime"))
        for review in _list(reviews.get("customerReviews"))
        if _str(_dict(review).get("reviewSubmissionTime"))
    ]
    review_summary = ReviewSummary(
        total_count=_int(reviews.get("totalReviewCount")),
        with_text_count=_int(reviews.get("reviewsWithTextCount")),
        recent_count=count_recent(submission_dates, as_of),
        average_rating=_float(reviews.get("roundedAverageOverallRating"))
        or _float(product.get("averageRating")),
        submission_dates=submission_dates,
    )

    inventory = Inventory(
        fulfillment_options=[
            FulfillmentOption(
                type=_str(_dict(option).get("type")),
                available_quantity=_int(_dict(option).get("availableQuantity")),
            )
            for option in _list(product.get("fulfillmentOptions"))
        ],
        additional_offer_count=_int(product.get("additionalOfferCount")),
        buy_box_suppressed=bool(product.get("buyBoxSuppression")),
    )

    badges = [
        _str(_dict(flag).get("text"))
        for flag in _list(_dict(product.get("badges")).get("flags"))
        if _str(_dict(flag).get("text"))
    ]

    variant_item_ids = sorted(
        {
            _str(_dict(variant).get("usItemId"))
            for variant in _dict(product.get("variantsMap")).values()
            if _str(_dict(variant).get("usItemId"))
        }
    )

    record = ProductRecord(
        product_id=_str(product.get("usItemId")),
        name=_str(product.get("name")),
        brand=_str(product.get("brand")),
        brand_url=_str(product.get("brandUrl")),
        model=_str(product.get("model")),
        upc=_str(product.get("upc")),
        current_price=_float(price_info.get("price")),
        shipping_length=length,
        shipping_width=width,
        shipping_height=height,
        weight=weight,
        main_category=categories[0].name if categories else "",
        categories=categories,
        image_url=_str(image_info.get("thumbnailUrl")),
        images=_image_urls(_list(image_info.get("allImages"))),
        videos=[_dict(video) for video in _list(idml.get("videos")) if isinstance(video, dict)],
        badges=badges,
        reviews=review_summary,
        inventory=inventory,
        seller_name=_str(product.get("sellerName")),
        seller_display_name=_str(product.get("sellerDisplayName")),
        seller_type=_str(product.get("sellerType")),
        variant_criteria=[
            _str(_dict(criterion).get("name"))
            for criterion in _list(product.get("variantCriteria"))
            if _str(_dict(criterion).get("name"))
        ],
        variant_item_ids=variant_item_ids,
    )

    if record.weight == "0" or record.shipping_length == "0":
        logger.debug(f"Physical attributes unresolved for product {record.product_id or '?'}")
    return record
