"""Tests for formatting helpers."""

import pytest

from sellerscope.utils import (
    clean_text,
    format_delivery_date,
    format_price,
    product_id_from_url,
    random_factor,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("$19.99", "$19.99"),
        ("19.99", "$19.99"),
        ("Now $1,299.00", "$1299.00"),
        (24.5, "$24.50"),
        (0, "N/A"),
        ("0", "N/A"),
        ("$0.00", "N/A"),
        (0.0, "N/A"),
        ("", "N/A"),
        ("N/A", "N/A"),
        (None, "N/A"),
    ],
)
def test_format_price(value, expected: str) -> None:
    assert format_price(value) == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-05-03", "May 3"),
        ("2024-12-24T08:00:00.000Z", "Dec 24"),
        ("soon", None),
        (None, None),
        ("", None),
    ],
)
def test_format_delivery_date(value, expected) -> None:
    assert format_delivery_date(value) == expected


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://www.walmart.com/ip/acme-widget/123456789", "123456789"),
        ("https://www.walmart.com/ip/123456789?athbdg=L1600", "123456789"),
        ("https://www.walmart.com/ip/acme/555?selected=true#reviews", "555"),
        ("https://www.walmart.com/browse/tools", None),
        ("", None),
        (None, None),
    ],
)
def test_product_id_from_url(url, expected) -> None:
    assert product_id_from_url(url) == expected


def test_clean_text_collapses_whitespace() -> None:
    assert clean_text("  Sold \n by\tAcme ") == "Sold by Acme"
    assert clean_text(None) == ""


def test_random_factor_stays_within_bounds() -> None:
    factors = {random_factor(1.0, 1.5) for _ in range(200)}

    assert all(1.0 <= factor <= 1.5 for factor in factors)
    assert random_factor(2.0, 2.0) == 2.0
