"""
Tests for the pricing helpers: parsing, currency detection, discounts, tax, shipping.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from storefront import pricing


@pytest.mark.parametrize(
    "text, expected",
    [
        ("₹1,299.50", 1299.50),
        ("$12", 12.0),
        ("USD 9.99", 9.99),
        ("12.34.56", 12.3456),
        ("", 0.0),
        ("free", 0.0),
        (".", 0.0),
        (None, 0.0),
        (42, 42.0),
        (float("nan"), 0.0),
    ],
)
def test_parse_price(text, expected) -> None:
    assert pricing.parse_price(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["$19.99", "€ 1,250.00", "₹ 300", "0.50"])
def test_parse_price_stable_through_formatting(text: str) -> None:
    value = pricing.parse_price(text)
    assert pricing.parse_price(f"{value:.2f}") == pytest.approx(value)


@pytest.mark.parametrize(
    "text, symbol",
    [
        ("₹100", "₹"),
        ("€5", "€"),
        ("£5", "£"),
        ("₨ 900", "₨"),
        ("$5 or ₹400", "₹"),
        ("€5 / $6", "$"),
        ("100", "$"),
        ("", "$"),
        (None, "$"),
    ],
)
def test_detect_currency_symbol(text, symbol: str) -> None:
    assert pricing.detect_currency_symbol(text) == symbol


def test_currency_symbol_from_code() -> None:
    assert pricing.currency_symbol_from_code("inr") == "₹"
    assert pricing.currency_symbol_from_code("EUR") == "€"
    assert pricing.currency_symbol_from_code("XYZ") == "$"
    assert pricing.currency_symbol_from_code(None) == "$"


def test_format_price() -> None:
    assert pricing.format_price(12.5) == "$12.50"
    assert pricing.format_price(3, "₹") == "₹3.00"


def test_effective_price_percent_wins_over_manual_price() -> None:
    assert pricing.effective_price(100, 95, 10) == pytest.approx(90.0)


def test_effective_price_manual_price_only_below_base() -> None:
    assert pricing.effective_price(50, 40, 0) == 40
    assert pricing.effective_price(50, 60, 0) == 50
    assert pricing.effective_price(50, 0, 0) == 50


@pytest.mark.parametrize(
    "base, manual, percent",
    [(100, 0, 10), (100, 80, 0), (100, 120, 0), (100, 90, 5), (20, 0, 150)],
)
def test_effective_price_never_above_base(base, manual, percent) -> None:
    eff = pricing.effective_price(base, manual, percent)
    assert 0 <= eff <= base


def test_line_total_and_subtotal() -> None:
    items = [
        SimpleNamespace(price=100.0, discount_price=0.0, discount_percent=10.0, quantity=2),
        SimpleNamespace(price=50.0, discount_price=40.0, discount_percent=0.0, quantity=1),
    ]
    assert pricing.line_total(items[0]) == pytest.approx(180.0)
    assert pricing.subtotal(items) == pytest.approx(sum(pricing.line_total(i) for i in items))
    assert pricing.subtotal([]) == 0.0


def test_tax_amount() -> None:
    assert pricing.tax_amount(220, 18) == pytest.approx(39.6)
    assert pricing.tax_amount(220, 0) == 0.0


def test_shipping_adjusted_total() -> None:
    assert pricing.shipping_adjusted_total(100, 5.99, 100) == 100
    assert pricing.shipping_adjusted_total(99.99, 5.99, 100) == pytest.approx(105.98)
    assert pricing.shipping_adjusted_total(20, 5.99) == pytest.approx(25.99)
