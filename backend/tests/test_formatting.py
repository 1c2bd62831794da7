from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from goldpulse.services.formatting import format_currency, format_day_label, format_grams, format_pct


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (Decimal("0"), "₹0"),
        (Decimal("999.49"), "₹999"),
        (Decimal("999.50"), "₹1,000"),
        (Decimal("123456"), "₹1,23,456"),
        (Decimal("1234567.5"), "₹12,34,568"),
        (100000000, "₹10,00,00,000"),
        (Decimal("-1500"), "₹-1,500"),
    ],
)
def test_format_currency_uses_indian_grouping(value: Decimal | int, expected: str) -> None:
    assert format_currency(value) == expected


def test_missing_values_render_as_dash() -> None:
    assert format_currency(None) == "—"
    assert format_pct(None) == "—"
    assert format_grams(None) == "—"


def test_format_pct_and_grams() -> None:
    assert format_pct(Decimal("12.345")) == "12.35%"
    assert format_pct(Decimal("-0.5"), places=1) == "-0.5%"
    assert format_grams(Decimal("1.23456")) == "1.2346 g"
    assert format_grams(Decimal("2")) == "2.0000 g"


def test_format_day_label() -> None:
    assert format_day_label(date(2026, 10, 19)) == "Monday, 19 October 2026"
    assert format_day_label(datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)) == "Thursday, 1 January 2026"
