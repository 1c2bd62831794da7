from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP


CURRENCY_SYMBOL = "₹"
MISSING = "—"


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups: list[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(value: Decimal | int | float | None) -> str:
    if value is None:
        return MISSING
    rounded = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{CURRENCY_SYMBOL}{sign}{_group_indian(str(abs(int(rounded))))}"


def format_pct(value: Decimal | float | None, places: int = 2) -> str:
    if value is None:
        return MISSING
    quant = Decimal(1).scaleb(-places)
    return f"{Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP)}%"


def format_grams(value: Decimal | float | None) -> str:
    if value is None:
        return MISSING
    return f"{Decimal(str(value)).quantize(Decimal('0.0001'), rounding=ROUND_HALF_UP)} g"


def format_day_label(value: date | datetime) -> str:
    return f"{value:%A}, {value.day} {value:%B} {value.year}"
