from decimal import Decimal, ROUND_HALF_UP


MONEY_QUANT = Decimal("0.01")
PCT_QUANT = Decimal("0.000001")
GRAMS_QUANT = Decimal("0.0001")


def money(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def pct(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(PCT_QUANT, rounding=ROUND_HALF_UP)


def grams(value: Decimal | int | float | str | None) -> Decimal:
    if value is None:
        return Decimal("0").quantize(GRAMS_QUANT)
    return Decimal(str(value)).quantize(GRAMS_QUANT, rounding=ROUND_HALF_UP)
