from decimal import Decimal

from goldpulse.utils.decimal_math import grams, money, pct


def test_quantizers_round_half_up() -> None:
    assert money("10.005") == Decimal("10.01")
    assert money(-1.125) == Decimal("-1.13")
    assert pct("0.3333335") == Decimal("0.333334")
    assert grams("0.12345") == Decimal("0.1235")


def test_missing_grams_are_zero() -> None:
    assert grams(None) == Decimal("0.0000")
