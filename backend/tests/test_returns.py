from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from goldpulse.services.returns import CashFlowEvent, compute_return_rate, solve_xirr


def _flow(amount: str, when: date | datetime) -> CashFlowEvent:
    return CashFlowEvent(amount=Decimal(amount), date=when)


def test_fewer_than_two_flows_is_not_computable() -> None:
    assert compute_return_rate([]) is None
    assert compute_return_rate([_flow("-1000", date(2025, 1, 1))]) is None
    assert solve_xirr([_flow("-1000", date(2025, 1, 1))]).status == "insufficient_flows"


@pytest.mark.parametrize(
    "amounts",
    [
        ("-1000", "-500"),
        ("1000", "500"),
        ("0", "1100"),
        ("-1000", "0"),
    ],
)
def test_single_sign_flows_are_not_computable(amounts: tuple[str, str]) -> None:
    flows = [_flow(amounts[0], date(2025, 1, 1)), _flow(amounts[1], date(2026, 1, 1))]
    outcome = solve_xirr(flows)
    assert outcome.rate is None
    assert outcome.status == "single_sign"
    assert outcome.computable is False


def test_ten_percent_over_one_year() -> None:
    rate = compute_return_rate([_flow("-1000", date(2025, 1, 1)), _flow("1100", date(2026, 1, 1))])
    assert rate is not None
    assert abs(rate - 0.10) < 1e-4


def test_flat_value_over_one_year_is_zero() -> None:
    outcome = solve_xirr([_flow("-1000", date(2025, 1, 1)), _flow("1000", date(2026, 1, 1))])
    assert outcome.status == "converged"
    assert outcome.rate is not None
    assert abs(outcome.rate) < 1e-4
    assert 1 <= outcome.iterations <= 50


def test_flow_order_does_not_matter() -> None:
    ordered = [
        _flow("-1000", date(2025, 1, 1)),
        _flow("-1000", date(2025, 7, 1)),
        _flow("2150", date(2026, 1, 1)),
    ]
    shuffled = [ordered[2], ordered[0], ordered[1]]
    assert compute_return_rate(ordered) == compute_return_rate(shuffled)


def test_flows_on_one_instant_are_not_computable() -> None:
    instant = datetime(2026, 3, 31, tzinfo=timezone.utc)
    outcome = solve_xirr([_flow("-1000", instant), _flow("1000", instant)])
    assert outcome.rate is None
    assert outcome.status == "single_date"


def test_naive_and_aware_instants_are_compared_in_utc() -> None:
    naive = datetime(2026, 3, 31, 0, 0)
    aware = datetime(2026, 3, 31, 5, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    assert solve_xirr([_flow("-1000", naive), _flow("1000", aware)]).status == "single_date"


def test_unreachable_rate_is_not_computable() -> None:
    # needs a rate below -99.99% to balance
    rate = compute_return_rate([_flow("-1000", date(2025, 1, 1)), _flow("1", date(2025, 1, 2))])
    assert rate is None
