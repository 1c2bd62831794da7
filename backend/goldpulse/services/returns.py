"""Money-weighted return (XIRR) over dated cash flows.

Solves ``sum(a_i / (1 + r) ** t_i) == 0`` for ``r`` with Newton-Raphson, where
``t_i`` is the year fraction (365-day years) since the earliest flow.
Contributions are negative, realized or terminal value is positive.

The solver never raises: anything it cannot solve comes back as ``None``
(or an ``XirrOutcome`` with a non-``converged`` status).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
import math

from goldpulse.services.bucketing import as_utc


DAYS_PER_YEAR = 365
XIRR_INITIAL_GUESS = 0.10
XIRR_MAX_ITERATIONS = 50
XIRR_TOLERANCE = 1e-6
XIRR_MIN_DERIVATIVE = 1e-10
XIRR_RATE_FLOOR = -0.9999

SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class CashFlowEvent:
    amount: Decimal
    date: date | datetime


@dataclass(frozen=True)
class XirrOutcome:
    rate: float | None
    status: str
    iterations: int = 0

    @property
    def computable(self) -> bool:
        return self.rate is not None


def _year_fractions(cashflows: Sequence[CashFlowEvent]) -> list[tuple[float, float]]:
    instants = [(as_utc(flow.date), float(flow.amount)) for flow in cashflows]
    instants.sort(key=lambda item: item[0])
    base = instants[0][0]
    return [
        ((instant - base).total_seconds() / SECONDS_PER_DAY / DAYS_PER_YEAR, amount)
        for instant, amount in instants
    ]


def solve_xirr(cashflows: Sequence[CashFlowEvent]) -> XirrOutcome:
    if len(cashflows) < 2:
        return XirrOutcome(rate=None, status="insufficient_flows")
    has_positive = any(flow.amount > 0 for flow in cashflows)
    has_negative = any(flow.amount < 0 for flow in cashflows)
    if not has_positive or not has_negative:
        return XirrOutcome(rate=None, status="single_sign")

    flows = _year_fractions(cashflows)
    if len({t for t, _ in flows}) < 2:
        return XirrOutcome(rate=None, status="single_date")

    rate = XIRR_INITIAL_GUESS
    for iteration in range(1, XIRR_MAX_ITERATIONS + 1):
        f = 0.0
        df = 0.0
        try:
            for t, amount in flows:
                denom = (1.0 + rate) ** t
                f += amount / denom
                df += -t * amount / (denom * (1.0 + rate))
        except (OverflowError, ZeroDivisionError):
            return XirrOutcome(rate=None, status="diverged", iterations=iteration)

        if not math.isfinite(f) or not math.isfinite(df):
            return XirrOutcome(rate=None, status="diverged", iterations=iteration)
        if abs(f) < XIRR_TOLERANCE:
            return XirrOutcome(rate=rate, status="converged", iterations=iteration)
        if abs(df) < XIRR_MIN_DERIVATIVE:
            return XirrOutcome(rate=None, status="flat_derivative", iterations=iteration)

        next_rate = rate - f / df
        if not math.isfinite(next_rate) or next_rate <= XIRR_RATE_FLOOR:
            return XirrOutcome(rate=None, status="diverged", iterations=iteration)
        rate = next_rate

    return XirrOutcome(rate=None, status="max_iterations", iterations=XIRR_MAX_ITERATIONS)


def compute_return_rate(cashflows: Sequence[CashFlowEvent]) -> float | None:
    return solve_xirr(cashflows).rate
