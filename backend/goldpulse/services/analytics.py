from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import logging
from typing import Any

from goldpulse.models.enums import (
    CustomerStatus,
    EnrollmentStatus,
    Karat,
    PaymentStatus,
    RedemptionStatus,
    TransactionType,
)
from goldpulse.services.bucketing import Granularity, as_utc, iter_buckets, month_bounds, start_of_day
from goldpulse.services.rates import RateBook
from goldpulse.services.records import (
    CustomerRecord,
    EnrollmentRecord,
    Period,
    RawRecords,
    RedemptionRecord,
    TransactionRecord,
)
from goldpulse.services.returns import CashFlowEvent, XirrOutcome, solve_xirr
from goldpulse.utils.decimal_math import grams, money, pct


logger = logging.getLogger(__name__)

CONTRIBUTION_TYPES = frozenset({TransactionType.installment, TransactionType.top_up})
UNASSIGNED = "UNASSIGNED"
METAL_KEYS = [karat.value for karat in Karat] + [UNASSIGNED]
CUSTOMER_SEGMENTS = ("new", "active", "dormant", "pending")


@dataclass(frozen=True)
class CustomerMetrics:
    total: int
    new: int
    active: int
    dormant: int
    pending: int
    active_rate_pct: Decimal


@dataclass(frozen=True)
class SchemeHealth:
    total: int
    counts: dict[str, int]
    ratios: dict[str, Decimal]

    @property
    def is_empty(self) -> bool:
        return self.total == 0


@dataclass(frozen=True)
class PortfolioPoint:
    label: str
    start: datetime
    end: datetime
    contributions: Decimal
    value: Decimal | None
    gold_grams: Decimal
    silver_grams: Decimal
    avg_buy_gold: Decimal | None
    market_gold: Decimal | None
    avg_buy_silver: Decimal | None
    market_silver: Decimal | None


@dataclass(frozen=True)
class EfficiencyPoint:
    month: str
    invested: Decimal
    grams: Decimal
    efficiency_pct: Decimal | None
    price_index_pct: Decimal | None


@dataclass(frozen=True)
class RateQuote:
    karat: str
    rate_per_gram: Decimal
    effective_from: datetime


@dataclass(frozen=True)
class AnalyticsSummary:
    period_collections: Decimal
    grams_by_karat: dict[str, Decimal]
    gold_allocated: Decimal
    silver_allocated: Decimal
    total_customers: int
    active_customers: int
    total_enrollments: int
    active_enrollments: int
    completed_redemptions: int
    portfolio_value: Decimal | None


@dataclass(frozen=True)
class AnalyticsResult:
    retailer_id: int
    period: Period
    granularity: str
    revenue_by_metal: dict[str, Decimal]
    customer_metrics: CustomerMetrics
    scheme_health: SchemeHealth
    portfolio_series: list[PortfolioPoint]
    efficiency_series: list[EfficiencyPoint]
    xirr: float | None
    xirr_pct: Decimal | None
    summary: AnalyticsSummary
    current_rates: dict[str, RateQuote | None]


@dataclass(frozen=True)
class AnalyticsDiagnostics:
    transactions_total: int
    contributions_settled: int
    contributions_in_period: int
    skipped_unsettled: int
    skipped_incomplete: int
    unassigned_karat: int
    unvalued_redemptions: int
    missing_rate_karats: list[str]
    bucket_count: int
    cashflow_count: int
    xirr_status: str
    xirr_iterations: int


@dataclass(frozen=True)
class AnalyticsReport:
    result: AnalyticsResult
    diagnostics: AnalyticsDiagnostics


@dataclass(frozen=True)
class _Contribution:
    id: int
    paid_at: datetime
    amount: Decimal
    grams: Decimal
    karat: Karat | None
    customer_id: int | None


@dataclass(frozen=True)
class _Redemption:
    id: int
    completed_at: datetime
    grams: Decimal
    karat: Karat | None
    value_realized: Decimal | None


def _safe_pct(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return pct(0)
    return pct((numerator / denominator) * Decimal("100"))


def _by_id(rows: Iterable[Any]) -> list[Any]:
    unique: dict[int, Any] = {}
    for row in rows:
        unique.setdefault(row.id, row)
    return [unique[key] for key in sorted(unique)]


def _settled_contributions(
    transactions: Sequence[TransactionRecord],
    enrollments: dict[int, EnrollmentRecord],
) -> tuple[list[_Contribution], dict[str, int]]:
    skipped = {"unsettled": 0, "incomplete": 0, "unassigned_karat": 0}
    rows: list[_Contribution] = []
    for txn in transactions:
        if txn.payment_status != PaymentStatus.success or txn.txn_type not in CONTRIBUTION_TYPES:
            skipped["unsettled"] += 1
            continue
        if txn.amount_paid is None or txn.paid_at is None or money(txn.amount_paid) <= 0:
            skipped["incomplete"] += 1
            continue
        enrollment = enrollments.get(txn.enrollment_id) if txn.enrollment_id is not None else None
        karat = Karat(enrollment.karat) if enrollment is not None and enrollment.karat is not None else None
        if karat is None:
            skipped["unassigned_karat"] += 1
        customer_id = txn.customer_id
        if customer_id is None and enrollment is not None:
            customer_id = enrollment.customer_id
        rows.append(
            _Contribution(
                id=txn.id,
                paid_at=as_utc(txn.paid_at),
                amount=money(txn.amount_paid),
                grams=grams(txn.grams_allocated),
                karat=karat,
                customer_id=customer_id,
            )
        )
    rows.sort(key=lambda row: (row.paid_at, row.id))
    return rows, skipped


def _completed_redemptions(
    redemptions: Sequence[RedemptionRecord],
    enrollments: dict[int, EnrollmentRecord],
) -> list[_Redemption]:
    rows: list[_Redemption] = []
    for redemption in redemptions:
        if redemption.status != RedemptionStatus.completed or redemption.completed_at is None:
            continue
        enrollment = enrollments.get(redemption.enrollment_id) if redemption.enrollment_id is not None else None
        rows.append(
            _Redemption(
                id=redemption.id,
                completed_at=as_utc(redemption.completed_at),
                grams=grams(redemption.grams_redeemed),
                karat=Karat(enrollment.karat) if enrollment is not None and enrollment.karat is not None else None,
                value_realized=money(redemption.value_realized) if redemption.value_realized is not None else None,
            )
        )
    rows.sort(key=lambda row: (row.completed_at, row.id))
    return rows


def _revenue_by_metal(contributions: Sequence[_Contribution]) -> dict[str, Decimal]:
    totals = {key: money(0) for key in METAL_KEYS}
    for row in contributions:
        key = row.karat.value if row.karat is not None else UNASSIGNED
        totals[key] = money(totals[key] + row.amount)
    return totals


def _customer_metrics(
    customers: Sequence[CustomerRecord],
    enrollments: Sequence[EnrollmentRecord],
    contributions: Sequence[_Contribution],
    period: Period,
) -> CustomerMetrics:
    first_activity: dict[int, datetime] = {}

    def touch(customer_id: int | None, instant: datetime | None) -> None:
        if customer_id is None or instant is None:
            return
        previous = first_activity.get(customer_id)
        if previous is None or instant < previous:
            first_activity[customer_id] = instant

    for enrollment in enrollments:
        touch(enrollment.customer_id, as_utc(enrollment.created_at) if enrollment.created_at else None)
    for row in contributions:
        touch(row.customer_id, row.paid_at)

    start_at, end_at = period.start_at, period.end_at
    active_ids = {row.customer_id for row in contributions if start_at <= row.paid_at < end_at}
    counts = {segment: 0 for segment in CUSTOMER_SEGMENTS}
    for customer in customers:
        first = first_activity.get(customer.id)
        created = as_utc(customer.created_at) if customer.created_at else None
        if first is not None and start_at <= first < end_at:
            counts["new"] += 1
        elif customer.id in active_ids:
            counts["active"] += 1
        elif (first is not None and first < start_at) or (created is not None and created < start_at):
            counts["dormant"] += 1
        else:
            counts["pending"] += 1

    total = len(customers)
    return CustomerMetrics(
        total=total,
        new=counts["new"],
        active=counts["active"],
        dormant=counts["dormant"],
        pending=counts["pending"],
        active_rate_pct=_safe_pct(Decimal(counts["new"] + counts["active"]), Decimal(total)),
    )


def _ratio_shares(counts: dict[str, int], total: int) -> dict[str, Decimal]:
    ratios = {key: pct(0) for key in counts}
    if total == 0:
        return ratios
    present = [key for key, count in counts.items() if count > 0]
    running = pct(0)
    for index, key in enumerate(present):
        if index < len(present) - 1:
            share = pct(Decimal(counts[key]) / Decimal(total))
            running = pct(running + share)
        else:
            # Remainder lands on the last status so the ratios sum to exactly 1.
            share = pct(Decimal("1") - running)
        ratios[key] = share
    return ratios


def _scheme_health(enrollments: Sequence[EnrollmentRecord], period: Period) -> SchemeHealth:
    end_at = period.end_at
    counts = {status.value: 0 for status in EnrollmentStatus}
    total = 0
    for enrollment in enrollments:
        if enrollment.created_at is not None and as_utc(enrollment.created_at) >= end_at:
            continue
        counts[EnrollmentStatus(enrollment.status).value] += 1
        total += 1
    return SchemeHealth(total=total, counts=counts, ratios=_ratio_shares(counts, total))


def _holdings_template() -> dict[str, Any]:
    return {
        "contributions": money(0),
        "gold_invested": money(0),
        "silver_invested": money(0),
        "allocated": {karat: grams(0) for karat in Karat},
        "held": {karat: grams(0) for karat in Karat},
    }


def _apply_contribution(holdings: dict[str, Any], row: _Contribution) -> None:
    holdings["contributions"] = money(holdings["contributions"] + row.amount)
    if row.karat is None:
        return
    if row.karat.is_gold:
        holdings["gold_invested"] = money(holdings["gold_invested"] + row.amount)
    else:
        holdings["silver_invested"] = money(holdings["silver_invested"] + row.amount)
    holdings["allocated"][row.karat] = grams(holdings["allocated"][row.karat] + row.grams)
    holdings["held"][row.karat] = grams(holdings["held"][row.karat] + row.grams)


def _apply_redemption(holdings: dict[str, Any], row: _Redemption) -> None:
    if row.karat is None:
        return
    holdings["held"][row.karat] = max(grams(0), grams(holdings["held"][row.karat] - row.grams))


def _advance(
    holdings: dict[str, Any],
    contributions: Sequence[_Contribution],
    redemptions: Sequence[_Redemption],
    cursor: list[int],
    until: datetime,
) -> None:
    while cursor[0] < len(contributions) and contributions[cursor[0]].paid_at < until:
        _apply_contribution(holdings, contributions[cursor[0]])
        cursor[0] += 1
    while cursor[1] < len(redemptions) and redemptions[cursor[1]].completed_at < until:
        _apply_redemption(holdings, redemptions[cursor[1]])
        cursor[1] += 1


def _valuation(
    holdings: dict[str, Any],
    book: RateBook,
    as_of: datetime,
    missing: set[str],
) -> tuple[Decimal | None, dict[Karat, Decimal]]:
    rates: dict[Karat, Decimal] = {}
    value = money(0)
    complete = True
    for karat, held in holdings["held"].items():
        rate = book.rate_at(karat, as_of)
        if rate is not None:
            rates[karat] = rate
        if held <= 0:
            continue
        if rate is None:
            missing.add(karat.value)
            complete = False
            continue
        value = money(value + held * rate)
    return (value if complete else None), rates


def _market_rate(holdings: dict[str, Any], rates: dict[Karat, Decimal], karats: list[Karat]) -> Decimal | None:
    weight = sum((holdings["held"][karat] for karat in karats if karat in rates), Decimal("0"))
    if weight <= 0:
        return None
    weighted = sum((holdings["held"][karat] * rates[karat] for karat in karats if karat in rates), Decimal("0"))
    return money(weighted / weight)


def _portfolio_point(
    *,
    label: str,
    start: datetime,
    end: datetime,
    holdings: dict[str, Any],
    book: RateBook,
    missing: set[str],
) -> PortfolioPoint:
    value, rates = _valuation(holdings, book, end, missing)
    gold_karats = [karat for karat in Karat if karat.is_gold]
    gold_allocated = grams(sum((holdings["allocated"][karat] for karat in gold_karats), Decimal("0")))
    silver_allocated = grams(holdings["allocated"][Karat.silver])
    return PortfolioPoint(
        label=label,
        start=start,
        end=end,
        contributions=holdings["contributions"],
        value=value,
        gold_grams=grams(sum((holdings["held"][karat] for karat in gold_karats), Decimal("0"))),
        silver_grams=grams(holdings["held"][Karat.silver]),
        avg_buy_gold=money(holdings["gold_invested"] / gold_allocated) if gold_allocated > 0 else None,
        market_gold=_market_rate(holdings, rates, gold_karats),
        avg_buy_silver=money(holdings["silver_invested"] / silver_allocated) if silver_allocated > 0 else None,
        market_silver=_market_rate(holdings, rates, [Karat.silver]),
    )


def _portfolio_series(
    contributions: Sequence[_Contribution],
    redemptions: Sequence[_Redemption],
    book: RateBook,
    period: Period,
    granularity: Granularity,
    missing: set[str],
) -> list[PortfolioPoint]:
    holdings = _holdings_template()
    cursor = [0, 0]
    points: list[PortfolioPoint] = []
    for bucket in iter_buckets(period.start_at, period.end_at, granularity):
        as_of = min(bucket.end, period.end_at)
        _advance(holdings, contributions, redemptions, cursor, as_of)
        points.append(
            _portfolio_point(
                label=bucket.label,
                start=bucket.start,
                end=as_of,
                holdings=holdings,
                book=book,
                missing=missing,
            )
        )
    return points


def _terminal_value(
    contributions: Sequence[_Contribution],
    redemptions: Sequence[_Redemption],
    book: RateBook,
    period: Period,
    missing: set[str],
) -> Decimal | None:
    holdings = _holdings_template()
    _advance(holdings, contributions, redemptions, [0, 0], period.end_at)
    value, _ = _valuation(holdings, book, period.end_at, missing)
    return value


def _efficiency_series(
    contributions: Sequence[_Contribution],
    book: RateBook,
    period: Period,
    missing: set[str],
) -> list[EfficiencyPoint]:
    months: dict[str, dict[str, Any]] = {
        bucket.label: {
            "invested": money(0),
            "grams": grams(0),
            "valued": Decimal("0"),
            "unvalued": False,
            "weighted": Decimal("0"),
            "weight": Decimal("0"),
        }
        for bucket in iter_buckets(period.start_at, period.end_at, Granularity.month)
    }
    for row in contributions:
        entry = months.get(month_bounds(row.paid_at).label)
        if entry is None:
            continue
        entry["invested"] = money(entry["invested"] + row.amount)
        entry["grams"] = grams(entry["grams"] + row.grams)
        rate_at_payment = book.rate_at(row.karat, row.paid_at, inclusive=True)
        if row.grams > 0:
            if rate_at_payment is None:
                entry["unvalued"] = True
                if row.karat is not None:
                    missing.add(row.karat.value)
            else:
                entry["valued"] += row.grams * rate_at_payment
        current_rate = book.rate_at(row.karat, period.end_at)
        if rate_at_payment is not None and current_rate is not None:
            entry["weighted"] += (current_rate / rate_at_payment - Decimal("1")) * row.amount
            entry["weight"] += row.amount

    points: list[EfficiencyPoint] = []
    for month, entry in months.items():
        if entry["invested"] == 0 or entry["unvalued"]:
            efficiency = None
        else:
            efficiency = _safe_pct(entry["valued"], entry["invested"])
        points.append(
            EfficiencyPoint(
                month=month,
                invested=entry["invested"],
                grams=entry["grams"],
                efficiency_pct=efficiency,
                price_index_pct=_safe_pct(entry["weighted"], entry["weight"]) if entry["weight"] > 0 else None,
            )
        )
    return points


def _build_cashflows(
    contributions: Sequence[_Contribution],
    redemptions: Sequence[_Redemption],
    book: RateBook,
    period: Period,
    terminal_value: Decimal | None,
) -> tuple[list[CashFlowEvent], int]:
    flows = [CashFlowEvent(amount=-row.amount, date=row.paid_at) for row in contributions]
    unvalued = 0
    for row in redemptions:
        if row.completed_at >= period.end_at:
            continue
        value = row.value_realized
        if value is None:
            rate = book.rate_at(row.karat, row.completed_at, inclusive=True)
            value = money(row.grams * rate) if rate is not None else None
        if value is None:
            unvalued += 1
            continue
        if value > 0:
            flows.append(CashFlowEvent(amount=value, date=row.completed_at))
    if terminal_value is not None and terminal_value > 0:
        flows.append(CashFlowEvent(amount=terminal_value, date=start_of_day(period.end)))
    return flows, unvalued


def _current_rates(book: RateBook, period: Period) -> dict[str, RateQuote | None]:
    quotes: dict[str, RateQuote | None] = {}
    for karat in Karat:
        snapshot = book.latest(karat, period.end_at)
        quotes[karat.value] = (
            RateQuote(
                karat=karat.value,
                rate_per_gram=money(snapshot.rate_per_gram),
                effective_from=snapshot.effective_from,
            )
            if snapshot is not None
            else None
        )
    return quotes


def _summary(
    *,
    customers: Sequence[CustomerRecord],
    enrollments: Sequence[EnrollmentRecord],
    in_period: Sequence[_Contribution],
    redemptions: Sequence[_Redemption],
    period: Period,
    portfolio_value: Decimal | None,
) -> AnalyticsSummary:
    grams_by_karat = {karat.value: grams(0) for karat in Karat}
    for row in in_period:
        if row.karat is not None:
            grams_by_karat[row.karat.value] = grams(grams_by_karat[row.karat.value] + row.grams)
    gold = grams(sum((grams_by_karat[karat.value] for karat in Karat if karat.is_gold), Decimal("0")))
    return AnalyticsSummary(
        period_collections=money(sum((row.amount for row in in_period), Decimal("0"))),
        grams_by_karat=grams_by_karat,
        gold_allocated=gold,
        silver_allocated=grams_by_karat[Karat.silver.value],
        total_customers=len(customers),
        active_customers=sum(1 for row in customers if row.status == CustomerStatus.active),
        total_enrollments=len(enrollments),
        active_enrollments=sum(1 for row in enrollments if row.status == EnrollmentStatus.active),
        completed_redemptions=sum(1 for row in redemptions if period.contains(row.completed_at)),
        portfolio_value=portfolio_value,
    )


def compute_analytics(
    retailer_id: int,
    period: Period,
    records: RawRecords,
    *,
    granularity: Granularity | str = Granularity.day,
) -> AnalyticsReport:
    granularity = Granularity(granularity)
    customers = _by_id(records.customers)
    enrollment_rows = _by_id(records.enrollments)
    enrollments = {row.id: row for row in enrollment_rows}
    book = RateBook.from_snapshots(records.rate_snapshots)

    transactions = _by_id(records.transactions)
    contributions, skipped = _settled_contributions(transactions, enrollments)
    redemptions = _completed_redemptions(_by_id(records.redemptions), enrollments)
    if not period.is_valid:
        contributions, redemptions = [], []

    in_period = [row for row in contributions if period.contains(row.paid_at)]
    history = [row for row in contributions if row.paid_at < period.end_at]

    missing: set[str] = set()
    portfolio = _portfolio_series(history, redemptions, book, period, granularity, missing)
    efficiency = _efficiency_series(in_period, book, period, missing)
    terminal_value = _terminal_value(history, redemptions, book, period, missing)
    cashflows, unvalued_redemptions = _build_cashflows(history, redemptions, book, period, terminal_value)
    if terminal_value is None:
        # grams still held at period end have no rate, so the closing flow is unknown
        outcome = XirrOutcome(rate=None, status="unvalued_terminal")
    else:
        outcome = solve_xirr(cashflows)

    logger.debug(
        "Pulse analytics retailer=%s buckets=%d contributions=%d cashflows=%d",
        retailer_id,
        len(portfolio),
        len(in_period),
        len(cashflows),
    )
    if outcome.rate is None:
        logger.info("Return rate not computable for retailer %s: %s", retailer_id, outcome.status)

    result = AnalyticsResult(
        retailer_id=retailer_id,
        period=period,
        granularity=granularity.value,
        revenue_by_metal=_revenue_by_metal(in_period),
        customer_metrics=_customer_metrics(customers, enrollment_rows, contributions, period),
        scheme_health=_scheme_health(enrollment_rows, period),
        portfolio_series=portfolio,
        efficiency_series=efficiency,
        xirr=outcome.rate,
        xirr_pct=pct(Decimal(str(outcome.rate)) * Decimal("100")) if outcome.rate is not None else None,
        summary=_summary(
            customers=customers,
            enrollments=enrollment_rows,
            in_period=in_period,
            redemptions=redemptions,
            period=period,
            portfolio_value=terminal_value,
        ),
        current_rates=_current_rates(book, period),
    )
    diagnostics = AnalyticsDiagnostics(
        transactions_total=len(transactions),
        contributions_settled=len(contributions),
        contributions_in_period=len(in_period),
        skipped_unsettled=skipped["unsettled"],
        skipped_incomplete=skipped["incomplete"],
        unassigned_karat=skipped["unassigned_karat"],
        unvalued_redemptions=unvalued_redemptions,
        missing_rate_karats=sorted(missing),
        bucket_count=len(portfolio),
        cashflow_count=len(cashflows),
        xirr_status=outcome.status if period.is_valid else "invalid_period",
        xirr_iterations=outcome.iterations,
    )
    return AnalyticsReport(result=result, diagnostics=diagnostics)
