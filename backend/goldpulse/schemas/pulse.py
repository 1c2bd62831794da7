from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, computed_field

from goldpulse.services.bucketing import Granularity


class PulseRequest(BaseModel):
    start: date | None = None
    end: date | None = None
    granularity: Granularity | None = None


class PeriodOut(BaseModel):
    start: date
    end: date


class CustomerMetricsOut(BaseModel):
    total: int
    new: int
    active: int
    dormant: int
    pending: int
    active_rate_pct: Decimal


class SchemeHealthOut(BaseModel):
    total: int
    counts: dict[str, int]
    ratios: dict[str, Decimal]

    @computed_field
    @property
    def is_empty(self) -> bool:
        return self.total == 0


class PortfolioPointOut(BaseModel):
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


class EfficiencyPointOut(BaseModel):
    month: str
    invested: Decimal
    grams: Decimal
    efficiency_pct: Decimal | None
    price_index_pct: Decimal | None


class RateQuoteOut(BaseModel):
    karat: str
    rate_per_gram: Decimal
    effective_from: datetime


class SummaryOut(BaseModel):
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


class AnalyticsOut(BaseModel):
    retailer_id: int
    granularity: str
    revenue_by_metal: dict[str, Decimal]
    customer_metrics: CustomerMetricsOut
    scheme_health: SchemeHealthOut
    portfolio_series: list[PortfolioPointOut]
    efficiency_series: list[EfficiencyPointOut]
    xirr: float | None
    xirr_pct: Decimal | None
    summary: SummaryOut
    current_rates: dict[str, RateQuoteOut | None]


class DiagnosticsOut(BaseModel):
    retailer_id: int
    period_fallback: bool
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


class DisplayOut(BaseModel):
    period_collections: str
    portfolio_value: str
    growth_rate: str
    gold_allocated: str
    silver_allocated: str
    revenue_by_metal: dict[str, str]


class PulseResponse(BaseModel):
    period: PeriodOut
    analytics: AnalyticsOut
    diagnostics: DiagnosticsOut
    display: DisplayOut
    today_label: str
