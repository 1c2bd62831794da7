from dataclasses import asdict
from datetime import date, datetime, timezone
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from goldpulse.api.deps import get_active_retailer_id, get_current_user, get_db
from goldpulse.core.config import get_settings
from goldpulse.core.security import DASHBOARD_ROLES, require_roles
from goldpulse.models.user import User
from goldpulse.schemas.pulse import (
    AnalyticsOut,
    DiagnosticsOut,
    DisplayOut,
    PeriodOut,
    PulseRequest,
    PulseResponse,
)
from goldpulse.services.analytics import AnalyticsReport, compute_analytics
from goldpulse.services.bucketing import Granularity
from goldpulse.services.formatting import format_currency, format_day_label, format_grams, format_pct
from goldpulse.services.record_loader import load_retailer_records
from goldpulse.services.records import Period


router = APIRouter(prefix="/dashboard", tags=["dashboard"])
logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _resolve_period(payload: PulseRequest, today: date) -> tuple[Period, bool]:
    if payload.start is None and payload.end is None:
        return Period.current_month(today), True
    if payload.start is None or payload.end is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Both start and end are required when a period is given.",
        )
    period = Period(start=payload.start, end=payload.end)
    if not period.is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Period end must not be before its start.",
        )
    return period, False


def _display(report: AnalyticsReport) -> DisplayOut:
    result = report.result
    return DisplayOut(
        period_collections=format_currency(result.summary.period_collections),
        portfolio_value=format_currency(result.summary.portfolio_value),
        growth_rate=format_pct(result.xirr_pct),
        gold_allocated=format_grams(result.summary.gold_allocated),
        silver_allocated=format_grams(result.summary.silver_allocated),
        revenue_by_metal={metal: format_currency(amount) for metal, amount in result.revenue_by_metal.items()},
    )


@router.post("/pulse", response_model=PulseResponse)
def get_pulse(
    payload: PulseRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PulseResponse:
    require_roles(current_user, DASHBOARD_ROLES)
    retailer_id = get_active_retailer_id(db, current_user)

    payload = payload or PulseRequest()
    today = _today()
    period, fallback = _resolve_period(payload, today)
    granularity = payload.granularity or Granularity(get_settings().pulse_default_granularity)

    records = load_retailer_records(db, retailer_id)
    report = compute_analytics(retailer_id, period, records, granularity=granularity)
    logger.info(
        "Pulse computed retailer=%s period=%s..%s granularity=%s xirr=%s",
        retailer_id,
        period.start,
        period.end,
        granularity.value,
        report.diagnostics.xirr_status,
    )

    return PulseResponse(
        period=PeriodOut(start=period.start, end=period.end),
        analytics=AnalyticsOut.model_validate(asdict(report.result)),
        diagnostics=DiagnosticsOut(
            retailer_id=retailer_id,
            period_fallback=fallback,
            **asdict(report.diagnostics),
        ),
        display=_display(report),
        today_label=format_day_label(today),
    )
