from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from goldpulse.api.deps import get_active_retailer_id, get_current_user, get_db
from goldpulse.core.security import DASHBOARD_ROLES, require_roles
from goldpulse.models.enums import Karat
from goldpulse.models.rate import GoldRate
from goldpulse.models.user import User
from goldpulse.schemas.rates import CurrentRatesResponse, RateCreate, RateOut
from goldpulse.utils.decimal_math import money


router = APIRouter(prefix="/rates", tags=["rates"])
logger = logging.getLogger(__name__)


@router.get("/current", response_model=CurrentRatesResponse)
def get_current_rates(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CurrentRatesResponse:
    retailer_id = get_active_retailer_id(db, current_user)
    now = datetime.now(timezone.utc)
    rates: dict[str, RateOut | None] = {}
    for karat in Karat:
        row = db.scalar(
            select(GoldRate)
            .where(
                GoldRate.retailer_id == retailer_id,
                GoldRate.karat == karat,
                GoldRate.effective_from <= now,
            )
            .order_by(GoldRate.effective_from.desc(), GoldRate.id.desc())
            .limit(1)
        )
        rates[karat.value] = RateOut.model_validate(row) if row is not None else None
    return CurrentRatesResponse(retailer_id=retailer_id, rates=rates)


@router.post("", response_model=RateOut, status_code=status.HTTP_201_CREATED)
def publish_rate(
    payload: RateCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RateOut:
    require_roles(current_user, DASHBOARD_ROLES)
    retailer_id = get_active_retailer_id(db, current_user)
    row = GoldRate(
        retailer_id=retailer_id,
        karat=payload.karat,
        rate_per_gram=money(payload.rate_per_gram),
        effective_from=datetime.now(timezone.utc),
        created_by_user_id=current_user.id,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Published %s rate %s for retailer %s", payload.karat.value, row.rate_per_gram, retailer_id)
    return RateOut.model_validate(row)
