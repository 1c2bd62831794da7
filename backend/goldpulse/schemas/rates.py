from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from goldpulse.models.enums import Karat
from goldpulse.schemas.common import ORMModel


class RateCreate(BaseModel):
    karat: Karat
    rate_per_gram: Decimal = Field(gt=Decimal("0"))


class RateOut(ORMModel):
    id: int
    karat: Karat
    rate_per_gram: Decimal
    effective_from: datetime
    created_by_user_id: int | None = None


class CurrentRatesResponse(BaseModel):
    retailer_id: int
    rates: dict[str, RateOut | None]
