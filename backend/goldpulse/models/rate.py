from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer, Numeric, func
from sqlalchemy.orm import Mapped, mapped_column

from goldpulse.db.base import Base
from goldpulse.models.enums import Karat


class GoldRate(Base):
    """Append-only metal rate snapshot. Rows are never updated."""

    __tablename__ = "gold_rates"
    __table_args__ = (
        CheckConstraint("rate_per_gram > 0", name="ck_gold_rates_rate_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    retailer_id: Mapped[int] = mapped_column(
        ForeignKey("retailers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    karat: Mapped[Karat] = mapped_column(Enum(Karat, name="karat"), nullable=False)
    rate_per_gram: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    effective_from: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    created_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("user_profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
