from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from goldpulse.db.base import Base
from goldpulse.models.enums import PaymentStatus, TransactionType


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    retailer_id: Mapped[int] = mapped_column(
        ForeignKey("retailers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    enrollment_id: Mapped[int | None] = mapped_column(
        ForeignKey("enrollments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    customer_id: Mapped[int | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
    )
    store_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    txn_type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, name="transaction_type"),
        default=TransactionType.installment,
        nullable=False,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status"),
        default=PaymentStatus.pending,
        nullable=False,
    )
    mode: Mapped[str | None] = mapped_column(String(30), nullable=True)
    amount_paid: Mapped[Decimal | None] = mapped_column(Numeric(24, 2), nullable=True)
    grams_allocated_snapshot: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    enrollment: Mapped["Enrollment | None"] = relationship("Enrollment", back_populates="transactions")
