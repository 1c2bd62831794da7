"""Typed, read-only inputs of the analytics engine.

Optional fields are ``None`` when the source row lacks them; the aggregator
owns the default for each (see ``services.analytics``).
"""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from goldpulse.models.enums import (
    CustomerStatus,
    EnrollmentStatus,
    Karat,
    PaymentStatus,
    RedemptionStatus,
    TransactionType,
)
from goldpulse.services.bucketing import end_of_day, start_of_day


@dataclass(frozen=True)
class Period:
    start: date
    end: date

    @classmethod
    def current_month(cls, today: date) -> Period:
        last_day = monthrange(today.year, today.month)[1]
        return cls(start=date(today.year, today.month, 1), end=date(today.year, today.month, last_day))

    @property
    def start_at(self) -> datetime:
        return start_of_day(self.start)

    @property
    def end_at(self) -> datetime:
        """Exclusive upper bound: midnight after the last day."""
        return end_of_day(self.end)

    @property
    def is_valid(self) -> bool:
        return self.end >= self.start

    def contains(self, instant: datetime) -> bool:
        return self.start_at <= instant < self.end_at


@dataclass(frozen=True)
class TransactionRecord:
    id: int
    amount_paid: Decimal | None
    paid_at: datetime | None
    txn_type: TransactionType = TransactionType.installment
    payment_status: PaymentStatus = PaymentStatus.success
    grams_allocated: Decimal | None = None
    enrollment_id: int | None = None
    customer_id: int | None = None
    store_id: int | None = None


@dataclass(frozen=True)
class EnrollmentRecord:
    id: int
    customer_id: int
    karat: Karat | None
    status: EnrollmentStatus = EnrollmentStatus.active
    created_at: datetime | None = None
    commitment_amount: Decimal | None = None


@dataclass(frozen=True)
class CustomerRecord:
    id: int
    status: CustomerStatus = CustomerStatus.active
    created_at: datetime | None = None


@dataclass(frozen=True)
class RedemptionRecord:
    id: int
    enrollment_id: int | None
    customer_id: int | None = None
    status: RedemptionStatus = RedemptionStatus.pending
    requested_at: datetime | None = None
    completed_at: datetime | None = None
    grams_redeemed: Decimal | None = None
    value_realized: Decimal | None = None


@dataclass(frozen=True)
class RateSnapshot:
    karat: Karat
    rate_per_gram: Decimal
    effective_from: datetime


@dataclass(frozen=True)
class RawRecords:
    transactions: tuple[TransactionRecord, ...] = field(default_factory=tuple)
    enrollments: tuple[EnrollmentRecord, ...] = field(default_factory=tuple)
    customers: tuple[CustomerRecord, ...] = field(default_factory=tuple)
    redemptions: tuple[RedemptionRecord, ...] = field(default_factory=tuple)
    rate_snapshots: tuple[RateSnapshot, ...] = field(default_factory=tuple)
