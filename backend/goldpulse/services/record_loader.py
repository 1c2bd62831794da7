from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from goldpulse.models.customer import Customer
from goldpulse.models.enrollment import Enrollment
from goldpulse.models.rate import GoldRate
from goldpulse.models.redemption import Redemption
from goldpulse.models.transaction import Transaction
from goldpulse.services.records import (
    CustomerRecord,
    EnrollmentRecord,
    RateSnapshot,
    RawRecords,
    RedemptionRecord,
    TransactionRecord,
)


def load_retailer_records(db: Session, retailer_id: int) -> RawRecords:
    """Snapshot every analytics input of one retailer, scoped by ``retailer_id``."""
    customers = db.scalars(
        select(Customer).where(Customer.retailer_id == retailer_id).order_by(Customer.id)
    ).all()
    enrollments = db.scalars(
        select(Enrollment).where(Enrollment.retailer_id == retailer_id).order_by(Enrollment.id)
    ).all()
    transactions = db.scalars(
        select(Transaction)
        .where(Transaction.retailer_id == retailer_id)
        .order_by(Transaction.paid_at.asc(), Transaction.id.asc())
    ).all()
    redemptions = db.scalars(
        select(Redemption).where(Redemption.retailer_id == retailer_id).order_by(Redemption.id)
    ).all()
    rates = db.scalars(
        select(GoldRate)
        .where(GoldRate.retailer_id == retailer_id)
        .order_by(GoldRate.effective_from.asc(), GoldRate.id.asc())
    ).all()

    return RawRecords(
        customers=tuple(
            CustomerRecord(id=row.id, status=row.status, created_at=row.created_at) for row in customers
        ),
        enrollments=tuple(
            EnrollmentRecord(
                id=row.id,
                customer_id=row.customer_id,
                karat=row.karat,
                status=row.status,
                created_at=row.created_at,
                commitment_amount=row.commitment_amount,
            )
            for row in enrollments
        ),
        transactions=tuple(
            TransactionRecord(
                id=row.id,
                amount_paid=row.amount_paid,
                paid_at=row.paid_at,
                txn_type=row.txn_type,
                payment_status=row.payment_status,
                grams_allocated=row.grams_allocated_snapshot,
                enrollment_id=row.enrollment_id,
                customer_id=row.customer_id,
                store_id=row.store_id,
            )
            for row in transactions
        ),
        redemptions=tuple(
            RedemptionRecord(
                id=row.id,
                enrollment_id=row.enrollment_id,
                customer_id=row.customer_id,
                status=row.redemption_status,
                requested_at=row.requested_at,
                completed_at=row.completed_at,
                grams_redeemed=row.grams_redeemed,
                value_realized=row.value_realized,
            )
            for row in redemptions
        ),
        rate_snapshots=tuple(
            RateSnapshot(karat=row.karat, rate_per_gram=row.rate_per_gram, effective_from=row.effective_from)
            for row in rates
        ),
    )
