from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from goldpulse.models.customer import Customer
from goldpulse.models.enrollment import Enrollment
from goldpulse.models.enums import (
    CustomerStatus,
    EnrollmentStatus,
    Karat,
    PaymentStatus,
    RoleName,
    TransactionType,
)
from goldpulse.models.rate import GoldRate
from goldpulse.models.retailer import Retailer
from goldpulse.models.transaction import Transaction
from goldpulse.models.user import User
from goldpulse.utils.decimal_math import grams, money

DEMO_RETAILER_CODE = "DEMO"
DEMO_MONTHS = 6

BASE_RATES = {
    Karat.k18: Decimal("5400.00"),
    Karat.k22: Decimal("6600.00"),
    Karat.k24: Decimal("7200.00"),
    Karat.silver: Decimal("88.00"),
}
# monthly drift applied to every karat, oldest month first
RATE_DRIFT = [
    Decimal("0.000"),
    Decimal("0.012"),
    Decimal("0.018"),
    Decimal("0.009"),
    Decimal("0.025"),
    Decimal("0.031"),
]

DEMO_CUSTOMERS = [
    ("Asha Menon", "9800000001", Karat.k22, Decimal("5000.00")),
    ("Ravi Kumar", "9800000002", Karat.k24, Decimal("10000.00")),
    ("Fatima Sheikh", "9800000003", Karat.silver, Decimal("2000.00")),
]


def _month_start(today: date, months_back: int) -> datetime:
    index = today.year * 12 + (today.month - 1) - months_back
    return datetime(index // 12, index % 12 + 1, 1, tzinfo=timezone.utc)


def _get_or_create_retailer(db: Session, *, code: str, name: str) -> tuple[Retailer, bool]:
    retailer = db.scalar(select(Retailer).where(Retailer.code == code))
    if retailer is not None:
        return retailer, False

    retailer = Retailer(code=code, name=name, is_active=True)
    db.add(retailer)
    db.flush()
    return retailer, True


def _get_or_create_user(
    db: Session,
    *,
    retailer_id: int,
    email: str,
    full_name: str,
    role: RoleName,
) -> User:
    user = db.scalar(select(User).where(User.email == email))
    if user is not None:
        return user

    user = User(
        retailer_id=retailer_id,
        email=email,
        full_name=full_name,
        role=role,
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


def _seed_rates(db: Session, *, retailer_id: int, user_id: int, today: date) -> dict[tuple[int, Karat], Decimal]:
    rates: dict[tuple[int, Karat], Decimal] = {}
    for offset, drift in enumerate(RATE_DRIFT):
        months_back = DEMO_MONTHS - 1 - offset
        effective_from = _month_start(today, months_back)
        for karat, base in BASE_RATES.items():
            rate = money(base * (Decimal("1") + drift))
            rates[(months_back, karat)] = rate
            db.add(
                GoldRate(
                    retailer_id=retailer_id,
                    karat=karat,
                    rate_per_gram=rate,
                    effective_from=effective_from,
                    created_by_user_id=user_id,
                )
            )
    return rates


def seed_demo_data(db: Session, *, today: date | None = None) -> Retailer:
    today = today or datetime.now(timezone.utc).date()
    retailer, created = _get_or_create_retailer(db, code=DEMO_RETAILER_CODE, name="Demo Jewellers")
    if not created:
        return retailer

    admin = _get_or_create_user(
        db,
        retailer_id=retailer.id,
        email="admin@goldpulse.dev",
        full_name="Demo Admin",
        role=RoleName.admin,
    )
    _get_or_create_user(
        db,
        retailer_id=retailer.id,
        email="staff@goldpulse.dev",
        full_name="Demo Staff",
        role=RoleName.staff,
    )
    rates = _seed_rates(db, retailer_id=retailer.id, user_id=admin.id, today=today)

    oldest = _month_start(today, DEMO_MONTHS - 1)
    for full_name, phone, karat, installment in DEMO_CUSTOMERS:
        customer = Customer(
            retailer_id=retailer.id,
            full_name=full_name,
            phone=phone,
            status=CustomerStatus.active,
            created_at=oldest,
        )
        db.add(customer)
        db.flush()
        enrollment = Enrollment(
            retailer_id=retailer.id,
            customer_id=customer.id,
            plan_name=f"{karat.value} Monthly Savings",
            karat=karat,
            status=EnrollmentStatus.active,
            commitment_amount=installment,
            created_at=oldest,
        )
        db.add(enrollment)
        db.flush()
        for months_back in range(DEMO_MONTHS - 1, -1, -1):
            paid_at = _month_start(today, months_back).replace(hour=10)
            rate = rates[(months_back, karat)]
            db.add(
                Transaction(
                    retailer_id=retailer.id,
                    enrollment_id=enrollment.id,
                    customer_id=customer.id,
                    txn_type=TransactionType.installment,
                    payment_status=PaymentStatus.success,
                    mode="UPI",
                    amount_paid=installment,
                    grams_allocated_snapshot=grams(installment / rate),
                    paid_at=paid_at,
                )
            )

    db.commit()
    return retailer
