from goldpulse.models.customer import Customer
from goldpulse.models.enrollment import Enrollment
from goldpulse.models.enums import (
    CustomerStatus,
    EnrollmentStatus,
    Karat,
    PaymentStatus,
    RedemptionStatus,
    RoleName,
    TransactionType,
)
from goldpulse.models.rate import GoldRate
from goldpulse.models.redemption import Redemption
from goldpulse.models.retailer import Retailer
from goldpulse.models.transaction import Transaction
from goldpulse.models.user import User

__all__ = [
    "Customer",
    "CustomerStatus",
    "Enrollment",
    "EnrollmentStatus",
    "GoldRate",
    "Karat",
    "PaymentStatus",
    "Redemption",
    "RedemptionStatus",
    "Retailer",
    "RoleName",
    "Transaction",
    "TransactionType",
    "User",
]
