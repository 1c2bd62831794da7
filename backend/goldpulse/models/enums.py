
import enum


class RoleName(str, enum.Enum):
    admin = "admin"
    staff = "staff"
    customer = "customer"


class Karat(str, enum.Enum):
    k18 = "18K"
    k22 = "22K"
    k24 = "24K"
    silver = "SILVER"

    @property
    def is_gold(self) -> bool:
        return self is not Karat.silver


class CustomerStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"


class EnrollmentStatus(str, enum.Enum):
    active = "active"
    paused = "paused"
    completed = "completed"
    cancelled = "cancelled"


class TransactionType(str, enum.Enum):
    installment = "installment"
    top_up = "top_up"
    bonus = "bonus"
    adjustment = "adjustment"
    redemption = "redemption"


class PaymentStatus(str, enum.Enum):
    success = "success"
    pending = "pending"
    failed = "failed"


class RedemptionStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    cancelled = "cancelled"
