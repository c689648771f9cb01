from enum import Enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


@dataclass
class Payment:
    payment_id: str
    booking_id: str
    amount: Decimal
    payment_method: str
    payment_date: datetime
    status: PaymentStatus = PaymentStatus.PENDING
