from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal


class CancellationStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSED = "PROCESSED"
    REJECTED = "REJECTED"


@dataclass
class Cancellation:
    cancellation_id: str
    booking_id: str
    refund_amount: Decimal
    cancellation_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: CancellationStatus = CancellationStatus.PENDING
