from enum import Enum
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


def ranges_overlap(a_in: date, a_out: date, b_in: date, b_out: date) -> bool:
    # half-open: checking out on day D leaves day D free for the next check-in
    return a_in < b_out and b_in < a_out


@dataclass
class Booking:
    booking_id: str
    user_id: str
    room_id: str
    check_in: date
    check_out: date
    num_adults: int
    num_children: int = 0
    total_amount: Decimal = Decimal("0.00")
    status: BookingStatus = BookingStatus.PENDING

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def overlaps(self, check_in: date, check_out: date) -> bool:
        return ranges_overlap(self.check_in, self.check_out, check_in, check_out)

    def can_transition_to(self, target: BookingStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]


@dataclass
class RoomBookingEntry:
    """Index row kept under the room so overlap checks read one partition."""

    booking_id: str
    room_id: str
    check_in: date
    check_out: date
    status: BookingStatus

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def overlaps(self, check_in: date, check_out: date) -> bool:
        return ranges_overlap(self.check_in, self.check_out, check_in, check_out)
