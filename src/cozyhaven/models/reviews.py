from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class Review:
    review_id: str
    user_id: str
    room_id: str
    rating: int
    comment: Optional[str] = None
    review_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    hotel_id: Optional[str] = None


@dataclass
class ReviewChange:
    """One row of a review write: before is None on insert, after is None on delete."""

    before: Optional[Review] = None
    after: Optional[Review] = None
