from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class Hotel:
    hotel_id: str
    name: str
    location_id: Optional[str] = None
    description: Optional[str] = None
    has_parking: bool = False
    has_dining: bool = False
    has_wifi: bool = False
    has_room_service: bool = False
    has_pool: bool = False
    has_fitness_center: bool = False
    rating: Optional[Decimal] = None
    rating_version: int = 0


@dataclass
class HotelRatingUpdate:
    hotel_id: str
    rating: Optional[Decimal]
    expected_version: int
    review_count: int = 0
