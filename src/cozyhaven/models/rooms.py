from enum import Enum
from decimal import Decimal
from typing import Optional
from dataclasses import dataclass


class BedType(str, Enum):
    SINGLE = "SINGLE"
    DOUBLE = "DOUBLE"
    KING = "KING"


class RoomStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"
    MAINTENANCE = "MAINTENANCE"


@dataclass
class Room:
    room_id: str
    hotel_id: str
    bed_type: BedType
    base_fare: Decimal
    max_occupancy: int
    status: RoomStatus = RoomStatus.AVAILABLE
    room_size: Optional[str] = None
    is_ac: bool = True
    booking_version: int = 0

    @property
    def is_reservable(self) -> bool:
        return self.status != RoomStatus.MAINTENANCE
