import logging
from typing import Optional
from cozyhaven.models.bookings import Booking, BookingStatus
from cozyhaven.models.cancellations import Cancellation
from cozyhaven.models.rooms import Room
from cozyhaven.repository.booking_repo import BookingRepository
from cozyhaven.repository.room_repo import RoomRepository
from cozyhaven.utils.constants import MAX_TRANSACTION_RETRIES
from cozyhaven.utils.custom_exceptions import (
    ConcurrencyConflict,
    ConcurrentUpdateError,
    NotFoundException,
    RoomUnavailable,
)

logger = logging.getLogger(__name__)


class AvailabilityGuard:
    """Reserves room-nights so that active bookings of a room never overlap.

    A reservation reads the room's booking_version, checks the active
    bookings for an overlap and commits with the version as a condition. A
    lost race re-reads and tries again.
    """

    def __init__(
        self,
        booking_repo: BookingRepository,
        room_repo: RoomRepository,
        max_attempts: int = MAX_TRANSACTION_RETRIES,
    ):
        self.booking_repo = booking_repo
        self.room_repo = room_repo
        self.max_attempts = max_attempts

    def reserve(self, room: Room, booking: Booking) -> Booking:
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                room = self.room_repo.get_room_by_id(room.room_id)
                if room is None:
                    raise NotFoundException("room", booking.room_id)

            if not room.is_reservable:
                raise RoomUnavailable(f"room {room.room_id} is under maintenance")

            self._ensure_free(booking)

            try:
                self.booking_repo.add_booking(
                    booking, expected_version=room.booking_version
                )
            except ConcurrentUpdateError:
                logger.info(
                    f"Reservation of room {room.room_id} lost a race "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
                continue

            logger.info(
                f"Reserved room {room.room_id} for {booking.nights} night(s) from "
                f"{booking.check_in} as booking {booking.booking_id}"
            )
            return booking

        raise ConcurrencyConflict(
            f"room {room.room_id} is contended, retry the reservation"
        )

    def release(
        self,
        booking: Booking,
        cancellation: Optional[Cancellation] = None,
    ):
        """Cancel the booking's rows; the room-nights free up with the status change."""
        self.booking_repo.update_booking_status(
            booking,
            expected_status=booking.status,
            status=BookingStatus.CANCELLED,
            cancellation=cancellation,
        )
        logger.info(f"Released room {booking.room_id} held by booking {booking.booking_id}")

    def _ensure_free(self, booking: Booking):
        for entry in self.booking_repo.get_active_room_bookings(booking.room_id):
            if entry.booking_id != booking.booking_id and entry.overlaps(
                booking.check_in, booking.check_out
            ):
                raise RoomUnavailable(
                    f"room {booking.room_id} is already booked between "
                    f"{entry.check_in} and {entry.check_out}"
                )
