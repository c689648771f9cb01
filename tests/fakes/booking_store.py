import threading
from copy import deepcopy

from cozyhaven.models.bookings import RoomBookingEntry
from cozyhaven.utils.custom_exceptions import ConcurrentUpdateError


class InMemoryStore:
    """Plays the booking, room and payment repositories over plain dicts.

    Writes check the same conditions the DynamoDB transactions carry.
    """

    def __init__(self, rooms):
        self.lock = threading.Lock()
        self.rooms = {room.room_id: room for room in rooms}
        self.bookings = {}
        self.cancellations = {}
        self.paid = set()

    def get_room_by_id(self, room_id):
        with self.lock:
            room = self.rooms.get(room_id)
            return deepcopy(room) if room else None

    def get_active_room_bookings(self, room_id):
        with self.lock:
            return [
                RoomBookingEntry(b.booking_id, b.room_id, b.check_in, b.check_out, b.status)
                for b in self.bookings.values()
                if b.room_id == room_id and b.is_active
            ]

    def add_booking(self, booking, expected_version):
        with self.lock:
            room = self.rooms[booking.room_id]
            if room.booking_version != expected_version or not room.is_reservable:
                raise ConcurrentUpdateError(f"room {room.room_id} changed")
            room.booking_version += 1
            self.bookings[booking.booking_id] = deepcopy(booking)

    def get_booking_by_id(self, booking_id):
        with self.lock:
            booking = self.bookings.get(booking_id)
            return deepcopy(booking) if booking else None

    def get_user_bookings(self, user_id):
        with self.lock:
            return [deepcopy(b) for b in self.bookings.values() if b.user_id == user_id]

    def update_booking_status(self, booking, expected_status, status, cancellation=None):
        with self.lock:
            stored = self.bookings[booking.booking_id]
            if stored.status != expected_status:
                raise ConcurrentUpdateError(f"booking {booking.booking_id} changed")
            stored.status = status
            if cancellation is not None:
                self.cancellations[cancellation.cancellation_id] = cancellation

    def has_completed_payment(self, booking_id):
        return booking_id in self.paid
