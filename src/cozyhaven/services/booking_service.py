from cozyhaven.repository.booking_repo import BookingRepository
from cozyhaven.repository.room_repo import RoomRepository
from cozyhaven.repository.payment_repo import PaymentRepository
from cozyhaven.models.bookings import Booking, BookingStatus
from cozyhaven.models.cancellations import Cancellation
from cozyhaven.schemas.bookings import BookingRequest
from cozyhaven.services.availability_service import AvailabilityGuard
from cozyhaven.services.pricing_service import compute_price
from cozyhaven.services.schedule_service import SchedulerService
from cozyhaven.utils.constants import CURRENCY_PLACES
from cozyhaven.utils.custom_exceptions import (
    ConcurrentUpdateError,
    InvalidDateRange,
    InvalidOccupancy,
    InvalidTransition,
    NotFoundException,
    PaymentNotCompleted,
)
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, Optional
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)

RefundPolicy = Callable[[Booking], Decimal]


def full_refund(booking: Booking) -> Decimal:
    return booking.total_amount


class BookingService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        room_repo: RoomRepository,
        payment_repo: PaymentRepository,
        availability_guard: Optional[AvailabilityGuard] = None,
        schedule_service: Optional[SchedulerService] = None,
        refund_policy: RefundPolicy = full_refund,
    ):
        self.booking_repo = booking_repo
        self.room_repo = room_repo
        self.payment_repo = payment_repo
        self.availability_guard = availability_guard or AvailabilityGuard(
            booking_repo, room_repo
        )
        self.schedule_service = schedule_service
        self.refund_policy = refund_policy

    def add_booking(self, req: BookingRequest, user_id: str) -> Booking:
        return self.create_booking(
            user_id=user_id,
            room_id=req.room_id,
            check_in=req.check_in,
            check_out=req.check_out,
            num_adults=req.num_adults,
            num_children=req.num_children,
        )

    def create_booking(
        self,
        user_id: str,
        room_id: str,
        check_in: date,
        check_out: date,
        num_adults: int,
        num_children: int = 0,
    ) -> Booking:
        if check_out <= check_in:
            raise InvalidDateRange("check_out must be after check_in")

        room = self.room_repo.get_room_by_id(room_id)
        if room is None:
            raise NotFoundException("room", room_id, 404)

        # pricing validates the occupancy before the capacity check
        total_amount = compute_price(
            room.base_fare, room.bed_type, num_adults, num_children
        )
        if num_adults + num_children > room.max_occupancy:
            raise InvalidOccupancy(
                f"room {room_id} sleeps at most {room.max_occupancy} guests"
            )

        booking = Booking(
            booking_id=str(uuid4()),
            user_id=user_id,
            room_id=room_id,
            check_in=check_in,
            check_out=check_out,
            num_adults=num_adults,
            num_children=num_children,
            total_amount=total_amount,
        )
        return self.availability_guard.reserve(room, booking)

    def confirm_booking(self, booking_id: str) -> Booking:
        """Confirm a paid PENDING booking and schedule its completion.

        Confirming a booking that is already CONFIRMED only re-arms the
        completion schedule, so a redelivered payment result recovers from a
        scheduler failure on the first delivery.
        """
        booking = self.get_booking(booking_id)
        if booking.status == BookingStatus.CONFIRMED:
            logger.info(f"Booking {booking_id} already confirmed, re-arming completion")
            self._schedule_completion(booking)
            return booking

        self._ensure_transition(booking, BookingStatus.CONFIRMED)

        if not self.payment_repo.has_completed_payment(booking_id):
            raise PaymentNotCompleted(f"booking '{booking_id}' has no completed payment")

        self._transition(booking, BookingStatus.CONFIRMED)
        self._schedule_completion(booking)
        return booking

    def complete_booking(self, booking_id: str) -> Booking:
        booking = self.get_booking(booking_id)
        self._ensure_transition(booking, BookingStatus.COMPLETED)
        self._transition(booking, BookingStatus.COMPLETED)
        return booking

    def cancel_booking(
        self,
        booking_id: str,
        expected_status: Optional[BookingStatus] = None,
    ) -> Cancellation:
        booking = self.get_booking(booking_id)
        if expected_status is not None and booking.status != expected_status:
            raise InvalidTransition(
                booking_id, booking.status.value, BookingStatus.CANCELLED.value
            )
        self._ensure_transition(booking, BookingStatus.CANCELLED)
        previous = booking.status

        refund = Decimal(str(self.refund_policy(booking))).quantize(
            CURRENCY_PLACES, rounding=ROUND_HALF_UP
        )
        cancellation = Cancellation(
            cancellation_id=str(uuid4()),
            booking_id=booking_id,
            refund_amount=refund,
        )

        try:
            self.availability_guard.release(booking, cancellation=cancellation)
        except ConcurrentUpdateError as err:
            raise self._lost_transition(booking, BookingStatus.CANCELLED) from err
        booking.status = BookingStatus.CANCELLED
        logger.info(f"Booking {booking_id} cancelled from {previous.value}, refund {refund}")

        if self.schedule_service and previous == BookingStatus.CONFIRMED:
            self.schedule_service.cancel_completion(booking_id)
        return cancellation

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repo.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("booking", booking_id, 404)
        return booking

    def get_user_bookings(self, user_id: str) -> List[Booking]:
        return self.booking_repo.get_user_bookings(user_id)

    def _schedule_completion(self, booking: Booking):
        if self.schedule_service:
            self.schedule_service.schedule_completion(
                booking_id=booking.booking_id,
                check_out=booking.check_out,
            )

    @staticmethod
    def _ensure_transition(booking: Booking, target: BookingStatus):
        if not booking.can_transition_to(target):
            raise InvalidTransition(booking.booking_id, booking.status.value, target.value)

    def _transition(self, booking: Booking, target: BookingStatus):
        try:
            self.booking_repo.update_booking_status(
                booking, expected_status=booking.status, status=target
            )
        except ConcurrentUpdateError as err:
            raise self._lost_transition(booking, target) from err
        logger.info(
            f"Booking {booking.booking_id} moved from {booking.status.value} to {target.value}"
        )
        booking.status = target

    def _lost_transition(self, booking: Booking, target: BookingStatus) -> InvalidTransition:
        current = self.booking_repo.get_booking_by_id(booking.booking_id)
        status = current.status.value if current else booking.status.value
        return InvalidTransition(booking.booking_id, status, target.value)
