import unittest
from unittest.mock import ANY, MagicMock
from datetime import date
from decimal import Decimal

from cozyhaven.services.booking_service import BookingService, full_refund
from cozyhaven.models.bookings import Booking, BookingStatus
from cozyhaven.models.rooms import BedType, Room
from cozyhaven.schemas.bookings import BookingRequest
from cozyhaven.utils.custom_exceptions import (
    ConcurrentUpdateError,
    InvalidDateRange,
    InvalidOccupancy,
    InvalidTransition,
    NotFoundException,
    PaymentNotCompleted,
    RoomUnavailable,
)


class TestBookingService(unittest.TestCase):

    def setUp(self):
        self.booking_repo = MagicMock()
        self.room_repo = MagicMock()
        self.payment_repo = MagicMock()
        self.guard = MagicMock()
        self.guard.reserve.side_effect = lambda room, booking: booking
        self.scheduler = MagicMock()

        self.service = BookingService(
            booking_repo=self.booking_repo,
            room_repo=self.room_repo,
            payment_repo=self.payment_repo,
            availability_guard=self.guard,
            schedule_service=self.scheduler,
        )

        self.room = Room(
            room_id="r2",
            hotel_id="h1",
            bed_type=BedType.DOUBLE,
            base_fare=Decimal("150.00"),
            max_occupancy=4,
        )
        self.room_repo.get_room_by_id.return_value = self.room

    def _booking(self, status):
        return Booking(
            booking_id="b1",
            user_id="u1",
            room_id="r2",
            check_in=date(2026, 5, 1),
            check_out=date(2026, 5, 3),
            num_adults=2,
            total_amount=Decimal("150.00"),
            status=status,
        )

    def test_create_booking_prices_and_reserves(self):
        booking = self.service.create_booking(
            "u1", "r2", date(2026, 5, 1), date(2026, 5, 3), num_adults=3, num_children=0
        )

        self.guard.reserve.assert_called_once_with(self.room, booking)
        self.assertEqual(booking.total_amount, Decimal("210.00"))
        self.assertEqual(booking.status, BookingStatus.PENDING)
        self.assertEqual(booking.user_id, "u1")
        self.assertTrue(booking.booking_id)

    def test_add_booking_from_request(self):
        req = BookingRequest(
            room_id="r2", check_in=date(2026, 5, 1), check_out=date(2026, 5, 2), num_adults=2
        )

        booking = self.service.add_booking(req, "u1")

        self.assertEqual(booking.total_amount, Decimal("150.00"))
        self.guard.reserve.assert_called_once()

    def test_create_booking_invalid_dates(self):
        with self.assertRaises(InvalidDateRange):
            self.service.create_booking("u1", "r2", date(2026, 5, 3), date(2026, 5, 3), 1)

        self.room_repo.get_room_by_id.assert_not_called()
        self.guard.reserve.assert_not_called()

    def test_create_booking_room_not_found(self):
        self.room_repo.get_room_by_id.return_value = None

        with self.assertRaises(NotFoundException):
            self.service.create_booking("u1", "missing", date(2026, 5, 1), date(2026, 5, 2), 1)

        self.guard.reserve.assert_not_called()

    def test_create_booking_over_max_occupancy(self):
        with self.assertRaises(InvalidOccupancy):
            self.service.create_booking("u1", "r2", date(2026, 5, 1), date(2026, 5, 2), 3, 2)

        self.guard.reserve.assert_not_called()

    def test_create_booking_without_adults(self):
        with self.assertRaises(InvalidOccupancy):
            self.service.create_booking("u1", "r2", date(2026, 5, 1), date(2026, 5, 2), 0, 1)

        self.guard.reserve.assert_not_called()

    def test_create_booking_unavailable(self):
        self.guard.reserve.side_effect = RoomUnavailable("taken")

        with self.assertRaises(RoomUnavailable):
            self.service.create_booking("u1", "r2", date(2026, 5, 1), date(2026, 5, 2), 1)

    def test_default_guard_is_built_from_repos(self):
        service = BookingService(self.booking_repo, self.room_repo, self.payment_repo)

        self.assertIs(service.availability_guard.booking_repo, self.booking_repo)
        self.assertIs(service.availability_guard.room_repo, self.room_repo)
        self.assertIsNone(service.schedule_service)

    def test_confirm_booking_success(self):
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.PENDING)
        self.payment_repo.has_completed_payment.return_value = True

        booking = self.service.confirm_booking("b1")

        self.assertEqual(booking.status, BookingStatus.CONFIRMED)
        self.booking_repo.update_booking_status.assert_called_once_with(
            ANY, expected_status=BookingStatus.PENDING, status=BookingStatus.CONFIRMED
        )
        self.scheduler.schedule_completion.assert_called_once_with(
            booking_id="b1", check_out=date(2026, 5, 3)
        )

    def test_confirm_booking_requires_completed_payment(self):
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.PENDING)
        self.payment_repo.has_completed_payment.return_value = False

        with self.assertRaises(PaymentNotCompleted):
            self.service.confirm_booking("b1")

        self.booking_repo.update_booking_status.assert_not_called()
        self.scheduler.schedule_completion.assert_not_called()

    def test_confirm_cancelled_booking_fails(self):
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.CANCELLED)

        with self.assertRaises(InvalidTransition):
            self.service.confirm_booking("b1")

        self.payment_repo.has_completed_payment.assert_not_called()

    def test_confirm_booking_not_found(self):
        self.booking_repo.get_booking_by_id.return_value = None

        with self.assertRaises(NotFoundException):
            self.service.confirm_booking("missing")

    def test_confirm_lost_race_reports_current_status(self):
        self.booking_repo.get_booking_by_id.side_effect = [
            self._booking(BookingStatus.PENDING),
            self._booking(BookingStatus.CANCELLED),
        ]
        self.payment_repo.has_completed_payment.return_value = True
        self.booking_repo.update_booking_status.side_effect = ConcurrentUpdateError("moved")

        with self.assertRaises(InvalidTransition) as ctx:
            self.service.confirm_booking("b1")

        self.assertEqual(ctx.exception.current, "CANCELLED")
        self.scheduler.schedule_completion.assert_not_called()

    def test_confirm_again_rearms_completion(self):
        booking = self._booking(BookingStatus.PENDING)
        self.booking_repo.get_booking_by_id.side_effect = [
            booking,
            self._booking(BookingStatus.CONFIRMED),
        ]
        self.payment_repo.has_completed_payment.return_value = True
        self.scheduler.schedule_completion.side_effect = [RuntimeError("throttled"), True]

        with self.assertRaises(RuntimeError):
            self.service.confirm_booking("b1")
        result = self.service.confirm_booking("b1")

        self.assertEqual(result.status, BookingStatus.CONFIRMED)
        self.assertEqual(self.scheduler.schedule_completion.call_count, 2)
        self.booking_repo.update_booking_status.assert_called_once()

    def test_complete_booking_success(self):
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.CONFIRMED)

        booking = self.service.complete_booking("b1")

        self.assertEqual(booking.status, BookingStatus.COMPLETED)
        self.booking_repo.update_booking_status.assert_called_once_with(
            ANY, expected_status=BookingStatus.CONFIRMED, status=BookingStatus.COMPLETED
        )

    def test_complete_pending_booking_fails(self):
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.PENDING)

        with self.assertRaises(InvalidTransition):
            self.service.complete_booking("b1")

    def test_cancel_confirmed_booking(self):
        booking = self._booking(BookingStatus.CONFIRMED)
        self.booking_repo.get_booking_by_id.return_value = booking

        cancellation = self.service.cancel_booking("b1")

        self.guard.release.assert_called_once_with(booking, cancellation=cancellation)
        self.assertEqual(cancellation.booking_id, "b1")
        self.assertEqual(cancellation.refund_amount, Decimal("150.00"))
        self.assertEqual(booking.status, BookingStatus.CANCELLED)
        self.scheduler.cancel_completion.assert_called_once_with("b1")

    def test_cancel_pending_booking_leaves_schedules_alone(self):
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.PENDING)

        self.service.cancel_booking("b1")

        self.guard.release.assert_called_once()
        self.scheduler.cancel_completion.assert_not_called()

    def test_cancel_uses_refund_policy(self):
        service = BookingService(
            booking_repo=self.booking_repo,
            room_repo=self.room_repo,
            payment_repo=self.payment_repo,
            availability_guard=self.guard,
            refund_policy=lambda b: b.total_amount / 3,
        )
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.PENDING)

        cancellation = service.cancel_booking("b1")

        self.assertEqual(cancellation.refund_amount, Decimal("50.00"))

    def test_cancel_completed_booking_fails(self):
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.COMPLETED)

        with self.assertRaises(InvalidTransition):
            self.service.cancel_booking("b1")

        self.guard.release.assert_not_called()

    def test_cancel_expecting_pending_spares_confirmed_booking(self):
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.CONFIRMED)

        with self.assertRaises(InvalidTransition) as ctx:
            self.service.cancel_booking("b1", expected_status=BookingStatus.PENDING)

        self.assertEqual(ctx.exception.current, "CONFIRMED")
        self.guard.release.assert_not_called()
        self.scheduler.cancel_completion.assert_not_called()

    def test_cancel_expecting_pending(self):
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.PENDING)

        self.service.cancel_booking("b1", expected_status=BookingStatus.PENDING)

        self.guard.release.assert_called_once()

    def test_cancel_twice_fails(self):
        self.booking_repo.get_booking_by_id.return_value = self._booking(BookingStatus.CANCELLED)

        with self.assertRaises(InvalidTransition):
            self.service.cancel_booking("b1")

    def test_cancel_lost_race(self):
        self.booking_repo.get_booking_by_id.side_effect = [
            self._booking(BookingStatus.CONFIRMED),
            self._booking(BookingStatus.COMPLETED),
        ]
        self.guard.release.side_effect = ConcurrentUpdateError("moved")

        with self.assertRaises(InvalidTransition) as ctx:
            self.service.cancel_booking("b1")

        self.assertEqual(ctx.exception.current, "COMPLETED")
        self.scheduler.cancel_completion.assert_not_called()

    def test_full_refund(self):
        self.assertEqual(full_refund(self._booking(BookingStatus.PENDING)), Decimal("150.00"))

    def test_get_user_bookings(self):
        self.booking_repo.get_user_bookings.return_value = ["b1", "b2"]

        result = self.service.get_user_bookings("u1")

        self.booking_repo.get_user_bookings.assert_called_once_with("u1")
        self.assertEqual(result, ["b1", "b2"])


if __name__ == "__main__":
    unittest.main()
