import logging
import os
from boto3 import resource

from cozyhaven.models.bookings import BookingStatus
from cozyhaven.models.payments import PaymentStatus
from cozyhaven.repository.booking_repo import BookingRepository
from cozyhaven.repository.payment_repo import PaymentRepository
from cozyhaven.repository.room_repo import RoomRepository
from cozyhaven.services.booking_service import BookingService
from cozyhaven.services.schedule_service import SchedulerService
from cozyhaven.utils.custom_exceptions import InvalidTransition

logger = logging.getLogger()
logger.setLevel(logging.INFO)

TABLE_NAME = os.environ.get("TABLE_NAME")
AWS_REGION = os.environ.get("AWS_REGION", "ap-south-1")
AUTO_COMPLETE_LAMBDA_ARN = os.environ.get("AUTO_COMPLETE_LAMBDA_ARN")
SCHEDULER_ROLE_ARN = os.environ.get("SCHEDULER_ROLE_ARN")

dynamodb = resource("dynamodb", region_name=AWS_REGION)
table = dynamodb.Table(TABLE_NAME)

booking_repo = BookingRepository(table)
room_repo = RoomRepository(table)
payment_repo = PaymentRepository(table)
scheduler_service = (
    SchedulerService(AUTO_COMPLETE_LAMBDA_ARN, SCHEDULER_ROLE_ARN, region=AWS_REGION)
    if AUTO_COMPLETE_LAMBDA_ARN and SCHEDULER_ROLE_ARN
    else None
)

booking_service = BookingService(
    booking_repo=booking_repo,
    room_repo=room_repo,
    payment_repo=payment_repo,
    schedule_service=scheduler_service,
)


def confirm_booking(event, context):
    """Apply a payment result sent by the payment collaborator.

    COMPLETED confirms the booking, or re-arms the completion schedule of an
    already confirmed one. FAILED cancels a booking that is still PENDING. A
    result for a booking that already moved on is logged and acknowledged.
    """
    booking_id = event.get("booking_id")
    if not booking_id:
        raise KeyError("Missing booking_id in event")

    payment_status = str(event.get("payment_status", PaymentStatus.COMPLETED.value)).upper()

    try:
        if payment_status == PaymentStatus.COMPLETED.value:
            booking = booking_service.confirm_booking(booking_id)
            return {"booking_id": booking_id, "status": booking.status.value}

        if payment_status == PaymentStatus.FAILED.value:
            cancellation = booking_service.cancel_booking(
                booking_id, expected_status=BookingStatus.PENDING
            )
            return {
                "booking_id": booking_id,
                "status": BookingStatus.CANCELLED.value,
                "cancellation_id": cancellation.cancellation_id,
            }

    except InvalidTransition as err:
        logger.warning(f"Payment result for {booking_id} ignored: {err}")
        return {"booking_id": booking_id, "status": err.current}

    raise ValueError(f"Unsupported payment_status {payment_status}")
