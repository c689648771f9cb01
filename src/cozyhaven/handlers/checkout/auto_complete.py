import logging
import os
from boto3 import resource

from cozyhaven.repository.booking_repo import BookingRepository
from cozyhaven.repository.payment_repo import PaymentRepository
from cozyhaven.repository.room_repo import RoomRepository
from cozyhaven.services.booking_service import BookingService
from cozyhaven.utils.custom_exceptions import InvalidTransition, NotFoundException

logger = logging.getLogger()
logger.setLevel(logging.INFO)

TABLE_NAME = os.environ.get("TABLE_NAME")
AWS_REGION = os.environ.get("AWS_REGION", "ap-south-1")

dynamodb = resource("dynamodb", region_name=AWS_REGION)
table = dynamodb.Table(TABLE_NAME)

booking_repo = BookingRepository(table)
room_repo = RoomRepository(table)
payment_repo = PaymentRepository(table)
booking_service = BookingService(
    booking_repo=booking_repo, room_repo=room_repo, payment_repo=payment_repo
)


def auto_complete(event, context):
    booking_id = event.get("booking_id")

    if not booking_id:
        raise KeyError("Missing booking_id in event")

    try:
        booking = booking_service.complete_booking(booking_id)
        return {"booking_id": booking_id, "status": booking.status.value}
    except (NotFoundException, InvalidTransition) as err:
        logger.warning(f"Auto-complete skipped: {err}")
        return {"booking_id": booking_id, "status": None}
