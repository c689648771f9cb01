import logging
import os
from boto3 import resource

from cozyhaven.repository.booking_repo import BookingRepository
from cozyhaven.repository.payment_repo import PaymentRepository
from cozyhaven.repository.room_repo import RoomRepository
from cozyhaven.services.booking_service import BookingService
from cozyhaven.schemas.bookings import BookingRequest
from cozyhaven.utils.custom_response import send_custom_response
from cozyhaven.utils.custom_exceptions import (
    ConcurrencyConflict,
    InvalidDateRange,
    InvalidOccupancy,
    NotFoundException,
    RoomUnavailable,
    UnknownBedType,
)
from pydantic import ValidationError

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
    booking_repo=booking_repo,
    room_repo=room_repo,
    payment_repo=payment_repo,
)


def create_booking(event, context):
    try:
        user_id = event["requestContext"]["authorizer"]["user_id"]
    except (KeyError, TypeError):
        return send_custom_response(401, "Unauthorized")

    if not event.get("body"):
        return send_custom_response(400, "Request body is required")

    try:
        request_body = BookingRequest.model_validate_json(event["body"])
    except ValidationError as e:
        formatted = "; ".join(f"{err['msg']}" for err in e.errors())
        return send_custom_response(400, formatted)

    except ValueError as e:
        return send_custom_response(400, str(e))

    try:
        booking = booking_service.add_booking(request_body, user_id)

        return send_custom_response(
            201,
            "Booking created successfully",
            {
                "booking_id": booking.booking_id,
                "room_id": booking.room_id,
                "check_in": booking.check_in.isoformat(),
                "check_out": booking.check_out.isoformat(),
                "total_amount": str(booking.total_amount),
                "status": booking.status.value,
            },
        )

    except (InvalidDateRange, InvalidOccupancy, UnknownBedType) as err:
        return send_custom_response(400, str(err))

    except NotFoundException as err:
        return send_custom_response(err.status_code, str(err))

    except (RoomUnavailable, ConcurrencyConflict) as err:
        return send_custom_response(409, str(err))

    except Exception:
        logger.exception("Unhandled error while creating booking")
        return send_custom_response(500, "Internal server error")
