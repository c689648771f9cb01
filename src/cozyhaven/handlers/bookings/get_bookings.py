import logging
import os
from boto3 import resource

from cozyhaven.repository.booking_repo import BookingRepository
from cozyhaven.repository.payment_repo import PaymentRepository
from cozyhaven.repository.room_repo import RoomRepository
from cozyhaven.services.booking_service import BookingService
from cozyhaven.utils.custom_response import send_custom_response
from cozyhaven.utils.custom_exceptions import NotFoundException

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


def get_user_bookings(event, context):
    try:
        try:
            user_id = event["requestContext"]["authorizer"]["user_id"]
        except (KeyError, TypeError):
            return send_custom_response(401, "Unauthorized")

        bookings = booking_service.get_user_bookings(user_id)

        result = []
        for b in bookings:
            result.append({
                "booking_id": b.booking_id,
                "room_id": b.room_id,
                "status": b.status.value,
                "check_in": b.check_in.isoformat(),
                "check_out": b.check_out.isoformat(),
                "num_adults": b.num_adults,
                "num_children": b.num_children,
                "total_amount": str(b.total_amount),
                "created_at": b.created_at.isoformat(),
            })

        return send_custom_response(
            200,
            "Bookings retrieved successfully",
            {
                "count": len(result),
                "bookings": result
            }
        )

    except NotFoundException as err:
        return send_custom_response(err.status_code, str(err))

    except Exception:
        logger.exception("Unhandled error while listing bookings")
        return send_custom_response(500, "Internal server error")
