import logging
import os
from boto3 import resource

from cozyhaven.repository.booking_repo import BookingRepository
from cozyhaven.repository.payment_repo import PaymentRepository
from cozyhaven.repository.room_repo import RoomRepository
from cozyhaven.services.booking_service import BookingService
from cozyhaven.services.schedule_service import SchedulerService
from cozyhaven.utils.custom_response import send_custom_response
from cozyhaven.utils.custom_exceptions import InvalidTransition, NotFoundException

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


def cancel_booking(event, context):
    try:
        try:
            event["requestContext"]["authorizer"]["user_id"]
        except (KeyError, TypeError):
            return send_custom_response(401, "Unauthorized")

        path_params = event.get("pathParameters") or {}
        booking_id = path_params.get("booking_id")
        if not booking_id:
            return send_custom_response(400, "booking_id is required in the path")

        cancellation = booking_service.cancel_booking(booking_id)

        return send_custom_response(
            200,
            "Booking cancelled successfully",
            {
                "booking_id": booking_id,
                "cancellation_id": cancellation.cancellation_id,
                "refund_amount": str(cancellation.refund_amount),
                "cancellation_status": cancellation.status.value,
            },
        )

    except NotFoundException as err:
        return send_custom_response(err.status_code, str(err))

    except InvalidTransition as err:
        return send_custom_response(409, str(err))

    except Exception:
        logger.exception("Unhandled error while cancelling booking")
        return send_custom_response(500, "Internal server error")
