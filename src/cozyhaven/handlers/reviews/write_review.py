import logging
import os
from boto3 import resource

from cozyhaven.repository.hotel_repo import HotelRepository
from cozyhaven.repository.review_repo import ReviewRepository
from cozyhaven.repository.room_repo import RoomRepository
from cozyhaven.schemas.reviews import ReviewRequest
from cozyhaven.services.rating_service import RatingAggregator
from cozyhaven.services.review_service import ReviewService
from cozyhaven.utils.custom_response import send_custom_response
from cozyhaven.utils.custom_exceptions import (
    ConcurrencyConflict,
    InvalidRating,
    NotFoundException,
)
from pydantic import ValidationError

logger = logging.getLogger()
logger.setLevel(logging.INFO)

TABLE_NAME = os.environ.get("TABLE_NAME")
AWS_REGION = os.environ.get("AWS_REGION", "ap-south-1")

dynamodb = resource("dynamodb", region_name=AWS_REGION)
table = dynamodb.Table(TABLE_NAME)

review_repo = ReviewRepository(table)
room_repo = RoomRepository(table)
hotel_repo = HotelRepository(table)

review_service = ReviewService(
    review_repo=review_repo,
    rating_aggregator=RatingAggregator(review_repo, room_repo, hotel_repo),
)


def _review_data(review):
    return {
        "review_id": review.review_id,
        "room_id": review.room_id,
        "hotel_id": review.hotel_id,
        "rating": review.rating,
        "comment": review.comment,
        "review_date": review.review_date.isoformat(),
    }


def _parse_request(event):
    if not event.get("body"):
        raise ValueError("Request body is required")
    try:
        return ReviewRequest.model_validate_json(event["body"])
    except ValidationError as e:
        raise ValueError("; ".join(f"{err['msg']}" for err in e.errors()))


def _review_id(event):
    path_params = event.get("pathParameters") or {}
    review_id = path_params.get("review_id")
    if not review_id:
        raise ValueError("review_id is required in the path")
    return review_id


def _write(event, action, status_code, message):
    try:
        try:
            user_id = event["requestContext"]["authorizer"]["user_id"]
        except (KeyError, TypeError):
            return send_custom_response(401, "Unauthorized")

        data = action(user_id)
        return send_custom_response(status_code, message, data)

    except (ValueError, InvalidRating) as err:
        return send_custom_response(400, str(err))

    except NotFoundException as err:
        return send_custom_response(err.status_code, str(err))

    except ConcurrencyConflict as err:
        return send_custom_response(409, str(err))

    except Exception:
        logger.exception("Unhandled error while writing review")
        return send_custom_response(500, "Internal server error")


def create_review(event, context):
    def action(user_id):
        review = review_service.add_review(user_id, _parse_request(event))
        return _review_data(review)

    return _write(event, action, 201, "Review created successfully")


def update_review(event, context):
    def action(user_id):
        review = review_service.update_review(_review_id(event), _parse_request(event))
        return _review_data(review)

    return _write(event, action, 200, "Review updated successfully")


def delete_review(event, context):
    def action(user_id):
        review_id = _review_id(event)
        review_service.delete_review(review_id)
        return {"review_id": review_id}

    return _write(event, action, 200, "Review deleted successfully")
