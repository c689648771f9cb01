from botocore.exceptions import ClientError
import logging
from typing import Optional
from decimal import Decimal
from cozyhaven.models.hotels import Hotel, HotelRatingUpdate
from cozyhaven.utils.custom_exceptions import ConcurrentUpdateError
from cozyhaven.utils.transactions import is_conflict

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object


logger = logging.getLogger(__name__)


class HotelRepository:
    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    def get_hotel_by_id(self, hotel_id: str) -> Optional[Hotel]:
        try:
            response = self.table.get_item(
                Key={"pk": f"HOTEL#{hotel_id}", "sk": "DETAILS"},
                ConsistentRead=True,
            )
        except ClientError as err:
            logger.error(f"Error retrieving hotel by id {hotel_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return self._to_domain(hotel_id, item)

    def update_rating(self, update: HotelRatingUpdate):
        try:
            self.table.update_item(**rating_update_params(update))
        except ClientError as err:
            if is_conflict(err):
                raise ConcurrentUpdateError(
                    f"hotel {update.hotel_id} rating changed concurrently"
                ) from err
            logger.error(f"Error updating hotel {update.hotel_id} rating: {err}")
            raise

    @staticmethod
    def _to_domain(hotel_id: str, item: dict) -> Hotel:
        rating = item.get("rating")
        return Hotel(
            hotel_id=hotel_id,
            name=item["name"],
            location_id=item.get("location_id"),
            description=item.get("description"),
            has_parking=bool(item.get("has_parking", False)),
            has_dining=bool(item.get("has_dining", False)),
            has_wifi=bool(item.get("has_wifi", False)),
            has_room_service=bool(item.get("has_room_service", False)),
            has_pool=bool(item.get("has_pool", False)),
            has_fitness_center=bool(item.get("has_fitness_center", False)),
            rating=Decimal(str(rating)) if rating is not None else None,
            rating_version=int(item.get("rating_version", 0)),
        )


def rating_update_params(update: HotelRatingUpdate) -> dict:
    """Update arguments shared by standalone and transactional rating writes."""
    names = {"#version": "rating_version", "#rating": "rating"}
    values = {
        ":next": update.expected_version + 1,
        ":expected": update.expected_version,
    }
    if update.rating is None:
        expression = "SET #version = :next REMOVE #rating"
    else:
        expression = "SET #version = :next, #rating = :rating"
        values[":rating"] = update.rating
    return {
        "Key": {"pk": f"HOTEL#{update.hotel_id}", "sk": "DETAILS"},
        "UpdateExpression": expression,
        "ConditionExpression": (
            "attribute_exists(pk) "
            "AND (attribute_not_exists(#version) OR #version = :expected)"
        ),
        "ExpressionAttributeNames": names,
        "ExpressionAttributeValues": values,
    }
