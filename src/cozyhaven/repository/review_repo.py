from botocore.exceptions import ClientError
import logging
from typing import Dict, List, Optional
from boto3.dynamodb.conditions import Key
from cozyhaven.models.hotels import HotelRatingUpdate
from cozyhaven.models.reviews import Review, ReviewChange
from cozyhaven.repository.hotel_repo import rating_update_params
from cozyhaven.utils.constants import MAX_TRANSACT_ITEMS
from cozyhaven.utils.custom_exceptions import ConcurrentUpdateError
from cozyhaven.utils.datetime_normaliser import from_iso_string
from cozyhaven.utils.transactions import is_conflict

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object


logger = logging.getLogger(__name__)


class ReviewRepository:
    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    def get_review_by_id(self, review_id: str) -> Optional[Review]:
        try:
            response = self.table.get_item(
                Key={"pk": f"REVIEW#{review_id}", "sk": "DETAILS"},
                ConsistentRead=True,
            )
        except ClientError as err:
            logger.error(f"Error retrieving review {review_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return self._to_domain(review_id, item)

    def get_hotel_ratings(self, hotel_id: str) -> Dict[str, int]:
        """Ratings of every review on the hotel's rooms, keyed by review id."""
        key_condition = Key("pk").eq(f"HOTEL#{hotel_id}") & Key("sk").begins_with(
            "REVIEW#"
        )
        ratings: Dict[str, int] = {}
        try:
            resp = self.table.query(
                KeyConditionExpression=key_condition, ConsistentRead=True
            )
            for item in resp.get("Items", []):
                ratings[item["sk"].removeprefix("REVIEW#")] = int(item["rating"])
            while "LastEvaluatedKey" in resp:
                resp = self.table.query(
                    KeyConditionExpression=key_condition,
                    ConsistentRead=True,
                    ExclusiveStartKey=resp["LastEvaluatedKey"],
                )
                for item in resp.get("Items", []):
                    ratings[item["sk"].removeprefix("REVIEW#")] = int(item["rating"])
        except ClientError as err:
            logger.error(f"Error retrieving reviews for hotel {hotel_id}: {err}")
            raise
        return ratings

    def write_reviews(
        self, changes: List[ReviewChange], rating_updates: List[HotelRatingUpdate]
    ):
        """Apply review changes and their hotel rating updates as one transaction."""
        transact_items = []
        for change in changes:
            transact_items.extend(self._change_items(change))
        for update in rating_updates:
            transact_items.append(
                {"Update": {"TableName": self.table.name, **rating_update_params(update)}}
            )

        if len(transact_items) > MAX_TRANSACT_ITEMS:
            raise ValueError(
                f"review batch needs {len(transact_items)} writes, "
                f"the limit is {MAX_TRANSACT_ITEMS}"
            )

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as err:
            if is_conflict(err):
                raise ConcurrentUpdateError(
                    "reviews or hotel ratings changed during the write"
                ) from err
            logger.error(f"Error writing {len(changes)} review change(s): {err}")
            raise

    def _change_items(self, change: ReviewChange) -> List[dict]:
        before, after = change.before, change.after
        items = []
        if after is None:
            items.append(
                {
                    "Delete": {
                        "TableName": self.table.name,
                        "Key": {"pk": f"REVIEW#{before.review_id}", "sk": "DETAILS"},
                        "ConditionExpression": "attribute_exists(pk)",
                    }
                }
            )
            items.append(self._delete_index(before))
            return items

        items.append(
            {
                "Put": {
                    "TableName": self.table.name,
                    "Item": {
                        "pk": f"REVIEW#{after.review_id}",
                        "sk": "DETAILS",
                        "user_id": after.user_id,
                        "room_id": after.room_id,
                        "hotel_id": after.hotel_id,
                        "rating": after.rating,
                        "comment": after.comment,
                        "review_date": after.review_date.isoformat(),
                    },
                    "ConditionExpression": (
                        "attribute_not_exists(pk)" if before is None else "attribute_exists(pk)"
                    ),
                }
            }
        )
        if before is not None and before.hotel_id != after.hotel_id:
            items.append(self._delete_index(before))
        items.append(
            {
                "Put": {
                    "TableName": self.table.name,
                    "Item": {
                        "pk": f"HOTEL#{after.hotel_id}",
                        "sk": f"REVIEW#{after.review_id}",
                        "room_id": after.room_id,
                        "rating": after.rating,
                    },
                }
            }
        )
        return items

    def _delete_index(self, review: Review) -> dict:
        return {
            "Delete": {
                "TableName": self.table.name,
                "Key": {
                    "pk": f"HOTEL#{review.hotel_id}",
                    "sk": f"REVIEW#{review.review_id}",
                },
            }
        }

    @staticmethod
    def _to_domain(review_id: str, item: dict) -> Review:
        return Review(
            review_id=review_id,
            user_id=item["user_id"],
            room_id=item["room_id"],
            rating=int(item["rating"]),
            comment=item.get("comment"),
            review_date=from_iso_string(item["review_date"]),
            hotel_id=item.get("hotel_id"),
        )
