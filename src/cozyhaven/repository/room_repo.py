from botocore.exceptions import ClientError
import logging
from typing import Optional
from decimal import Decimal
from cozyhaven.models.rooms import Room, BedType, RoomStatus

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object


logger = logging.getLogger(__name__)


class RoomRepository:
    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    def get_room_by_id(self, room_id: str) -> Optional[Room]:
        try:
            response = self.table.get_item(
                Key={"pk": f"ROOM#{room_id}", "sk": "DETAILS"},
                ConsistentRead=True,
            )
        except ClientError as err:
            logger.error(f"Error retrieving room by id {room_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return self._to_domain(room_id, item)

    @staticmethod
    def _to_domain(room_id: str, item: dict) -> Room:
        return Room(
            room_id=room_id,
            hotel_id=item["hotel_id"],
            bed_type=BedType(item["bed_type"]),
            base_fare=Decimal(str(item["base_fare"])),
            max_occupancy=int(item["max_occupancy"]),
            status=RoomStatus(item.get("room_status", RoomStatus.AVAILABLE.value)),
            room_size=item.get("room_size"),
            is_ac=bool(item.get("is_ac", True)),
            booking_version=int(item.get("booking_version", 0)),
        )
