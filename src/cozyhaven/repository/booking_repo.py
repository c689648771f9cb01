from botocore.exceptions import ClientError
import logging
from typing import Optional, List
from boto3.dynamodb.conditions import Key
from cozyhaven.models.bookings import Booking, BookingStatus, RoomBookingEntry
from cozyhaven.models.cancellations import Cancellation
from cozyhaven.models.rooms import RoomStatus
from cozyhaven.utils.custom_exceptions import ConcurrentUpdateError
from cozyhaven.utils.datetime_normaliser import from_iso_date, from_iso_string, utc_now
from cozyhaven.utils.transactions import is_conflict
from decimal import Decimal
from datetime import datetime

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object


logger = logging.getLogger(__name__)


class BookingRepository:
    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    @staticmethod
    def _iso(dt: datetime) -> str:
        if dt.tzinfo is None:
            raise ValueError("Datetime must be timezone-aware")
        return dt.isoformat()

    def add_booking(self, booking: Booking, expected_version: int):
        """Insert a PENDING booking, guarded by the room's booking_version.

        The version bump and the three booking rows commit together, so two
        reservations that read the same version cannot both land.
        """
        check_in = booking.check_in.isoformat()
        check_out = booking.check_out.isoformat()
        created_at = self._iso(booking.created_at)

        booking_item = {
            "pk": f"BOOKING#{booking.booking_id}",
            "sk": "DETAILS",
            "user_id": booking.user_id,
            "room_id": booking.room_id,
            "check_in": check_in,
            "check_out": check_out,
            "num_adults": booking.num_adults,
            "num_children": booking.num_children,
            "total_amount": booking.total_amount,
            "booking_status": booking.status.value,
            "created_at": created_at,
            "updated_at": self._iso(booking.updated_at),
        }

        user_booking = {
            "pk": f"USER#{booking.user_id}",
            "sk": f"BOOKING#{booking.booking_id}",
            "room_id": booking.room_id,
            "check_in": check_in,
            "check_out": check_out,
            "total_amount": booking.total_amount,
            "booking_status": booking.status.value,
            "created_at": created_at,
        }

        room_booking = {
            "pk": f"ROOM#{booking.room_id}",
            "sk": f"BOOKING#{booking.booking_id}",
            "booking_id": booking.booking_id,
            "check_in": check_in,
            "check_out": check_out,
            "booking_status": booking.status.value,
        }

        try:
            self.client.transact_write_items(
                TransactItems=[
                    {
                        "Update": {
                            "TableName": self.table.name,
                            "Key": {"pk": f"ROOM#{booking.room_id}", "sk": "DETAILS"},
                            "UpdateExpression": "SET #version = :next",
                            "ConditionExpression": (
                                "attribute_exists(pk) "
                                "AND (attribute_not_exists(#version) OR #version = :expected) "
                                "AND #room_status <> :maintenance"
                            ),
                            "ExpressionAttributeNames": {
                                "#version": "booking_version",
                                "#room_status": "room_status",
                            },
                            "ExpressionAttributeValues": {
                                ":next": expected_version + 1,
                                ":expected": expected_version,
                                ":maintenance": RoomStatus.MAINTENANCE.value,
                            },
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": booking_item,
                            "ConditionExpression": "attribute_not_exists(pk)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": room_booking,
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": user_booking,
                        }
                    },
                ]
            )

        except ClientError as err:
            if is_conflict(err):
                raise ConcurrentUpdateError(
                    f"room {booking.room_id} changed while reserving booking {booking.booking_id}"
                ) from err
            logger.error(f"Error creating booking {booking.booking_id}: {err}")
            raise

    def get_room_bookings(self, room_id: str) -> List[RoomBookingEntry]:
        key_condition = Key("pk").eq(f"ROOM#{room_id}") & Key("sk").begins_with(
            "BOOKING#"
        )
        entries = []
        try:
            resp = self.table.query(
                KeyConditionExpression=key_condition, ConsistentRead=True
            )
            entries.extend(self._to_entry(room_id, item) for item in resp.get("Items", []))
            while "LastEvaluatedKey" in resp:
                resp = self.table.query(
                    KeyConditionExpression=key_condition,
                    ConsistentRead=True,
                    ExclusiveStartKey=resp["LastEvaluatedKey"],
                )
                entries.extend(
                    self._to_entry(room_id, item) for item in resp.get("Items", [])
                )
        except ClientError as err:
            logger.error(f"Error retrieving bookings for room {room_id}: {err}")
            raise
        return entries

    def get_active_room_bookings(self, room_id: str) -> List[RoomBookingEntry]:
        return [entry for entry in self.get_room_bookings(room_id) if entry.is_active]

    def get_booking_by_id(self, booking_id: str) -> Optional[Booking]:
        try:
            response = self.table.get_item(
                Key={"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"},
                ConsistentRead=True,
            )
        except ClientError as err:
            logger.error(f"Error retrieving booking {booking_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return self._to_domain(item)

    def get_user_bookings(self, user_id: str) -> List[Booking]:
        try:
            response = self.table.query(
                KeyConditionExpression=Key("pk").eq(f"USER#{user_id}")
                & Key("sk").begins_with("BOOKING#")
            )
        except ClientError as err:
            logger.error(f"Error retrieving user {user_id} bookings: {err}")
            raise

        items = response.get("Items", [])
        if not items:
            return []

        bookings = []
        for item in items:
            booking = self.get_booking_by_id(item["sk"].removeprefix("BOOKING#"))
            if booking is not None:
                bookings.append(booking)
        return bookings

    def update_booking_status(
        self,
        booking: Booking,
        expected_status: BookingStatus,
        status: BookingStatus,
        cancellation: Optional[Cancellation] = None,
    ):
        """Move a booking between statuses on all of its rows at once.

        The details row is conditioned on still holding expected_status; a
        cancellation record, when given, is written in the same transaction.
        """
        now = self._iso(utc_now())
        transact_items = [
            {
                "Update": {
                    "TableName": self.table.name,
                    "Key": {"pk": f"BOOKING#{booking.booking_id}", "sk": "DETAILS"},
                    "UpdateExpression": "SET #booking_status = :new_value, #updated_at = :now",
                    "ConditionExpression": "#booking_status = :expected",
                    "ExpressionAttributeNames": {
                        "#booking_status": "booking_status",
                        "#updated_at": "updated_at",
                    },
                    "ExpressionAttributeValues": {
                        ":new_value": status.value,
                        ":expected": expected_status.value,
                        ":now": now,
                    },
                }
            },
            {
                "Update": {
                    "TableName": self.table.name,
                    "Key": {
                        "pk": f"ROOM#{booking.room_id}",
                        "sk": f"BOOKING#{booking.booking_id}",
                    },
                    "UpdateExpression": "SET #booking_status = :new_value",
                    "ConditionExpression": "attribute_exists(pk)",
                    "ExpressionAttributeNames": {"#booking_status": "booking_status"},
                    "ExpressionAttributeValues": {":new_value": status.value},
                }
            },
            {
                "Update": {
                    "TableName": self.table.name,
                    "Key": {
                        "pk": f"USER#{booking.user_id}",
                        "sk": f"BOOKING#{booking.booking_id}",
                    },
                    "UpdateExpression": "SET #booking_status = :new_value",
                    "ConditionExpression": "attribute_exists(pk)",
                    "ExpressionAttributeNames": {"#booking_status": "booking_status"},
                    "ExpressionAttributeValues": {":new_value": status.value},
                }
            },
        ]
        if cancellation is not None:
            transact_items.append(
                {
                    "Put": {
                        "TableName": self.table.name,
                        "Item": {
                            "pk": f"BOOKING#{booking.booking_id}",
                            "sk": f"CANCELLATION#{cancellation.cancellation_id}",
                            "cancellation_id": cancellation.cancellation_id,
                            "cancellation_date": self._iso(cancellation.cancellation_date),
                            "refund_amount": cancellation.refund_amount,
                            "cancellation_status": cancellation.status.value,
                            "created_at": now,
                        },
                        "ConditionExpression": "attribute_not_exists(sk)",
                    }
                }
            )

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as err:
            if is_conflict(err):
                raise ConcurrentUpdateError(
                    f"booking {booking.booking_id} is no longer {expected_status.value}"
                ) from err
            logger.error(f"Error updating booking {booking.booking_id} status: {err}")
            raise

    @staticmethod
    def _to_entry(room_id: str, item: dict) -> RoomBookingEntry:
        return RoomBookingEntry(
            booking_id=item["sk"].removeprefix("BOOKING#"),
            room_id=room_id,
            check_in=from_iso_date(item["check_in"]),
            check_out=from_iso_date(item["check_out"]),
            status=BookingStatus(item["booking_status"]),
        )

    @staticmethod
    def _to_domain(item: dict) -> Booking:
        return Booking(
            booking_id=item["pk"].removeprefix("BOOKING#"),
            user_id=item["user_id"],
            room_id=item["room_id"],
            check_in=from_iso_date(item["check_in"]),
            check_out=from_iso_date(item["check_out"]),
            num_adults=int(item["num_adults"]),
            num_children=int(item.get("num_children", 0)),
            total_amount=Decimal(str(item["total_amount"])),
            status=BookingStatus(item["booking_status"]),
            created_at=from_iso_string(item["created_at"]),
            updated_at=from_iso_string(item.get("updated_at", item["created_at"])),
        )
