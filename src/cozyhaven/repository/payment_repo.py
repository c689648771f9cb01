from botocore.exceptions import ClientError
import logging
from typing import List
from decimal import Decimal
from boto3.dynamodb.conditions import Key
from cozyhaven.models.payments import Payment, PaymentStatus
from cozyhaven.utils.datetime_normaliser import from_iso_string

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)


class PaymentRepository:
    """Read side of the payment collaborator's rows stored under each booking."""

    def __init__(self, table: Table):
        self.table = table

    def get_booking_payments(self, booking_id: str) -> List[Payment]:
        try:
            response = self.table.query(
                KeyConditionExpression=Key("pk").eq(f"BOOKING#{booking_id}")
                & Key("sk").begins_with("PAYMENT#"),
                ConsistentRead=True,
            )
        except ClientError as err:
            logger.error(f"Error retrieving payments for booking {booking_id}: {err}")
            raise

        return [self._to_domain(booking_id, item) for item in response.get("Items", [])]

    def has_completed_payment(self, booking_id: str) -> bool:
        return any(
            p.status == PaymentStatus.COMPLETED
            for p in self.get_booking_payments(booking_id)
        )

    @staticmethod
    def _to_domain(booking_id: str, item: dict) -> Payment:
        return Payment(
            payment_id=item["sk"].removeprefix("PAYMENT#"),
            booking_id=booking_id,
            amount=Decimal(str(item["amount"])),
            payment_method=item["payment_method"],
            payment_date=from_iso_string(item["payment_date"]),
            status=PaymentStatus(item["payment_status"]),
        )
