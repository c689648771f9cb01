import boto3
from datetime import date, datetime, timezone
import json
import logging
from cozyhaven.utils.constants import CHECKOUT_HOUR_UTC
from cozyhaven.utils.datetime_normaliser import at_hour_utc

logger = logging.getLogger(__name__)


class SchedulerService:
    """Schedules the auto-complete Lambda for each confirmed booking's check-out."""

    def __init__(self, lambda_arn: str, role_arn: str, region="ap-south-1"):
        self.client = boto3.client("scheduler", region_name=region)
        self.lambda_arn = lambda_arn
        self.role_arn = role_arn

    @staticmethod
    def schedule_name(booking_id: str) -> str:
        return f"complete-{booking_id}"

    def schedule_completion(self, booking_id: str, check_out: date | datetime):
        schedule_name = self.schedule_name(booking_id)

        try:
            schedule_expression = self._to_at_expression(check_out)
        except ValueError as e:
            logger.error(f"Invalid time format: {e}")
            raise e

        schedule_params = {
            "Name": schedule_name,
            "ScheduleExpression": schedule_expression,
            "ScheduleExpressionTimezone": "UTC",
            "FlexibleTimeWindow": {"Mode": "OFF"},
            "Target": {
                "Arn": self.lambda_arn,
                "RoleArn": self.role_arn,
                "Input": json.dumps({"booking_id": booking_id}),
            },
            "ActionAfterCompletion": "DELETE",
        }

        try:
            self.client.create_schedule(**schedule_params, ClientToken=booking_id)
            logger.info(f"Scheduled completion for {booking_id} at {schedule_expression}")
            return True

        except self.client.exceptions.ConflictException:
            logger.info(f"Schedule {schedule_name} exists. Updating target time.")
            self.client.update_schedule(**schedule_params)
            return True

        except Exception:
            logger.exception(f"Failed to schedule completion for {booking_id}")
            raise

    def cancel_completion(self, booking_id: str) -> bool:
        try:
            self.client.delete_schedule(Name=self.schedule_name(booking_id))
        except self.client.exceptions.ResourceNotFoundException:
            logger.info(f"No completion schedule for {booking_id}")
            return False
        logger.info(f"Removed completion schedule for {booking_id}")
        return True

    def _to_at_expression(self, value: date | datetime | str) -> str:
        if isinstance(value, str):
            value = datetime.fromisoformat(value) if "T" in value else date.fromisoformat(value)

        if isinstance(value, datetime):
            if value.tzinfo is None:
                raise ValueError("check_out must be timezone-aware")
            utc_dt = value.astimezone(timezone.utc)
        else:
            utc_dt = at_hour_utc(value, CHECKOUT_HOUR_UTC)
        return f"at({utc_dt.strftime('%Y-%m-%dT%H:%M:%S')})"
