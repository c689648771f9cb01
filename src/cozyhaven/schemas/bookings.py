from datetime import date, timedelta
from pydantic import BaseModel, Field, model_validator
from cozyhaven.utils.constants import MAX_STAY


class BookingRequest(BaseModel):
    room_id: str = Field(min_length=1)
    check_in: date
    check_out: date
    num_adults: int = Field(ge=1)
    num_children: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_stay(self):
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        max_stay = timedelta(days=MAX_STAY)
        if self.check_out - self.check_in > max_stay:
            raise ValueError(f"Maximum stay is {MAX_STAY} days")
        return self
