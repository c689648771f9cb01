from typing import Optional
from pydantic import BaseModel, Field, field_validator


class ReviewRequest(BaseModel):
    room_id: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=4000)

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, v: Optional[str]):
        if v is None:
            return v
        v = v.strip()
        return v or None
