"""
Booking schemas. Seat counts are capped per booking; the event's
``available_seats`` is the only global limit.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MAX_SEATS_PER_BOOKING = 10

BookingStatus = Literal["confirmed", "cancelled"]


class BookingCreate(BaseModel):
    event_id: int
    seat_count: int = Field(default=1, gt=0, le=MAX_SEATS_PER_BOOKING)


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    event_id: int
    seat_count: int
    status: BookingStatus
    created_at: datetime
    updated_at: datetime
