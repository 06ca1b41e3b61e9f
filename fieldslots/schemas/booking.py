"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel


class BookingResponse(BaseModel):
    id: int
    field_id: int
    user_id: int
    date: date
    start_time: str
    end_time: str
    status: str
    subscription_id: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingStatusUpdate(BaseModel):
    status: Literal["confirmed", "cancelled", "completed"]
