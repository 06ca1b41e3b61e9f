"""
Pydantic schemas for recurring subscriptions.
"""

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from fieldslots.schemas.booking import BookingResponse

Interval = Literal["everyday", "weekly", "monthly"]


class SubscriptionRequest(BaseModel):
    field_id: int
    interval: Interval
    anchor_date: date
    start_time: str = Field(..., min_length=4, max_length=10)
    end_time: str = Field(..., min_length=4, max_length=10)


class SubscriptionCreate(SubscriptionRequest):
    user_id: int


class ConflictCheckRequest(SubscriptionRequest):
    horizon_days: Optional[int] = Field(None, gt=0, le=366)


class ConflictingDateResponse(BaseModel):
    date: date
    booking_id: Optional[int] = None
    subscription_id: Optional[int] = None
    start_time: str
    end_time: str


class ConflictCheckResponse(BaseModel):
    has_conflict: bool
    conflicting_dates: list[ConflictingDateResponse]


class SubscriptionResponse(BaseModel):
    id: int
    field_id: int
    user_id: int
    interval: str
    anchor_date: date
    day_of_week: Optional[str] = None
    day_of_month: Optional[int] = None
    start_time: str
    end_time: str
    status: str
    cancel_at_period_end: bool
    last_booking_date: Optional[date] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class SubscriptionCreateResponse(BaseModel):
    subscription: SubscriptionResponse
    first_booking: Optional[BookingResponse] = None


class SubscriptionCancelResponse(BaseModel):
    message: str
    subscription_id: int
    status: str
    cancel_at_period_end: bool
    bookings_cancelled: int
