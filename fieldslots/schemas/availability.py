"""
Pydantic schemas for slot listings and availability answers.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel


class AvailabilityResponse(BaseModel):
    available: bool
    reason: Optional[str] = None
    conflict_type: Optional[str] = None


class SlotResponse(BaseModel):
    start: str
    end: str
    label: str
    is_booked: bool
    is_booked_by_recurring: bool
    recurring_interval: Optional[str] = None
    is_available: bool


class DaySlotsResponse(BaseModel):
    field_id: int
    date: date
    operates: bool
    slot_minutes: int
    slots: list[SlotResponse]
    cached: bool = False


class ReservedDateResponse(BaseModel):
    date: date
    subscription_id: int
    interval: str
    start_time: str
    end_time: str
