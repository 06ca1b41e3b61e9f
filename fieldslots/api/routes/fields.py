"""
Field slot endpoints: day grid, point availability checks, reserved dates.
"""

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fieldslots.api.deps import get_store, load_field
from fieldslots.core.logging import get_logger
from fieldslots.infrastructure.sql_store import SqlAlchemySchedulingStore
from fieldslots.schemas.availability import AvailabilityResponse, DaySlotsResponse, ReservedDateResponse
from fieldslots.scheduling.overlap import TimeRange
from fieldslots.scheduling.timeofday import format_time
from fieldslots.services.availability_service import check_availability, get_day_slots
from fieldslots.services.cache_service import get_cached_slots, set_cached_slots
from fieldslots.services.conflict_service import list_reserved_occurrences

logger = get_logger(__name__)
router = APIRouter(prefix="/fields", tags=["Fields"])


@router.get("/{field_id}/slots", response_model=DaySlotsResponse)
async def list_day_slots(
    field_id: int,
    day: date = Query(..., alias="date"),
    duration: Optional[int] = Query(None, gt=0, le=24 * 60),
    store: SqlAlchemySchedulingStore = Depends(get_store),
):
    """
    The slot grid for one day. Each slot says whether a booking or a
    recurring subscription already holds it.

    Cached in Redis for REDIS_CACHE_TTL seconds.
    """
    cached = await get_cached_slots(field_id, day, duration)
    if cached:
        return DaySlotsResponse(**cached, cached=True)

    field = await load_field(store, field_id)
    listing = await get_day_slots(store, field, day, duration)

    data = {
        "field_id": listing.field_id,
        "date": listing.date,
        "operates": listing.operates,
        "slot_minutes": listing.slot_minutes,
        "slots": [dict(asdict(slot), is_available=slot.is_available) for slot in listing.slots],
    }
    await set_cached_slots(field_id, day, duration, data)
    return DaySlotsResponse(**data)


@router.get("/{field_id}/availability", response_model=AvailabilityResponse)
async def check_slot_availability(
    field_id: int,
    day: date = Query(..., alias="date"),
    start_time: str = Query(..., min_length=4, max_length=10),
    end_time: str = Query(..., min_length=4, max_length=10),
    exclude_booking_id: Optional[int] = Query(None),
    store: SqlAlchemySchedulingStore = Depends(get_store),
):
    """Whether [start_time, end_time) is free on the given date. Never cached."""
    candidate = TimeRange.parse(start_time, end_time)
    if candidate.start >= candidate.end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_time must be before end_time",
        )

    field = await load_field(store, field_id)
    result = await check_availability(store, field, day, candidate, exclude_booking_id=exclude_booking_id)
    return AvailabilityResponse(**asdict(result))


@router.get("/{field_id}/reserved-dates", response_model=list[ReservedDateResponse])
async def list_reserved_dates(
    field_id: int,
    start: date = Query(...),
    end: date = Query(...),
    store: SqlAlchemySchedulingStore = Depends(get_store),
):
    """Dates held by active subscriptions that have no booking yet."""
    field = await load_field(store, field_id)
    try:
        occurrences = await list_reserved_occurrences(store, field, start, end)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return [
        ReservedDateResponse(
            date=occurrence.date,
            subscription_id=occurrence.subscription_id,
            interval=occurrence.interval,
            start_time=format_time(occurrence.time_range.start),
            end_time=format_time(occurrence.time_range.end),
        )
        for occurrence in occurrences
    ]
