"""
Booking lifecycle endpoints.
"""

from fastapi import APIRouter, Depends

from fieldslots.api.deps import get_store
from fieldslots.core.errors import NotFound
from fieldslots.core.logging import get_logger
from fieldslots.infrastructure.sql_store import SqlAlchemySchedulingStore
from fieldslots.schemas.booking import BookingResponse, BookingStatusUpdate
from fieldslots.services.booking_service import transition_booking
from fieldslots.services.cache_service import invalidate_field_day

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    store: SqlAlchemySchedulingStore = Depends(get_store),
):
    booking = await store.get_booking(booking_id)
    if not booking:
        raise NotFound("Booking", booking_id)
    return booking


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    update: BookingStatusUpdate,
    store: SqlAlchemySchedulingStore = Depends(get_store),
):
    """
    Move a booking along its lifecycle:
    pending -> confirmed | cancelled, confirmed -> cancelled | completed.
    """
    booking = await transition_booking(store, booking_id, update.status)
    await invalidate_field_day(booking.field_id, booking.date)
    return booking
