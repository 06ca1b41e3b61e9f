"""
Recurring subscription endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fieldslots.api.deps import get_store, load_field
from fieldslots.core.logging import get_logger
from fieldslots.infrastructure.sql_store import SqlAlchemySchedulingStore
from fieldslots.schemas.booking import BookingResponse
from fieldslots.schemas.subscription import (
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictingDateResponse,
    SubscriptionCancelResponse,
    SubscriptionCreate,
    SubscriptionCreateResponse,
    SubscriptionResponse,
)
from fieldslots.scheduling.overlap import TimeRange
from fieldslots.scheduling.timeofday import format_time
from fieldslots.services.cache_service import invalidate_field
from fieldslots.services.conflict_service import check_subscription_conflicts
from fieldslots.services.subscription_service import cancel_subscription, create_subscription

logger = get_logger(__name__)
router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.post("/conflicts", response_model=ConflictCheckResponse)
async def check_conflicts(
    request: ConflictCheckRequest,
    store: SqlAlchemySchedulingStore = Depends(get_store),
):
    """
    List every existing booking or active subscription a subscription with these parameters would
    collide with, without creating anything.
    """
    await load_field(store, request.field_id)
    candidate = TimeRange.parse(request.start_time, request.end_time)
    conflicts = await check_subscription_conflicts(
        store,
        request.field_id,
        request.anchor_date,
        request.interval,
        candidate,
        request.horizon_days,
    )
    return ConflictCheckResponse(
        has_conflict=bool(conflicts),
        conflicting_dates=[
            ConflictingDateResponse(
                date=conflict.date,
                booking_id=conflict.booking_id,
                subscription_id=conflict.subscription_id,
                start_time=format_time(conflict.time_range.start),
                end_time=format_time(conflict.time_range.end),
            )
            for conflict in conflicts
        ],
    )


@router.post("/", response_model=SubscriptionCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_subscription_endpoint(
    request: SubscriptionCreate,
    store: SqlAlchemySchedulingStore = Depends(get_store),
):
    """
    Create a recurring subscription. Returns 409 with the conflicting dates
    when the cadence collides with existing bookings or subscriptions.
    """
    field = await load_field(store, request.field_id)
    try:
        subscription, booking = await create_subscription(
            store,
            field,
            user_id=request.user_id,
            interval=request.interval,
            anchor_date=request.anchor_date,
            start_time=request.start_time,
            end_time=request.end_time,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await invalidate_field(field.id)
    return SubscriptionCreateResponse(
        subscription=SubscriptionResponse.model_validate(subscription),
        first_booking=BookingResponse.model_validate(booking) if booking else None,
    )


@router.delete("/{subscription_id}", response_model=SubscriptionCancelResponse)
async def cancel_subscription_endpoint(
    subscription_id: int,
    immediately: bool = Query(False),
    store: SqlAlchemySchedulingStore = Depends(get_store),
):
    """Cancel a subscription and release its future bookings."""
    try:
        subscription, cancelled = await cancel_subscription(
            store, subscription_id, immediately=immediately
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await invalidate_field(subscription.field_id)
    return SubscriptionCancelResponse(
        message="Subscription cancelled successfully",
        subscription_id=subscription.id,
        status=subscription.status,
        cancel_at_period_end=subscription.cancel_at_period_end,
        bookings_cancelled=cancelled,
    )
