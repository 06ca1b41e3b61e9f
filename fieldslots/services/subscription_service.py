"""
Subscription lifecycle: creation with an up-front conflict scan, and
cancellation (immediately or at period end).
"""

from datetime import date, datetime, timezone
from typing import Optional

from fieldslots.core.errors import NotFound, SlotConflict, SubscriptionConflict, UnknownIntervalType
from fieldslots.core.logging import get_logger
from fieldslots.models.subscription import ACTIVE, CANCELLED, INTERVALS, MONTHLY, WEEKLY
from fieldslots.scheduling.operating_days import operates_on, weekday_name
from fieldslots.scheduling.overlap import TimeRange
from fieldslots.scheduling.timeofday import normalize_time, parse_time
from fieldslots.services.availability_service import check_availability
from fieldslots.services.booking_service import materialize_occurrence
from fieldslots.services.conflict_service import check_subscription_conflicts
from fieldslots.services.interfaces.store import SchedulingStore

logger = get_logger(__name__)

USER_CANCEL_REASON = "Subscription cancelled by user"
INACTIVITY_CANCEL_REASON = "Subscription cancelled due to inactivity"


async def create_subscription(
    store: SchedulingStore,
    field,
    user_id: int,
    interval: str,
    anchor_date: date,
    start_time: str,
    end_time: str,
    horizon_days: Optional[int] = None,
):
    """
    Create a recurring subscription and book its first occurrence.

    Refuses with SubscriptionConflict (carrying every collision) when the
    cadence would land on existing bookings or active subscriptions inside
    the horizon, and with SlotConflict when the anchor slot itself is taken.
    The times must fall within the field's hours on a day it operates.

    Returns:
        (subscription, first_booking or None)
    """
    if interval not in INTERVALS:
        raise UnknownIntervalType(interval)
    if not field.accepts_bookings:
        raise ValueError("Field is not accepting bookings")

    candidate = TimeRange.parse(start_time, end_time)
    if candidate.start >= candidate.end:
        raise ValueError("start_time must be before end_time")
    if candidate.start < parse_time(field.opening_time) or candidate.end > parse_time(field.closing_time):
        raise ValueError(
            f"Requested time must fall within operating hours {field.opening_time}-{field.closing_time}"
        )
    if not operates_on(field.operating_days, anchor_date):
        raise ValueError(f"Field does not operate on {weekday_name(anchor_date)}")

    conflicts = await check_subscription_conflicts(
        store, field.id, anchor_date, interval, candidate, horizon_days
    )
    if conflicts:
        raise SubscriptionConflict(conflicts)

    anchor = await check_availability(store, field, anchor_date, candidate)
    if not anchor.available:
        raise SlotConflict(anchor)

    subscription = await store.add_subscription(
        field_id=field.id,
        user_id=user_id,
        interval=interval,
        anchor_date=anchor_date,
        day_of_week=weekday_name(anchor_date) if interval == WEEKLY else None,
        day_of_month=anchor_date.day if interval == MONTHLY else None,
        start_time=normalize_time(start_time),
        end_time=normalize_time(end_time),
        status=ACTIVE,
        cancel_at_period_end=False,
    )
    logger.info(
        "subscription_created",
        subscription_id=subscription.id,
        field_id=field.id,
        user_id=user_id,
        interval=interval,
        anchor_date=anchor_date.isoformat(),
    )

    try:
        booking = await materialize_occurrence(store, subscription, field, anchor_date)
    except SlotConflict:
        booking = None
    return subscription, booking


async def cancel_subscription(
    store: SchedulingStore,
    subscription_id: int,
    immediately: bool = False,
    today: Optional[date] = None,
    reason: str = USER_CANCEL_REASON,
):
    """
    Cancel a subscription and every future booking it produced.

    With immediately=False the subscription stays active until period end
    but the scheduler stops materializing it.

    Returns:
        (subscription, number of bookings cancelled)
    """
    subscription = await store.get_subscription(subscription_id)
    if subscription is None:
        raise NotFound("Subscription", subscription_id)
    if subscription.status == CANCELLED:
        raise ValueError("Subscription is already cancelled")

    now = datetime.now(timezone.utc)
    today = today or now.date()

    await store.mark_subscription_cancelled(subscription_id, immediately=immediately, cancelled_at=now)
    cancelled = await store.cancel_future_bookings(subscription_id, today, reason, now)

    logger.info(
        "subscription_cancelled",
        subscription_id=subscription_id,
        immediately=immediately,
        future_bookings_cancelled=cancelled,
        reason=reason,
    )
    return await store.get_subscription(subscription_id), cancelled
