"""
Store-backed recurring conflict resolution.

check_recurring_slot_conflict   single date, used by every availability check
check_subscription_conflicts    window scan, used before a subscription is created
list_reserved_occurrences       calendar view of dates subscriptions will claim
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from fieldslots.core.config import get_settings
from fieldslots.core.logging import get_logger
from fieldslots.scheduling.conflicts import (
    ConflictingDate,
    RecurringConflict,
    find_recurring_conflict,
    scan_subscription_overlaps,
    scan_window_conflicts,
)
from fieldslots.scheduling.overlap import TimeRange
from fieldslots.scheduling.recurrence import iter_occurrences
from fieldslots.services.interfaces.store import SchedulingStore

logger = get_logger(__name__)

MAX_RESERVED_RANGE_DAYS = 92


@dataclass(frozen=True)
class ReservedOccurrence:
    date: date
    subscription_id: int
    interval: str
    time_range: TimeRange


async def check_recurring_slot_conflict(
    store: SchedulingStore,
    field,
    day: date,
    candidate: TimeRange,
    exclude_subscription_id: Optional[int] = None,
) -> Optional[RecurringConflict]:
    subscriptions = await store.list_active_subscriptions(
        field_id=field.id,
        exclude_subscription_id=exclude_subscription_id,
    )
    if not subscriptions:
        return None
    return find_recurring_conflict(subscriptions, day, candidate, field.operating_days)


async def check_subscription_conflicts(
    store: SchedulingStore,
    field_id: int,
    anchor_date: date,
    interval: str,
    candidate: TimeRange,
    horizon_days: Optional[int] = None,
) -> list[ConflictingDate]:
    """
    Every existing booking or active subscription a new subscription would
    collide with.

    Args:
        anchor_date: first requested occurrence; the weekday / day-of-month
            of later occurrences is derived from it
        horizon_days: how far past the anchor to look; defaults to
            RECURRING_CONFLICT_HORIZON_DAYS

    Returns:
        All collisions ordered by date, empty when the cadence is clear
    """
    if horizon_days is None:
        horizon_days = get_settings().RECURRING_CONFLICT_HORIZON_DAYS

    bookings = await store.list_bookings_between(
        field_id, anchor_date, anchor_date + timedelta(days=horizon_days)
    )
    conflicts = scan_window_conflicts(bookings, anchor_date, interval, candidate, horizon_days)

    field = await store.get_field(field_id)
    operating_days = field.operating_days if field is not None else None
    subscriptions = await store.list_active_subscriptions(field_id=field_id)
    booked_dates = {conflict.date for conflict in conflicts}
    conflicts.extend(
        conflict
        for conflict in scan_subscription_overlaps(
            subscriptions, anchor_date, interval, candidate, horizon_days, operating_days
        )
        if conflict.date not in booked_dates
    )
    conflicts.sort(key=lambda conflict: (conflict.date, conflict.time_range.start))

    if conflicts:
        logger.info(
            "subscription_conflicts_found",
            field_id=field_id,
            interval=interval,
            anchor_date=anchor_date.isoformat(),
            conflicts=len(conflicts),
        )
    return conflicts


async def list_reserved_occurrences(
    store: SchedulingStore,
    field,
    start: date,
    end: date,
) -> list[ReservedOccurrence]:
    """
    Dates in [start, end] that active subscriptions claim but have not yet
    materialized. Materialized occurrences already show up as bookings.
    """
    if end < start:
        raise ValueError("end must not be before start")
    if (end - start).days > MAX_RESERVED_RANGE_DAYS:
        raise ValueError(f"Range may span at most {MAX_RESERVED_RANGE_DAYS} days")

    subscriptions = await store.list_active_subscriptions(field_id=field.id)
    if not subscriptions:
        return []

    bookings = await store.list_bookings_between(field.id, start, end)
    materialized = {
        (booking.subscription_id, booking.date)
        for booking in bookings
        if booking.subscription_id is not None
    }

    reserved = []
    for subscription in subscriptions:
        time_range = TimeRange.parse(subscription.start_time, subscription.end_time)
        for day in iter_occurrences(subscription, start, end, field.operating_days):
            if (subscription.id, day) in materialized:
                continue
            reserved.append(
                ReservedOccurrence(
                    date=day,
                    subscription_id=subscription.id,
                    interval=subscription.interval,
                    time_range=time_range,
                )
            )

    reserved.sort(key=lambda item: (item.date, item.time_range.start))
    return reserved
