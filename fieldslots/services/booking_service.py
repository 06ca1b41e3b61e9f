"""
Booking materialization and status changes.

MATERIALIZATION
===============

Turning a subscription's due occurrence into a concrete booking:

  1. Re-check availability for (field, day, subscription times), ignoring
     the subscription itself in the recurring step. A completed booking for
     the identical interval also counts as taken. Unavailable -> SlotConflict.
  2. create_booking_if_absent(...) keyed on (subscription_id, day).
     None means another writer already materialized this occurrence.
  3. Advance the subscription's last_booking_date (never backwards).

Steps 1 and 2 are not atomic with each other. The unique index makes step 2
safe against duplicate materialization; a one-off booking slipping in
between 1 and 2 is the same race every booking flow has and is resolved by
the owner, not by this module.
"""

from datetime import date, datetime, timezone
from typing import Optional

from fieldslots.core.errors import InvalidStatusTransition, NotFound, SlotConflict
from fieldslots.core.logging import get_logger
from fieldslots.models.booking import CANCELLED, COMPLETED, CONFIRMED, STATUS_TRANSITIONS
from fieldslots.scheduling.overlap import TimeRange
from fieldslots.scheduling.timeofday import normalize_time
from fieldslots.services.availability_service import (
    ALREADY_BOOKED_REASON,
    BOOKING_CONFLICT,
    AvailabilityResult,
    check_availability,
)
from fieldslots.services.interfaces.store import SchedulingStore

logger = get_logger(__name__)


async def _completed_at(store: SchedulingStore, field_id: int, day: date, candidate: TimeRange) -> bool:
    """A session already played in exactly this interval still owns it."""
    for booking in await store.list_day_bookings(field_id, day):
        if booking.status == COMPLETED and TimeRange.parse(booking.start_time, booking.end_time) == candidate:
            return True
    return False


async def materialize_occurrence(
    store: SchedulingStore,
    subscription,
    field,
    day: date,
):
    """
    Create the booking for one occurrence of a subscription.

    Returns:
        The new Booking, or None if the occurrence was already materialized
    Raises:
        SlotConflict: the slot is taken by a booking or another subscription
    """
    subscription_id = subscription.id
    candidate = TimeRange.parse(subscription.start_time, subscription.end_time)

    result = await check_availability(
        store,
        field,
        day,
        candidate,
        exclude_subscription_id=subscription_id,
    )
    if result.available and await _completed_at(store, field.id, day, candidate):
        result = AvailabilityResult(False, ALREADY_BOOKED_REASON, BOOKING_CONFLICT)
    if not result.available:
        logger.info(
            "occurrence_slot_conflict",
            subscription_id=subscription_id,
            date=day.isoformat(),
            conflict_type=result.conflict_type,
            reason=result.reason,
        )
        raise SlotConflict(result)

    booking = await store.create_booking_if_absent(
        field_id=field.id,
        user_id=subscription.user_id,
        day=day,
        start_time=normalize_time(subscription.start_time),
        end_time=normalize_time(subscription.end_time),
        status=CONFIRMED,
        subscription_id=subscription_id,
    )
    if booking is None:
        return None

    await store.set_last_booking_date(subscription_id, day)
    logger.info(
        "occurrence_materialized",
        booking_id=booking.id,
        subscription_id=subscription_id,
        field_id=field.id,
        date=day.isoformat(),
    )
    return booking


def can_transition(current: str, target: str) -> bool:
    return target in STATUS_TRANSITIONS.get(current, set())


async def transition_booking(
    store: SchedulingStore,
    booking_id: int,
    target: str,
    now: Optional[datetime] = None,
):
    """Move a booking to a new status if the lifecycle allows it."""
    booking = await store.get_booking(booking_id)
    if booking is None:
        raise NotFound("Booking", booking_id)

    current = booking.status
    if not can_transition(current, target):
        raise InvalidStatusTransition(current, target)

    cancelled_at = (now or datetime.now(timezone.utc)) if target == CANCELLED else None
    booking = await store.set_booking_status(booking, target, cancelled_at=cancelled_at)

    logger.info("booking_status_changed", booking_id=booking_id, old_status=current, new_status=target)
    return booking
