"""
Availability evaluation for a field on a given day.

Order of checks:
  1. concrete bookings (pending / confirmed) on that day
  2. recurring subscriptions due that day

A concrete booking is the stronger commitment, so when both would block the
answer reports conflict_type="booking". Conflicts are answers, not errors:
callers always get an AvailabilityResult back.
"""

import time
from dataclasses import dataclass
from datetime import date
from typing import Optional

from fieldslots.core.config import get_settings
from fieldslots.core.logging import get_logger
from fieldslots.core.metrics import availability_latency, record_availability_check
from fieldslots.scheduling.conflicts import find_recurring_conflict
from fieldslots.scheduling.operating_days import operates_on
from fieldslots.scheduling.overlap import TimeRange, overlaps
from fieldslots.scheduling.recurrence import is_due_on
from fieldslots.scheduling.slots import generate_slots
from fieldslots.scheduling.timeofday import format_time, format_time_12h, parse_time
from fieldslots.services.conflict_service import check_recurring_slot_conflict
from fieldslots.services.interfaces.store import SchedulingStore

logger = get_logger(__name__)

BOOKING_CONFLICT = "booking"
RECURRING_CONFLICT = "recurring"

ALREADY_BOOKED_REASON = "This time slot is already booked"


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    conflict_type: Optional[str] = None


@dataclass(frozen=True)
class SlotView:
    start: str
    end: str
    label: str
    is_booked: bool
    is_booked_by_recurring: bool
    recurring_interval: Optional[str]

    @property
    def is_available(self) -> bool:
        return not (self.is_booked or self.is_booked_by_recurring)


@dataclass(frozen=True)
class DaySlots:
    field_id: int
    date: date
    operates: bool
    slot_minutes: int
    slots: list[SlotView]


async def check_availability(
    store: SchedulingStore,
    field,
    day: date,
    candidate: TimeRange,
    exclude_booking_id: Optional[int] = None,
    exclude_subscription_id: Optional[int] = None,
) -> AvailabilityResult:
    """
    Decide whether `candidate` is free at `field` on `day`.

    Args:
        exclude_booking_id: booking being edited, ignored in step 1
        exclude_subscription_id: subscription being materialized, ignored in
            step 2 so it does not block itself
    """
    started = time.perf_counter()

    bookings = await store.list_blocking_bookings(field.id, day, exclude_booking_id)
    for booking in bookings:
        if overlaps(candidate, TimeRange.parse(booking.start_time, booking.end_time)):
            result = AvailabilityResult(False, ALREADY_BOOKED_REASON, BOOKING_CONFLICT)
            break
    else:
        conflict = await check_recurring_slot_conflict(
            store, field, day, candidate, exclude_subscription_id
        )
        if conflict is not None:
            result = AvailabilityResult(False, conflict.reason, RECURRING_CONFLICT)
        else:
            result = AvailabilityResult(True)

    availability_latency.observe(time.perf_counter() - started)
    record_availability_check(result.conflict_type or "available")
    logger.debug(
        "availability_checked",
        field_id=field.id,
        date=day.isoformat(),
        slot=candidate.label(),
        available=result.available,
        conflict_type=result.conflict_type,
    )
    return result


def slot_minutes_for(field, duration: Optional[int] = None) -> int:
    return duration or field.slot_duration_minutes or get_settings().DEFAULT_SLOT_MINUTES


async def get_day_slots(
    store: SchedulingStore,
    field,
    day: date,
    duration: Optional[int] = None,
) -> DaySlots:
    """
    The field's slot grid for one day with each slot's booked state.

    Completed bookings still mark their slot as booked here. A subscription
    that already materialized a booking on `day` is represented by that
    booking rather than by its cadence.
    """
    slot_minutes = slot_minutes_for(field, duration)
    if not operates_on(field.operating_days, day):
        return DaySlots(field.id, day, False, slot_minutes, [])

    opening = parse_time(field.opening_time)
    closing = parse_time(field.closing_time)

    bookings = await store.list_day_bookings(field.id, day)
    booked_ranges = [TimeRange.parse(b.start_time, b.end_time) for b in bookings]
    materialized = {b.subscription_id for b in bookings if b.subscription_id is not None}

    subscriptions = [
        subscription
        for subscription in await store.list_active_subscriptions(field_id=field.id)
        if subscription.id not in materialized
        and is_due_on(subscription, day, field.operating_days)
    ]

    views = []
    for slot in generate_slots(opening, closing, slot_minutes):
        recurring = find_recurring_conflict(subscriptions, day, slot, field.operating_days)
        views.append(
            SlotView(
                start=format_time(slot.start),
                end=format_time(slot.end),
                label=f"{format_time_12h(slot.start)} - {format_time_12h(slot.end)}",
                is_booked=any(overlaps(slot, booked) for booked in booked_ranges),
                is_booked_by_recurring=recurring is not None,
                recurring_interval=recurring.interval if recurring else None,
            )
        )
    return DaySlots(field.id, day, True, slot_minutes, views)
