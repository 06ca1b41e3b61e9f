"""
Recurring conflict matching.

Single-date mode answers "does any active subscription already claim this
time on this day?" and stops at the first match. Window-scan mode runs the
other way round at subscription-creation time: given the cadence a customer
is asking for, it collects every existing booking inside the horizon that
the new subscription would land on, so all collisions can be reported at
once.

Both modes compare times with `overlaps` only.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from fieldslots.core.errors import UnknownIntervalType
from fieldslots.models.subscription import EVERYDAY, MONTHLY, WEEKLY
from fieldslots.scheduling.overlap import TimeRange, overlaps
from fieldslots.scheduling.operating_days import operates_on
from fieldslots.scheduling.recurrence import clamp_day, is_due_on


@dataclass(frozen=True)
class RecurringConflict:
    subscription_id: int
    interval: str
    time_range: TimeRange
    reason: str


@dataclass(frozen=True)
class ConflictingDate:
    """An existing booking, or another subscription's occurrence, the new cadence lands on."""

    date: date
    time_range: TimeRange
    booking_id: Optional[int] = None
    subscription_id: Optional[int] = None


def recurring_reason(interval: str, time_range: TimeRange) -> str:
    return f"This time slot is reserved by a {interval} recurring booking ({time_range.label()})"


def find_recurring_conflict(
    subscriptions: Iterable,
    day: date,
    candidate: TimeRange,
    operating_days: Optional[Iterable[str]] = None,
) -> Optional[RecurringConflict]:
    for subscription in subscriptions:
        if not is_due_on(subscription, day, operating_days):
            continue
        reserved = TimeRange.parse(subscription.start_time, subscription.end_time)
        if overlaps(candidate, reserved):
            return RecurringConflict(
                subscription_id=subscription.id,
                interval=subscription.interval,
                time_range=reserved,
                reason=recurring_reason(subscription.interval, reserved),
            )
    return None


def cadence_lands_on(interval: str, anchor_date: date, day: date) -> bool:
    """Whether a subscription anchored on `anchor_date` would occupy `day`."""
    if day < anchor_date:
        return False
    if interval == EVERYDAY:
        return True
    if interval == WEEKLY:
        return day.weekday() == anchor_date.weekday()
    if interval == MONTHLY:
        return day == clamp_day(day.year, day.month, anchor_date.day)
    raise UnknownIntervalType(interval)


def scan_window_conflicts(
    bookings: Iterable,
    anchor_date: date,
    interval: str,
    candidate: TimeRange,
    horizon_days: int,
) -> list[ConflictingDate]:
    if interval not in (EVERYDAY, WEEKLY, MONTHLY):
        raise UnknownIntervalType(interval)

    horizon_end = anchor_date + timedelta(days=horizon_days)
    conflicts = []
    for booking in bookings:
        if not anchor_date <= booking.date <= horizon_end:
            continue
        if not cadence_lands_on(interval, anchor_date, booking.date):
            continue
        existing = TimeRange.parse(booking.start_time, booking.end_time)
        if overlaps(candidate, existing):
            conflicts.append(ConflictingDate(date=booking.date, booking_id=booking.id, time_range=existing))

    conflicts.sort(key=lambda conflict: (conflict.date, conflict.time_range.start))
    return conflicts


def scan_subscription_overlaps(
    subscriptions: Iterable,
    anchor_date: date,
    interval: str,
    candidate: TimeRange,
    horizon_days: int,
    operating_days: Optional[Iterable[str]] = None,
) -> list[ConflictingDate]:
    """
    Dates in [anchor, anchor + horizon] on which the requested cadence and an
    active subscription would both hold overlapping time. Days the field is
    closed never produce a booking and are skipped.
    """
    if interval not in (EVERYDAY, WEEKLY, MONTHLY):
        raise UnknownIntervalType(interval)

    subscriptions = list(subscriptions)
    conflicts = []
    day = anchor_date
    horizon_end = anchor_date + timedelta(days=horizon_days)
    while day <= horizon_end:
        if cadence_lands_on(interval, anchor_date, day) and operates_on(operating_days, day):
            held = find_recurring_conflict(subscriptions, day, candidate, operating_days)
            if held is not None:
                conflicts.append(
                    ConflictingDate(date=day, time_range=held.time_range, subscription_id=held.subscription_id)
                )
        day += timedelta(days=1)
    return conflicts
