"""
Recurrence projection for subscriptions.

Two entry points:

  next_occurrence(sub, after)             the naive next date after `after`
                                          (normally the last materialized day)
  next_valid_occurrence_from(sub, today)  the first date strictly after today,
                                          used when the naive projection has
                                          fallen into the past

Cadence rules:

  everyday  the next day the field operates on, probing at most a week ahead
  weekly    +7 days from `after`; re-anchored on the subscription's weekday
            when projecting from today
  monthly   the anchor day-of-month in the following month, clamped to that
            month's last day (a 31st subscription lands on Feb 28/29)

The functions accept any object exposing `interval`, `anchor_date`,
`day_of_week` and `day_of_month`, so they work on ORM rows and on plain
test doubles alike.
"""

import calendar
from datetime import date, timedelta
from typing import Iterable, Iterator, Optional

from fieldslots.core.errors import SchedulingAnomaly, UnknownIntervalType
from fieldslots.models.subscription import EVERYDAY, MONTHLY, WEEKLY
from fieldslots.scheduling.operating_days import operates_on, weekday_index

# One full week: any consistent operating-day configuration matches within it.
MAX_OPERATING_DAY_PROBES = 7


def clamp_day(year: int, month: int, day_of_month: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day_of_month, last_day))


def shift_months(day: date, months: int, day_of_month: int) -> date:
    """Move `months` calendar months from `day`, landing on the clamped anchor."""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    return clamp_day(year, month + 1, day_of_month)


def target_weekday(subscription) -> int:
    if subscription.day_of_week:
        return weekday_index(subscription.day_of_week)
    return subscription.anchor_date.weekday()


def target_day_of_month(subscription) -> int:
    return subscription.day_of_month or subscription.anchor_date.day


def _next_operating_day(after: date, operating_days: Optional[Iterable[str]], subscription) -> date:
    candidate = after + timedelta(days=1)
    for _ in range(MAX_OPERATING_DAY_PROBES):
        if operates_on(operating_days, candidate):
            return candidate
        candidate += timedelta(days=1)
    raise SchedulingAnomaly(
        f"No operating day within {MAX_OPERATING_DAY_PROBES} days after {after.isoformat()} "
        f"for subscription {getattr(subscription, 'id', None)} (operating days: {operating_days!r})"
    )


def next_occurrence(subscription, after: date, operating_days: Optional[Iterable[str]] = None) -> date:
    interval = subscription.interval

    if interval == EVERYDAY:
        return _next_operating_day(after, operating_days, subscription)
    if interval == WEEKLY:
        return after + timedelta(days=7)
    if interval == MONTHLY:
        return shift_months(after, 1, subscription.day_of_month or after.day)

    raise UnknownIntervalType(interval)


def next_valid_occurrence_from(
    subscription,
    today: date,
    operating_days: Optional[Iterable[str]] = None,
) -> date:
    interval = subscription.interval

    if interval == EVERYDAY:
        return _next_operating_day(today, operating_days, subscription)

    if interval == WEEKLY:
        days_ahead = (target_weekday(subscription) - today.weekday()) % 7
        return today + timedelta(days=days_ahead or 7)

    if interval == MONTHLY:
        day_of_month = target_day_of_month(subscription)
        candidate = clamp_day(today.year, today.month, day_of_month)
        if candidate <= today:
            candidate = shift_months(today, 1, day_of_month)
        return candidate

    raise UnknownIntervalType(interval)


def is_due_on(subscription, day: date, operating_days: Optional[Iterable[str]] = None) -> bool:
    """Whether the subscription's cadence claims `day`."""
    interval = subscription.interval
    if interval not in (EVERYDAY, WEEKLY, MONTHLY):
        raise UnknownIntervalType(interval)

    if subscription.anchor_date and day < subscription.anchor_date:
        return False

    if interval == EVERYDAY:
        return operates_on(operating_days, day)
    if interval == WEEKLY:
        return day.weekday() == target_weekday(subscription)
    return day == clamp_day(day.year, day.month, target_day_of_month(subscription))


def iter_occurrences(
    subscription,
    start: date,
    end: date,
    operating_days: Optional[Iterable[str]] = None,
) -> Iterator[date]:
    """Yield every due date in [start, end]."""
    day = start
    while day <= end:
        if is_due_on(subscription, day, operating_days):
            yield day
        day += timedelta(days=1)
