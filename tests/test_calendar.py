"""
Tests for operating days, slot generation and recurrence projection.
"""

from datetime import date
from types import SimpleNamespace

import pytest

from fieldslots.core.errors import SchedulingAnomaly, UnknownIntervalType
from fieldslots.scheduling.conflicts import scan_subscription_overlaps
from fieldslots.scheduling.operating_days import operates_on, weekday_index, weekday_name
from fieldslots.scheduling.overlap import TimeRange
from fieldslots.scheduling.recurrence import (
    is_due_on,
    iter_occurrences,
    next_occurrence,
    next_valid_occurrence_from,
)
from fieldslots.scheduling.slots import generate_slots

FRIDAY = date(2024, 5, 31)
SATURDAY = date(2024, 6, 1)
MONDAY = date(2024, 6, 3)
WEDNESDAY = date(2024, 6, 5)


def subscription(interval, anchor, day_of_week=None, day_of_month=None, id=1):
    return SimpleNamespace(
        id=id,
        interval=interval,
        anchor_date=anchor,
        day_of_week=day_of_week,
        day_of_month=day_of_month,
    )


# Operating days

def test_weekends_token():
    assert operates_on(["weekends"], SATURDAY)
    assert not operates_on(["weekends"], MONDAY)


def test_weekday_names_are_case_insensitive():
    assert operates_on(["monday", "Wednesday"], MONDAY)
    assert operates_on(["monday", "Wednesday"], WEDNESDAY)
    assert not operates_on(["monday", "Wednesday"], FRIDAY)


def test_weekdays_and_everyday_tokens():
    assert operates_on(["weekdays"], FRIDAY)
    assert not operates_on(["weekdays"], SATURDAY)
    assert operates_on(["EveryDay"], SATURDAY)


def test_unconfigured_field_is_open_every_day():
    assert operates_on([], SATURDAY)
    assert operates_on(None, MONDAY)


def test_weekday_lookup():
    assert weekday_name(MONDAY) == "Monday"
    assert weekday_index("sunday") == 6
    with pytest.raises(ValueError):
        weekday_index("Funday")


# Slot generation

def test_generate_slots_covers_opening_hours():
    slots = generate_slots(9 * 60, 12 * 60, 30)
    assert len(slots) == 6
    assert slots[0] == (540, 570)
    assert slots[-1] == (690, 720)


def test_generate_slots_drops_trailing_partial_slot():
    slots = generate_slots(9 * 60, 11 * 60 + 40, 60)
    assert slots == [(540, 600), (600, 660)]


def test_generate_slots_rejects_non_positive_granularity():
    with pytest.raises(ValueError):
        generate_slots(540, 720, 0)


# Recurrence

def test_everyday_skips_closed_days():
    sub = subscription("everyday", FRIDAY)
    assert next_occurrence(sub, FRIDAY, ["weekends"]) == SATURDAY


def test_everyday_without_operating_days_is_next_day():
    sub = subscription("everyday", FRIDAY)
    assert next_occurrence(sub, FRIDAY, []) == SATURDAY


def test_everyday_with_no_matching_day_is_an_anomaly():
    sub = subscription("everyday", FRIDAY)
    with pytest.raises(SchedulingAnomaly):
        next_occurrence(sub, FRIDAY, ["Funday"])


def test_weekly_adds_seven_days():
    sub = subscription("weekly", MONDAY, day_of_week="Monday")
    assert next_occurrence(sub, MONDAY) == date(2024, 6, 10)


def test_monthly_clamps_to_end_of_month():
    sub = subscription("monthly", date(2024, 1, 31), day_of_month=31)
    assert next_occurrence(sub, date(2024, 1, 31)) == date(2024, 2, 29)
    assert next_occurrence(sub, date(2023, 1, 31)) == date(2023, 2, 28)


def test_monthly_returns_to_anchor_day_after_short_month():
    sub = subscription("monthly", date(2024, 1, 31), day_of_month=31)
    assert next_occurrence(sub, date(2024, 2, 29)) == date(2024, 3, 31)


def test_unknown_interval():
    sub = subscription("fortnightly", MONDAY)
    with pytest.raises(UnknownIntervalType):
        next_occurrence(sub, MONDAY)
    with pytest.raises(UnknownIntervalType):
        next_valid_occurrence_from(sub, MONDAY)


def test_weekly_projection_from_today():
    sub = subscription("weekly", MONDAY, day_of_week="Monday")
    assert next_valid_occurrence_from(sub, WEDNESDAY) == date(2024, 6, 10)
    # Never today itself
    assert next_valid_occurrence_from(sub, MONDAY) == date(2024, 6, 10)


def test_weekly_projection_falls_back_to_anchor_weekday():
    sub = subscription("weekly", SATURDAY)
    assert next_valid_occurrence_from(sub, MONDAY) == date(2024, 6, 8)


def test_monthly_projection_from_today():
    sub = subscription("monthly", date(2024, 1, 15), day_of_month=15)
    assert next_valid_occurrence_from(sub, date(2024, 6, 10)) == date(2024, 6, 15)
    assert next_valid_occurrence_from(sub, date(2024, 6, 15)) == date(2024, 7, 15)
    assert next_valid_occurrence_from(sub, date(2024, 6, 20)) == date(2024, 7, 15)


def test_everyday_projection_from_today_respects_operating_days():
    sub = subscription("everyday", date(2024, 5, 1))
    assert next_valid_occurrence_from(sub, MONDAY, ["weekends"]) == date(2024, 6, 8)


def test_is_due_on():
    weekly = subscription("weekly", MONDAY, day_of_week="Monday")
    assert is_due_on(weekly, date(2024, 6, 17))
    assert not is_due_on(weekly, date(2024, 6, 18))
    # Before the first requested occurrence nothing is claimed
    assert not is_due_on(weekly, date(2024, 5, 27))

    everyday = subscription("everyday", MONDAY)
    assert is_due_on(everyday, date(2024, 6, 8), ["weekends"])
    assert not is_due_on(everyday, date(2024, 6, 7), ["weekends"])

    monthly = subscription("monthly", date(2024, 1, 31), day_of_month=31)
    assert is_due_on(monthly, date(2024, 4, 30))
    assert not is_due_on(monthly, date(2024, 4, 29))


def test_iter_occurrences():
    sub = subscription("weekly", MONDAY, day_of_week="Monday")
    days = list(iter_occurrences(sub, date(2024, 6, 1), date(2024, 6, 30)))
    assert days == [date(2024, 6, 3), date(2024, 6, 10), date(2024, 6, 17), date(2024, 6, 24)]


def test_weekends_token_over_a_full_month():
    for day_number in range(1, 31):
        day = date(2024, 9, day_number)
        assert operates_on(["weekends"], day) is (day.weekday() >= 5)


# Subscription overlap scan

def test_subscription_overlaps_skip_closed_days():
    held = SimpleNamespace(
        id=7, interval="everyday", anchor_date=FRIDAY, day_of_week=None, day_of_month=None,
        start_time="10:00", end_time="11:00",
    )

    conflicts = scan_subscription_overlaps(
        [held], FRIDAY, "everyday", TimeRange.parse("10:30", "11:30"), 4, ["weekdays"]
    )

    assert [conflict.date for conflict in conflicts] == [FRIDAY, MONDAY, date(2024, 6, 4)]
    assert {conflict.subscription_id for conflict in conflicts} == {7}
    assert conflicts[0].booking_id is None
    assert conflicts[0].time_range == TimeRange.parse("10:00", "11:00")
