"""
Tests for the daily and hourly reconciliation passes.
"""

from datetime import date, datetime

import pytest

from fieldslots.models import Booking, Subscription
from fieldslots.services.booking_service import transition_booking

TODAY = date(2024, 6, 12)  # Wednesday


@pytest.mark.asyncio
async def test_daily_pass_materializes_next_occurrence(recurring, notifier, field, make_booking,
                                                       make_subscription, fetch_all):
    subscription = await make_subscription(
        field, "weekly", date(2024, 6, 10), "10:00", "11:00",
        day_of_week="Monday", last_booking_date=date(2024, 6, 10),
    )
    await make_booking(field, date(2024, 6, 10), "10:00", "11:00", subscription_id=subscription.id)

    summary = await recurring.run_daily_pass(today=TODAY)

    assert (summary.created, summary.skipped, summary.failed, summary.cancelled) == (1, 0, 0, 0)
    bookings = await fetch_all(Booking, Booking.date == date(2024, 6, 17))
    assert len(bookings) == 1
    assert bookings[0].subscription_id == subscription.id
    [row] = await fetch_all(Subscription)
    assert row.last_booking_date == date(2024, 6, 17)

    [event] = notifier.events
    assert event.type == "booking_created"
    assert event.user_id == 42
    assert event.data["booking_id"] == bookings[0].id


@pytest.mark.asyncio
async def test_daily_pass_is_idempotent(recurring, field, make_subscription, fetch_all):
    await make_subscription(
        field, "weekly", date(2024, 6, 10), "10:00", "11:00",
        day_of_week="Monday", last_booking_date=date(2024, 6, 10),
    )

    first = await recurring.run_daily_pass(today=TODAY)
    second = await recurring.run_daily_pass(today=TODAY)

    assert first.created == 1
    assert second.created == 0
    assert second.skipped == 1
    assert len(await fetch_all(Booking)) == 1


@pytest.mark.asyncio
async def test_daily_pass_reprojects_stale_subscription(recurring, field, make_subscription, fetch_all):
    await make_subscription(
        field, "weekly", date(2024, 6, 3), "10:00", "11:00",
        day_of_week="Monday", last_booking_date=date(2024, 6, 3),
    )

    summary = await recurring.run_daily_pass(today=TODAY)

    assert summary.created == 1
    [booking] = await fetch_all(Booking)
    assert booking.date == date(2024, 6, 17)


@pytest.mark.asyncio
async def test_daily_pass_auto_cancels_inactive_subscription(recurring, notifier, field, make_booking,
                                                             make_subscription, fetch_all):
    last = date(2024, 5, 23)  # 20 days before TODAY
    subscription = await make_subscription(
        field, "weekly", last, "10:00", "11:00", day_of_week="Thursday", last_booking_date=last,
    )
    future = await make_booking(field, date(2024, 6, 20), "10:00", "11:00", subscription_id=subscription.id)

    summary = await recurring.run_daily_pass(today=TODAY)

    assert summary.cancelled == 1
    assert summary.created == 0
    [row] = await fetch_all(Subscription)
    assert row.status == "cancelled"
    [booking] = await fetch_all(Booking, Booking.id == future.id)
    assert booking.status == "cancelled"
    assert booking.cancel_reason == "Subscription cancelled due to inactivity"

    [event] = notifier.events
    assert event.type == "subscription_auto_cancelled"
    assert event.data["days_inactive"] == 20


@pytest.mark.asyncio
async def test_daily_pass_counts_slot_conflict_as_skip(recurring, notifier, field, make_booking,
                                                       make_subscription, fetch_all):
    await make_subscription(
        field, "weekly", date(2024, 6, 10), "10:00", "11:00",
        day_of_week="Monday", last_booking_date=date(2024, 6, 10),
    )
    await make_booking(field, date(2024, 6, 17), "10:30", "11:30", user_id=9)

    summary = await recurring.run_daily_pass(today=TODAY)

    assert (summary.created, summary.skipped, summary.failed) == (0, 1, 0)
    assert notifier.events == []
    assert len(await fetch_all(Booking)) == 1


@pytest.mark.asyncio
async def test_daily_pass_isolates_failures(recurring, field, make_subscription, fetch_all):
    broken = await make_subscription(
        field, "weekly", date(2024, 6, 11), "25:99", "11:00",
        day_of_week="Tuesday", last_booking_date=date(2024, 6, 11),
    )
    await make_subscription(
        field, "weekly", date(2024, 6, 10), "10:00", "11:00",
        day_of_week="Monday", last_booking_date=date(2024, 6, 10),
    )

    summary = await recurring.run_daily_pass(today=TODAY)

    assert summary.created == 1
    assert summary.failed == 1
    assert summary.failures[0]["subscription_id"] == broken.id
    assert summary.failures[0]["error_type"] == "InvalidTimeFormat"
    assert len(await fetch_all(Booking)) == 1


@pytest.mark.asyncio
async def test_daily_pass_skips_blocked_field(recurring, db_session, field, make_subscription, fetch_all):
    await make_subscription(
        field, "weekly", date(2024, 6, 10), "10:00", "11:00",
        day_of_week="Monday", last_booking_date=date(2024, 6, 10),
    )
    field.is_blocked = True
    await db_session.commit()

    summary = await recurring.run_daily_pass(today=TODAY)

    assert summary.skipped == 1
    assert await fetch_all(Booking) == []


@pytest.mark.asyncio
async def test_daily_pass_everyday_lands_on_operating_day(recurring, weekend_field, make_subscription, fetch_all):
    await make_subscription(
        weekend_field, "everyday", date(2024, 6, 8), "10:00", "11:00", last_booking_date=date(2024, 6, 8),
    )

    summary = await recurring.run_daily_pass(today=TODAY)

    assert summary.created == 1
    [booking] = await fetch_all(Booking)
    assert booking.date == date(2024, 6, 15)  # Saturday


@pytest.mark.asyncio
async def test_hourly_pass_books_after_session_ends(recurring, field, make_booking, make_subscription, fetch_all):
    subscription = await make_subscription(
        field, "weekly", date(2024, 6, 10), "10:00", "11:00",
        day_of_week="Monday", last_booking_date=date(2024, 6, 10),
    )
    await make_booking(field, date(2024, 6, 10), "10:00", "11:00", subscription_id=subscription.id)

    during = await recurring.run_hourly_pass(now=datetime(2024, 6, 10, 10, 30))
    after = await recurring.run_hourly_pass(now=datetime(2024, 6, 10, 11, 30))
    again = await recurring.run_hourly_pass(now=datetime(2024, 6, 10, 12, 30))

    assert (during.created, during.skipped) == (0, 0)
    assert after.created == 1
    assert (again.created, again.skipped) == (0, 1)
    dates = [booking.date for booking in await fetch_all(Booking)]
    assert dates == [date(2024, 6, 10), date(2024, 6, 17)]


@pytest.mark.asyncio
async def test_hourly_pass_ignores_subscriptions_without_history(recurring, field, make_subscription):
    await make_subscription(field, "weekly", date(2024, 6, 10), "10:00", "11:00", day_of_week="Monday")

    summary = await recurring.run_hourly_pass(now=datetime(2024, 6, 12, 9, 0))

    assert (summary.created, summary.skipped, summary.failed, summary.cancelled) == (0, 0, 0, 0)


@pytest.mark.asyncio
async def test_hourly_pass_keeps_cancelled_upcoming_occurrence_released(recurring, store, db_session, field,
                                                                      make_booking, make_subscription, fetch_all):
    subscription = await make_subscription(
        field, "weekly", date(2024, 6, 10), "10:00", "11:00",
        day_of_week="Monday", last_booking_date=date(2024, 6, 17),
    )
    await make_booking(field, date(2024, 6, 10), "10:00", "11:00", subscription_id=subscription.id)
    upcoming = await make_booking(field, date(2024, 6, 17), "10:00", "11:00", subscription_id=subscription.id)
    await transition_booking(store, upcoming.id, "cancelled")
    await db_session.commit()

    summary = await recurring.run_hourly_pass(now=datetime(2024, 6, 12, 8, 0))

    assert summary.created == 1
    assert await fetch_all(Booking, Booking.date == date(2024, 6, 17), Booking.status != "cancelled") == []
    [booking] = await fetch_all(Booking, Booking.date == date(2024, 6, 24))
    assert booking.subscription_id == subscription.id
