"""
Tests for the HTTP surface: slots, availability, subscriptions, bookings,
manual reconciliation runs, health and metrics.
"""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from fieldslots.models import Booking, Subscription


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_metrics_endpoint(client: AsyncClient):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "availability_checks_total" in response.text


@pytest.mark.asyncio
async def test_day_slots(client: AsyncClient, field, make_booking):
    await make_booking(field, date(2024, 6, 3), "10:00", "10:30")

    response = await client.get(f"/api/v1/fields/{field.id}/slots", params={"date": "2024-06-03"})

    assert response.status_code == 200
    data = response.json()
    assert data["operates"] is True
    assert data["cached"] is False
    assert len(data["slots"]) == 6
    booked = [slot["start"] for slot in data["slots"] if slot["is_booked"]]
    assert booked == ["10:00"]
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_day_slots_unknown_field(client: AsyncClient):
    response = await client.get("/api/v1/fields/999/slots", params={"date": "2024-06-03"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_availability(client: AsyncClient, field, make_booking):
    await make_booking(field, date(2024, 6, 1), "10:00", "10:30")
    url = f"/api/v1/fields/{field.id}/availability"

    taken = await client.get(url, params={"date": "2024-06-01", "start_time": "10:15", "end_time": "10:45"})
    free = await client.get(url, params={"date": "2024-06-01", "start_time": "10:30AM", "end_time": "11:00AM"})

    assert taken.json() == {
        "available": False,
        "reason": "This time slot is already booked",
        "conflict_type": "booking",
    }
    assert free.json()["available"] is True


@pytest.mark.asyncio
async def test_availability_rejects_bad_times(client: AsyncClient, field):
    url = f"/api/v1/fields/{field.id}/availability"

    malformed = await client.get(url, params={"date": "2024-06-01", "start_time": "25:00", "end_time": "26:00"})
    reversed_range = await client.get(url, params={"date": "2024-06-01", "start_time": "11:00", "end_time": "10:00"})

    assert malformed.status_code == 422
    assert reversed_range.status_code == 400


@pytest.mark.asyncio
async def test_subscription_conflict_preview(client: AsyncClient, field, make_booking):
    booking = await make_booking(field, date(2024, 6, 10), "10:00", "11:00")

    response = await client.post(
        "/api/v1/subscriptions/conflicts",
        json={
            "field_id": field.id,
            "interval": "weekly",
            "anchor_date": "2024-06-03",
            "start_time": "10:00",
            "end_time": "11:00",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["has_conflict"] is True
    assert data["conflicting_dates"] == [
        {"date": "2024-06-10", "booking_id": booking.id, "subscription_id": None,
         "start_time": "10:00", "end_time": "11:00"}
    ]


@pytest.mark.asyncio
async def test_create_subscription(client: AsyncClient, field, fetch_all):
    response = await client.post(
        "/api/v1/subscriptions/",
        json={
            "field_id": field.id,
            "user_id": 42,
            "interval": "weekly",
            "anchor_date": "2024-06-03",
            "start_time": "10:00AM",
            "end_time": "11:00AM",
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["subscription"]["day_of_week"] == "Monday"
    assert data["subscription"]["start_time"] == "10:00"
    assert data["first_booking"]["date"] == "2024-06-03"

    [booking] = await fetch_all(Booking)
    assert booking.subscription_id == data["subscription"]["id"]


@pytest.mark.asyncio
async def test_create_subscription_conflict_returns_409(client: AsyncClient, field, make_booking, fetch_all):
    await make_booking(field, date(2024, 6, 10), "10:00", "11:00")
    await make_booking(field, date(2024, 6, 24), "10:00", "11:00")

    response = await client.post(
        "/api/v1/subscriptions/",
        json={
            "field_id": field.id,
            "user_id": 42,
            "interval": "weekly",
            "anchor_date": "2024-06-03",
            "start_time": "10:00",
            "end_time": "11:00",
        },
    )

    assert response.status_code == 409
    dates = [item["date"] for item in response.json()["conflicting_dates"]]
    assert dates == ["2024-06-10", "2024-06-24"]
    assert len(await fetch_all(Booking)) == 2


@pytest.mark.asyncio
async def test_second_subscription_on_held_slot_returns_409(client: AsyncClient, field, fetch_all):
    payload = {
        "field_id": field.id,
        "interval": "weekly",
        "anchor_date": "2024-06-03",
        "start_time": "10:00",
        "end_time": "11:00",
    }

    first = await client.post("/api/v1/subscriptions/", json={**payload, "user_id": 42})
    second = await client.post("/api/v1/subscriptions/", json={**payload, "user_id": 43})

    assert first.status_code == 201
    assert second.status_code == 409
    held_by = {item["subscription_id"] for item in second.json()["conflicting_dates"]} - {None}
    assert held_by == {first.json()["subscription"]["id"]}
    [subscription] = await fetch_all(Subscription)
    assert subscription.status == "active"


@pytest.mark.asyncio
async def test_create_subscription_outside_hours_returns_400(client: AsyncClient, field, weekend_field):
    payload = {"user_id": 42, "interval": "weekly", "anchor_date": "2024-06-03"}

    late = await client.post(
        "/api/v1/subscriptions/",
        json={**payload, "field_id": field.id, "start_time": "11:30", "end_time": "12:30"},
    )
    closed = await client.post(
        "/api/v1/subscriptions/",
        json={**payload, "field_id": weekend_field.id, "start_time": "10:00", "end_time": "11:00"},
    )

    assert late.status_code == 400
    assert closed.status_code == 400

@pytest.mark.asyncio
async def test_create_subscription_validation(client: AsyncClient, field):
    payload = {
        "field_id": field.id,
        "user_id": 42,
        "anchor_date": "2024-06-03",
        "start_time": "10:00",
        "end_time": "11:00",
    }

    unknown_interval = await client.post("/api/v1/subscriptions/", json={**payload, "interval": "yearly"})
    reversed_range = await client.post(
        "/api/v1/subscriptions/", json={**payload, "interval": "weekly", "start_time": "12:00"}
    )

    assert unknown_interval.status_code == 422
    assert reversed_range.status_code == 400


@pytest.mark.asyncio
async def test_cancel_subscription(client: AsyncClient, field, make_subscription, make_booking, fetch_all):
    today = date.today()
    subscription = await make_subscription(field, "everyday", today, "10:00", "11:00")
    await make_booking(field, today + timedelta(days=1), "10:00", "11:00", subscription_id=subscription.id)

    response = await client.delete(
        f"/api/v1/subscriptions/{subscription.id}", params={"immediately": "true"}
    )
    again = await client.delete(f"/api/v1/subscriptions/{subscription.id}")
    missing = await client.delete("/api/v1/subscriptions/999")

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["bookings_cancelled"] == 1
    assert again.status_code == 400
    assert missing.status_code == 404
    [booking] = await fetch_all(Booking)
    assert booking.status == "cancelled"


@pytest.mark.asyncio
async def test_booking_status_transitions(client: AsyncClient, field, make_booking):
    booking = await make_booking(field, date(2024, 6, 3), "10:00", "11:00", status="pending")
    url = f"/api/v1/bookings/{booking.id}/status"

    confirmed = await client.patch(url, json={"status": "confirmed"})
    completed = await client.patch(url, json={"status": "completed"})
    reopened = await client.patch(url, json={"status": "confirmed"})

    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"
    assert completed.json()["status"] == "completed"
    assert reopened.status_code == 400

    fetched = await client.get(f"/api/v1/bookings/{booking.id}")
    assert fetched.json()["status"] == "completed"
    assert (await client.get("/api/v1/bookings/999")).status_code == 404


@pytest.mark.asyncio
async def test_reserved_dates(client: AsyncClient, field, make_subscription):
    subscription = await make_subscription(field, "weekly", date(2024, 6, 3), "10:00", "11:00", day_of_week="Monday")

    response = await client.get(
        f"/api/v1/fields/{field.id}/reserved-dates", params={"start": "2024-06-01", "end": "2024-06-20"}
    )
    too_wide = await client.get(
        f"/api/v1/fields/{field.id}/reserved-dates", params={"start": "2024-01-01", "end": "2024-12-31"}
    )

    assert response.status_code == 200
    assert response.json() == [
        {"date": day, "subscription_id": subscription.id, "interval": "weekly",
         "start_time": "10:00", "end_time": "11:00"}
        for day in ("2024-06-03", "2024-06-10", "2024-06-17")
    ]
    assert too_wide.status_code == 400


@pytest.mark.asyncio
async def test_manual_reconciliation_run(client: AsyncClient, field, make_subscription):
    last = date.today() - timedelta(days=1)
    await make_subscription(field, "everyday", last, "10:00", "11:00", last_booking_date=last)

    response = await client.post("/api/v1/admin/recurring/run", params={"pass_name": "daily"})
    rejected = await client.post("/api/v1/admin/recurring/run", params={"pass_name": "weekly"})

    assert response.status_code == 200
    data = response.json()
    assert data["pass_name"] == "daily"
    assert data["created"] == 1
    assert data["failures"] == []
    assert rejected.status_code == 422
