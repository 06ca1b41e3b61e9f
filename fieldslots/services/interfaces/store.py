"""
Persistence interface for the scheduling core.

The core never talks to a database directly; it asks a SchedulingStore.
The only write with a concurrency contract is `create_booking_if_absent`,
which must be an atomic conditional insert keyed on
(subscription_id, date, status != cancelled).
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional


class SchedulingStore(ABC):
    """
    Interface for the reads and writes the scheduling core needs.

    Implementations:
    - SqlAlchemySchedulingStore: async SQLAlchemy session, unique partial
      index as the idempotency guard
    """

    # Reads

    @abstractmethod
    async def get_field(self, field_id: int):
        """Return the Field or None."""

    @abstractmethod
    async def get_subscription(self, subscription_id: int):
        """Return the Subscription or None."""

    @abstractmethod
    async def get_booking(self, booking_id: int):
        """Return the Booking or None."""

    @abstractmethod
    async def list_blocking_bookings(
        self,
        field_id: int,
        day: date,
        exclude_booking_id: Optional[int] = None,
    ) -> list:
        """Bookings on (field, day) that are neither cancelled nor completed."""

    @abstractmethod
    async def list_day_bookings(self, field_id: int, day: date) -> list:
        """Every non-cancelled booking on (field, day)."""

    @abstractmethod
    async def list_bookings_between(self, field_id: int, start: date, end: date) -> list:
        """Non-cancelled bookings for the field with start <= date <= end."""

    @abstractmethod
    async def list_active_subscriptions(
        self,
        field_id: Optional[int] = None,
        exclude_subscription_id: Optional[int] = None,
    ) -> list:
        """Active subscriptions not scheduled to end at period end."""

    @abstractmethod
    async def find_occurrence_booking(self, subscription_id: int, day: date):
        """The non-cancelled booking materialized for (subscription, day), or None."""

    @abstractmethod
    async def latest_past_booking(self, subscription_id: int, on_or_before: date):
        """Most recent confirmed or completed booking of the subscription up to a day."""

    # Writes

    @abstractmethod
    async def create_booking_if_absent(
        self,
        *,
        field_id: int,
        user_id: int,
        day: date,
        start_time: str,
        end_time: str,
        status: str,
        subscription_id: Optional[int] = None,
    ):
        """
        Insert a booking unless a non-cancelled one already exists for
        (subscription_id, day).

        Returns:
            The new Booking, or None when another writer got there first
        """

    @abstractmethod
    async def add_subscription(self, **values):
        """Insert and return a new Subscription."""

    @abstractmethod
    async def set_last_booking_date(self, subscription_id: int, day: date) -> None:
        """Advance last_booking_date; never moves it backwards."""

    @abstractmethod
    async def mark_subscription_cancelled(
        self,
        subscription_id: int,
        *,
        immediately: bool,
        cancelled_at: datetime,
    ) -> None:
        """Cancel now, or flag the subscription to end at period end."""

    @abstractmethod
    async def cancel_future_bookings(
        self,
        subscription_id: int,
        from_day: date,
        reason: str,
        cancelled_at: datetime,
    ) -> int:
        """Cancel pending/confirmed bookings on or after from_day; return the count."""

    @abstractmethod
    async def set_booking_status(self, booking, status: str, cancelled_at: Optional[datetime] = None):
        """Persist a status change and return the booking."""
