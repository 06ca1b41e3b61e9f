"""
SQLAlchemy implementation of SchedulingStore.

IDEMPOTENT MATERIALIZATION
==========================

Problem:
  The daily and hourly reconciliation passes (or two overlapping runs of the
  same pass) can both decide that subscription S is due on day D. Both read
  "no booking yet", both insert. Result: a double booking.

Solution:
  The bookings table carries a partial unique index on
  (subscription_id, date) WHERE status != 'cancelled'. `create_booking_if_absent`
  just inserts and flushes:

  1. INSERT succeeds -> we own the occurrence
  2. INSERT violates uq_bookings_subscription_date_active -> someone else
     owns it; roll back and report None

  No in-process lock or cache takes part, so any number of scheduler
  processes can run side by side. A cancelled booking drops out of the index,
  which lets a cancelled occurrence be re-materialized.

  The rollback on conflict discards the whole session transaction. Callers
  therefore run each subscription in its own unit of work (`store_scope`).
"""

import functools
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncGenerator, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fieldslots.core.errors import PersistenceError
from fieldslots.core.logging import get_logger
from fieldslots.db.session import SessionLocal
from fieldslots.models.booking import Booking, CANCELLED, COMPLETED, CONFIRMED, PENDING
from fieldslots.models.field import Field
from fieldslots.models.subscription import ACTIVE, CANCELLED as SUBSCRIPTION_CANCELLED, Subscription
from fieldslots.services.interfaces.store import SchedulingStore

logger = get_logger(__name__)


def _translate_errors(method):
    """Surface driver/ORM failures as PersistenceError."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except PersistenceError:
            raise
        except SQLAlchemyError as e:
            raise PersistenceError(f"{method.__name__} failed: {e}") from e

    return wrapper


class SqlAlchemySchedulingStore(SchedulingStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    @_translate_errors
    async def get_field(self, field_id: int) -> Optional[Field]:
        return await self.session.get(Field, field_id)

    @_translate_errors
    async def get_subscription(self, subscription_id: int) -> Optional[Subscription]:
        return await self.session.get(Subscription, subscription_id)

    @_translate_errors
    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        return await self.session.get(Booking, booking_id)

    @_translate_errors
    async def list_blocking_bookings(
        self,
        field_id: int,
        day: date,
        exclude_booking_id: Optional[int] = None,
    ) -> list[Booking]:
        query = select(Booking).where(
            Booking.field_id == field_id,
            Booking.date == day,
            Booking.status.not_in([CANCELLED, COMPLETED]),
        )
        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)
        result = await self.session.execute(query.order_by(Booking.start_time))
        return list(result.scalars().all())

    @_translate_errors
    async def list_day_bookings(self, field_id: int, day: date) -> list[Booking]:
        result = await self.session.execute(
            select(Booking)
            .where(
                Booking.field_id == field_id,
                Booking.date == day,
                Booking.status != CANCELLED,
            )
            .order_by(Booking.start_time)
        )
        return list(result.scalars().all())

    @_translate_errors
    async def list_bookings_between(self, field_id: int, start: date, end: date) -> list[Booking]:
        # Served by ix_bookings_field_date
        result = await self.session.execute(
            select(Booking)
            .where(
                Booking.field_id == field_id,
                Booking.date >= start,
                Booking.date <= end,
                Booking.status != CANCELLED,
            )
            .order_by(Booking.date, Booking.start_time)
        )
        return list(result.scalars().all())

    @_translate_errors
    async def list_active_subscriptions(
        self,
        field_id: Optional[int] = None,
        exclude_subscription_id: Optional[int] = None,
    ) -> list[Subscription]:
        query = select(Subscription).where(
            Subscription.status == ACTIVE,
            Subscription.cancel_at_period_end.is_(False),
        )
        if field_id is not None:
            query = query.where(Subscription.field_id == field_id)
        if exclude_subscription_id is not None:
            query = query.where(Subscription.id != exclude_subscription_id)
        result = await self.session.execute(query.order_by(Subscription.id))
        return list(result.scalars().all())

    @_translate_errors
    async def find_occurrence_booking(self, subscription_id: int, day: date) -> Optional[Booking]:
        result = await self.session.execute(
            select(Booking).where(
                Booking.subscription_id == subscription_id,
                Booking.date == day,
                Booking.status != CANCELLED,
            )
        )
        return result.scalars().first()

    @_translate_errors
    async def latest_past_booking(self, subscription_id: int, on_or_before: date) -> Optional[Booking]:
        result = await self.session.execute(
            select(Booking)
            .where(
                Booking.subscription_id == subscription_id,
                Booking.status.in_([CONFIRMED, COMPLETED]),
                Booking.date <= on_or_before,
            )
            .order_by(Booking.date.desc())
            .limit(1)
        )
        return result.scalars().first()

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
    ) -> Optional[Booking]:
        booking = Booking(
            field_id=field_id,
            user_id=user_id,
            date=day,
            start_time=start_time,
            end_time=end_time,
            status=status,
            subscription_id=subscription_id,
        )
        self.session.add(booking)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            if subscription_id is None:
                raise PersistenceError(f"Booking insert rejected: {e.orig}") from e
            logger.info(
                "occurrence_already_materialized",
                subscription_id=subscription_id,
                date=day.isoformat(),
            )
            return None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Booking insert failed: {e}") from e

        await self.session.refresh(booking)
        return booking

    @_translate_errors
    async def add_subscription(self, **values) -> Subscription:
        subscription = Subscription(**values)
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription

    @_translate_errors
    async def set_last_booking_date(self, subscription_id: int, day: date) -> None:
        await self.session.execute(
            update(Subscription)
            .where(
                Subscription.id == subscription_id,
                (Subscription.last_booking_date.is_(None)) | (Subscription.last_booking_date < day),
            )
            .values(last_booking_date=day)
        )

    @_translate_errors
    async def mark_subscription_cancelled(
        self,
        subscription_id: int,
        *,
        immediately: bool,
        cancelled_at: datetime,
    ) -> None:
        values = {"cancel_at_period_end": not immediately}
        if immediately:
            values.update(status=SUBSCRIPTION_CANCELLED, canceled_at=cancelled_at)
        await self.session.execute(
            update(Subscription).where(Subscription.id == subscription_id).values(**values)
        )

    @_translate_errors
    async def cancel_future_bookings(
        self,
        subscription_id: int,
        from_day: date,
        reason: str,
        cancelled_at: datetime,
    ) -> int:
        result = await self.session.execute(
            update(Booking)
            .where(
                Booking.subscription_id == subscription_id,
                Booking.date >= from_day,
                Booking.status.in_([PENDING, CONFIRMED]),
            )
            .values(status=CANCELLED, cancelled_at=cancelled_at, cancel_reason=reason)
        )
        return result.rowcount or 0

    @_translate_errors
    async def set_booking_status(
        self,
        booking: Booking,
        status: str,
        cancelled_at: Optional[datetime] = None,
    ) -> Booking:
        booking.status = status
        if cancelled_at is not None:
            booking.cancelled_at = cancelled_at
        await self.session.flush()
        await self.session.refresh(booking)
        return booking


@asynccontextmanager
async def store_scope(
    session_factory: async_sessionmaker = SessionLocal,
) -> AsyncGenerator[SqlAlchemySchedulingStore, None]:
    """One unit of work: commit on success, roll back on any error."""
    async with session_factory() as session:
        try:
            yield SqlAlchemySchedulingStore(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
