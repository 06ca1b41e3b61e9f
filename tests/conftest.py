"""
Pytest fixtures for the test database, stores, and HTTP client.

Each test gets its own SQLite file so the partial unique index and real
commits behave the way they do against PostgreSQL. Redis and the cron jobs
are switched off before the application is imported.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from datetime import date
from functools import partial
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from fieldslots.main import app
from fieldslots.api.deps import get_recurring_scheduler
from fieldslots.db.base import Base
from fieldslots.db.session import get_db
from fieldslots.infrastructure.sql_store import SqlAlchemySchedulingStore, store_scope
from fieldslots.models import Booking, Field, Subscription
from fieldslots.scheduler.recurring_booking_job import RecurringBookingScheduler
from fieldslots.services.interfaces.notifier import Notifier


class RecordingNotifier(Notifier):
    """Collects published events for assertions."""

    def __init__(self):
        self.events = []

    async def publish(self, event):
        self.events.append(event)


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables in a fresh SQLite file, then dispose of the engine."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'fieldslots.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def store(db_session: AsyncSession) -> SqlAlchemySchedulingStore:
    return SqlAlchemySchedulingStore(db_session)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def recurring(session_factory, notifier) -> RecurringBookingScheduler:
    """Scheduler whose units of work run against the test database."""
    return RecurringBookingScheduler(partial(store_scope, session_factory), notifier)


@pytest_asyncio.fixture
async def client(session_factory, recurring) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB and scheduler dependencies pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_recurring_scheduler] = lambda: recurring

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _add(session: AsyncSession, row):
    session.add(row)
    await session.commit()
    await session.refresh(row)
    return row


@pytest_asyncio.fixture
async def field(db_session: AsyncSession) -> Field:
    """An approved field open every day, 09:00-12:00 in 30 minute slots."""
    return await _add(
        db_session,
        Field(
            name="Riverside Pitch",
            opening_time="09:00",
            closing_time="12:00",
            slot_duration_minutes=30,
            operating_days=[],
            is_active=True,
            is_approved=True,
        ),
    )


@pytest_asyncio.fixture
async def weekend_field(db_session: AsyncSession) -> Field:
    """An approved field that only opens on Saturdays and Sundays."""
    return await _add(
        db_session,
        Field(
            name="Weekend Court",
            opening_time="8:00AM",
            closing_time="6:00PM",
            operating_days=["weekends"],
            is_active=True,
            is_approved=True,
        ),
    )


@pytest.fixture
def make_booking(db_session: AsyncSession):
    async def _make(field: Field, day: date, start: str, end: str, **extra) -> Booking:
        values = {"user_id": 7, "status": "confirmed", **extra}
        return await _add(
            db_session,
            Booking(field_id=field.id, date=day, start_time=start, end_time=end, **values),
        )

    return _make


@pytest.fixture
def make_subscription(db_session: AsyncSession):
    async def _make(field: Field, interval: str, anchor: date, start: str, end: str, **extra) -> Subscription:
        values = {"user_id": 42, "status": "active", "cancel_at_period_end": False, **extra}
        return await _add(
            db_session,
            Subscription(
                field_id=field.id,
                interval=interval,
                anchor_date=anchor,
                start_time=start,
                end_time=end,
                **values,
            ),
        )

    return _make


@pytest.fixture
def fetch_all(session_factory):
    """Read rows through a fresh session so nothing stale comes from an identity map."""

    async def _fetch(model, *criteria) -> list:
        async with session_factory() as session:
            result = await session.execute(select(model).where(*criteria).order_by(model.id))
            return list(result.scalars().all())

    return _fetch
