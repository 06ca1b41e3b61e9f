"""
Shared dependencies for the route modules.
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from fieldslots.db.session import get_db
from fieldslots.infrastructure.sql_store import SqlAlchemySchedulingStore
from fieldslots.scheduler.recurring_booking_job import RecurringBookingScheduler
from fieldslots.scheduler.runner import build_recurring_scheduler


async def get_store(db: AsyncSession = Depends(get_db)) -> SqlAlchemySchedulingStore:
    return SqlAlchemySchedulingStore(db)


def get_recurring_scheduler(request: Request) -> RecurringBookingScheduler:
    recurring = getattr(request.app.state, "recurring", None)
    if recurring is None:
        recurring = build_recurring_scheduler()
        request.app.state.recurring = recurring
    return recurring


async def load_field(store: SqlAlchemySchedulingStore, field_id: int):
    field = await store.get_field(field_id)
    if not field:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Field not found")
    return field
