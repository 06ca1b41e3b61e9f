"""
Timer wiring for the reconciliation passes.

Daily pass at SCHEDULER_DAILY_HOUR:00, hourly pass at minute
SCHEDULER_HOURLY_MINUTE of every hour. The jobs only log failures of a whole
pass; per-subscription failures are already inside the pass summary.
"""

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from fieldslots.core.config import Settings, get_settings
from fieldslots.core.logging import get_logger
from fieldslots.infrastructure.notifier import RedisNotifier
from fieldslots.infrastructure.sql_store import store_scope
from fieldslots.scheduler.recurring_booking_job import RecurringBookingScheduler

logger = get_logger(__name__)

DAILY_JOB_ID = "recurring_bookings_daily"
HOURLY_JOB_ID = "recurring_bookings_hourly"


def build_recurring_scheduler(settings: Optional[Settings] = None) -> RecurringBookingScheduler:
    return RecurringBookingScheduler(store_scope, RedisNotifier(), settings or get_settings())


async def run_daily_job(recurring: RecurringBookingScheduler) -> None:
    try:
        await recurring.run_daily_pass()
    except Exception:
        logger.exception("recurring_daily_job_failed")


async def run_hourly_job(recurring: RecurringBookingScheduler) -> None:
    try:
        await recurring.run_hourly_pass()
    except Exception:
        logger.exception("recurring_hourly_job_failed")


def start_reconciliation_jobs(
    recurring: RecurringBookingScheduler,
    settings: Optional[Settings] = None,
) -> AsyncIOScheduler:
    settings = settings or get_settings()
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_daily_job,
        CronTrigger(hour=settings.SCHEDULER_DAILY_HOUR, minute=0),
        args=[recurring],
        id=DAILY_JOB_ID,
        replace_existing=True,
    )
    scheduler.add_job(
        run_hourly_job,
        CronTrigger(minute=settings.SCHEDULER_HOURLY_MINUTE),
        args=[recurring],
        id=HOURLY_JOB_ID,
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "reconciliation_jobs_started",
        daily_hour=settings.SCHEDULER_DAILY_HOUR,
        hourly_minute=settings.SCHEDULER_HOURLY_MINUTE,
    )
    return scheduler
