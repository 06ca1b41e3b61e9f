"""
Recurring booking reconciliation.

Two passes converge on the same materialization primitive:

  daily   for every active subscription, project the next occurrence from the
          last materialized day and book it once it is inside the advance
          booking window; auto-cancel subscriptions that have gone quiet
  hourly  for subscriptions whose most recent booking has just ended, book
          the following occurrence without waiting for the daily run

CONCURRENCY
===========

Both passes may run at the same time, and several processes may run the same
pass. Nothing here locks. Each subscription is handled in its own unit of
work and the store's conditional insert decides who materializes an
occurrence; the loser sees None and counts a skip.

FAILURE ISOLATION
=================

Every subscription is processed inside its own try block. A slot conflict or
a lost race is a skip. Anything raised (persistence errors, corrupted
interval types, scheduling anomalies) is a failure recorded against that
subscription id, and the loop moves on.
"""

import time
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time as time_of_day, timedelta
from typing import AsyncContextManager, Callable, Optional

from fieldslots.core.config import Settings, get_settings
from fieldslots.core.errors import NotFound, SlotConflict
from fieldslots.core.logging import bind_run_context, clear_run_context, get_logger
from fieldslots.core.metrics import materialization_races, reconciliation_duration, record_reconciliation
from fieldslots.models.subscription import ACTIVE
from fieldslots.scheduling.recurrence import next_occurrence, next_valid_occurrence_from
from fieldslots.scheduling.timeofday import parse_time
from fieldslots.services.booking_service import materialize_occurrence
from fieldslots.services.interfaces.notifier import (
    BOOKING_CREATED,
    SUBSCRIPTION_AUTO_CANCELLED,
    NotificationEvent,
    Notifier,
)
from fieldslots.services.interfaces.store import SchedulingStore
from fieldslots.services.subscription_service import INACTIVITY_CANCEL_REASON, cancel_subscription

logger = get_logger(__name__)

DAILY_PASS = "daily"
HOURLY_PASS = "hourly"

CREATED = "created"
SKIPPED = "skipped"
CANCELLED = "cancelled"
IGNORED = "ignored"

StoreFactory = Callable[[], AsyncContextManager[SchedulingStore]]


@dataclass
class ReconciliationSummary:
    pass_name: str
    created: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: int = 0
    failures: list[dict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Outcome:
    kind: str
    reason: str
    event: Optional[NotificationEvent] = None


class RecurringBookingScheduler:
    def __init__(
        self,
        store_factory: StoreFactory,
        notifier: Notifier,
        settings: Optional[Settings] = None,
    ):
        self._store_factory = store_factory
        self._notifier = notifier
        self._settings = settings or get_settings()

    async def run_daily_pass(self, today: Optional[date] = None) -> ReconciliationSummary:
        today = today or date.today()
        return await self._run(DAILY_PASS, self._reconcile_daily, today)

    async def run_hourly_pass(self, now: Optional[datetime] = None) -> ReconciliationSummary:
        now = now or datetime.now()
        return await self._run(HOURLY_PASS, self._reconcile_hourly, now)

    async def _run(self, pass_name: str, reconcile, moment) -> ReconciliationSummary:
        run_id = bind_run_context(pass_name)
        started = time.perf_counter()
        summary = ReconciliationSummary(pass_name=pass_name)
        try:
            async with self._store_factory() as store:
                subscriptions = await store.list_active_subscriptions()
                subscription_ids = [subscription.id for subscription in subscriptions]

            logger.info("reconciliation_pass_started", subscriptions=len(subscription_ids))

            for subscription_id in subscription_ids:
                try:
                    async with self._store_factory() as store:
                        outcome = await reconcile(store, subscription_id, moment)
                except Exception as e:
                    summary.failed += 1
                    summary.failures.append(
                        {
                            "subscription_id": subscription_id,
                            "error_type": type(e).__name__,
                            "error": str(e),
                        }
                    )
                    logger.error(
                        "subscription_reconcile_failed",
                        subscription_id=subscription_id,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    continue

                self._count(summary, outcome)
                logger.debug(
                    "subscription_reconciled",
                    subscription_id=subscription_id,
                    outcome=outcome.kind,
                    reason=outcome.reason,
                )
                if outcome.event is not None:
                    await self._publish(outcome.event)

            duration = time.perf_counter() - started
            reconciliation_duration.labels(pass_name=pass_name).observe(duration)
            record_reconciliation(pass_name, summary)
            logger.info(
                "reconciliation_pass_completed",
                run_id=run_id,
                created=summary.created,
                skipped=summary.skipped,
                failed=summary.failed,
                cancelled=summary.cancelled,
                duration_ms=round(duration * 1000, 2),
            )
            return summary
        finally:
            clear_run_context()

    @staticmethod
    def _count(summary: ReconciliationSummary, outcome: Outcome) -> None:
        if outcome.kind == CREATED:
            summary.created += 1
        elif outcome.kind == CANCELLED:
            summary.cancelled += 1
        elif outcome.kind == SKIPPED:
            summary.skipped += 1

    async def _publish(self, event: NotificationEvent) -> None:
        try:
            await self._notifier.publish(event)
        except Exception as e:
            logger.error("notification_failed", type=event.type, error=str(e))

    def _horizon_end(self, today: date) -> date:
        return today + timedelta(days=self._settings.MAX_ADVANCE_BOOKING_DAYS)

    async def _load(self, store: SchedulingStore, subscription_id: int):
        subscription = await store.get_subscription(subscription_id)
        if subscription is None or subscription.status != ACTIVE or subscription.cancel_at_period_end:
            return None, None
        field_row = await store.get_field(subscription.field_id)
        if field_row is None:
            raise NotFound("Field", subscription.field_id)
        return subscription, field_row

    async def _reconcile_daily(self, store: SchedulingStore, subscription_id: int, today: date) -> Outcome:
        subscription, field_row = await self._load(store, subscription_id)
        if subscription is None:
            return Outcome(SKIPPED, "no_longer_active")

        operating_days = field_row.operating_days
        last_booking_date = subscription.last_booking_date or subscription.anchor_date
        next_date = next_occurrence(subscription, last_booking_date, operating_days)

        if await store.find_occurrence_booking(subscription_id, next_date) is not None:
            return Outcome(SKIPPED, "already_materialized")

        if last_booking_date > today:
            return Outcome(SKIPPED, "last_booking_pending")

        if next_date > self._horizon_end(today):
            return Outcome(SKIPPED, "beyond_advance_window")

        if next_date < today:
            days_inactive = (today - last_booking_date).days
            if days_inactive > self._settings.SUBSCRIPTION_INACTIVITY_DAYS:
                return await self._auto_cancel(store, subscription, today, days_inactive)

            next_date = next_valid_occurrence_from(subscription, today, operating_days)
            if next_date > self._horizon_end(today):
                return Outcome(SKIPPED, "beyond_advance_window")
            if await store.find_occurrence_booking(subscription_id, next_date) is not None:
                return Outcome(SKIPPED, "already_materialized")

        if not field_row.accepts_bookings:
            return Outcome(SKIPPED, "field_not_accepting_bookings")

        return await self._materialize(store, subscription, field_row, next_date)

    async def _reconcile_hourly(self, store: SchedulingStore, subscription_id: int, now: datetime) -> Outcome:
        today = now.date()
        subscription, field_row = await self._load(store, subscription_id)
        if subscription is None:
            return Outcome(IGNORED, "no_longer_active")

        last_booking = await store.latest_past_booking(subscription_id, today)
        if last_booking is None:
            return Outcome(IGNORED, "no_past_booking")

        ends_at = datetime.combine(last_booking.date, time_of_day()) + timedelta(
            minutes=parse_time(last_booking.end_time)
        )
        if ends_at >= now:
            return Outcome(IGNORED, "session_not_ended")

        operating_days = field_row.operating_days
        # Never project from behind an occurrence already produced, even one
        # since cancelled.
        base = max(last_booking.date, subscription.last_booking_date or last_booking.date)
        next_date = next_occurrence(subscription, base, operating_days)
        if next_date < today:
            next_date = next_valid_occurrence_from(subscription, today, operating_days)

        if next_date > self._horizon_end(today):
            return Outcome(SKIPPED, "beyond_advance_window")

        if await store.find_occurrence_booking(subscription_id, next_date) is not None:
            return Outcome(SKIPPED, "already_materialized")

        if not field_row.accepts_bookings:
            return Outcome(SKIPPED, "field_not_accepting_bookings")

        return await self._materialize(store, subscription, field_row, next_date)

    async def _materialize(self, store: SchedulingStore, subscription, field_row, day: date) -> Outcome:
        subscription_id = subscription.id
        user_id = subscription.user_id
        field_id = field_row.id
        data = {
            "subscription_id": subscription_id,
            "interval": subscription.interval,
            "start_time": subscription.start_time,
            "end_time": subscription.end_time,
        }

        try:
            booking = await materialize_occurrence(store, subscription, field_row, day)
        except SlotConflict:
            # Already shown as unavailable to the customer; not a failure.
            return Outcome(SKIPPED, "slot_conflict")

        if booking is None:
            materialization_races.inc()
            return Outcome(SKIPPED, "already_materialized")

        event = NotificationEvent(
            type=BOOKING_CREATED,
            user_id=user_id,
            field_id=field_id,
            date=day,
            data={**data, "booking_id": booking.id},
        )
        return Outcome(CREATED, "materialized", event)

    async def _auto_cancel(self, store: SchedulingStore, subscription, today: date, days_inactive: int) -> Outcome:
        subscription_id = subscription.id
        event = NotificationEvent(
            type=SUBSCRIPTION_AUTO_CANCELLED,
            user_id=subscription.user_id,
            field_id=subscription.field_id,
            date=today,
            data={
                "subscription_id": subscription_id,
                "interval": subscription.interval,
                "reason": "inactive",
                "days_inactive": days_inactive,
            },
        )
        await cancel_subscription(
            store,
            subscription_id,
            immediately=True,
            today=today,
            reason=INACTIVITY_CANCEL_REASON,
        )
        logger.info("subscription_auto_cancelled", subscription_id=subscription_id, days_inactive=days_inactive)
        return Outcome(CANCELLED, "inactive", event)
