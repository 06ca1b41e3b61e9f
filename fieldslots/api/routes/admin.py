"""
Operational endpoints for the reconciliation passes.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from fieldslots.api.deps import get_recurring_scheduler
from fieldslots.core.logging import get_logger
from fieldslots.scheduler.recurring_booking_job import DAILY_PASS, RecurringBookingScheduler
from fieldslots.schemas.reconciliation import ReconciliationSummaryResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/recurring/run", response_model=ReconciliationSummaryResponse)
async def run_reconciliation(
    pass_name: Literal["daily", "hourly"] = Query("daily"),
    recurring: RecurringBookingScheduler = Depends(get_recurring_scheduler),
):
    """Run one reconciliation pass now and return its summary."""
    logger.info("manual_reconciliation_requested", pass_name=pass_name)
    if pass_name == DAILY_PASS:
        summary = await recurring.run_daily_pass()
    else:
        summary = await recurring.run_hourly_pass()
    return ReconciliationSummaryResponse(**summary.as_dict())
