"""
Translate scheduling-core errors into HTTP responses.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from fieldslots.core.errors import (
    InvalidStatusTransition,
    InvalidTimeFormat,
    NotFound,
    PersistenceError,
    SlotConflict,
    SubscriptionConflict,
    UnknownIntervalType,
)
from fieldslots.core.logging import get_logger
from fieldslots.scheduling.timeofday import format_time

logger = get_logger(__name__)


async def _not_found(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def _bad_input(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


async def _bad_transition(request: Request, exc: InvalidStatusTransition) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def _subscription_conflict(request: Request, exc: SubscriptionConflict) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": str(exc),
            "conflicting_dates": [
                {
                    "date": conflict.date.isoformat(),
                    "booking_id": conflict.booking_id,
                    "subscription_id": conflict.subscription_id,
                    "start_time": format_time(conflict.time_range.start),
                    "end_time": format_time(conflict.time_range.end),
                }
                for conflict in exc.conflicts
            ],
        },
    )


async def _slot_conflict(request: Request, exc: SlotConflict) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": exc.result.reason, "conflict_type": exc.result.conflict_type},
    )


async def _persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("persistence_error", error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage temporarily unavailable"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFound, _not_found)
    app.add_exception_handler(InvalidTimeFormat, _bad_input)
    app.add_exception_handler(UnknownIntervalType, _bad_input)
    app.add_exception_handler(InvalidStatusTransition, _bad_transition)
    app.add_exception_handler(SubscriptionConflict, _subscription_conflict)
    app.add_exception_handler(SlotConflict, _slot_conflict)
    app.add_exception_handler(PersistenceError, _persistence_error)
