"""
Field Slot Scheduling API - Main Application Entry Point

- Slot grids and point availability checks over one-off and recurring bookings
- Recurring subscriptions with conflict refusal across the booking horizon
- Daily and hourly reconciliation passes that materialize recurring bookings
- Redis caching of slot listings, structured logging, Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fieldslots.core.config import get_settings
from fieldslots.core.logging import setup_logging, get_logger
from fieldslots.core.metrics import metrics_endpoint
from fieldslots.api.router import api_router
from fieldslots.api.middleware import RequestLoggingMiddleware
from fieldslots.api.errors import register_error_handlers
from fieldslots.infrastructure.redis_client import get_redis, close_redis
from fieldslots.scheduler.runner import build_recurring_scheduler, start_reconciliation_jobs
from fieldslots.services.cache_service import get_cache_stats

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache or event publishing")

    app.state.recurring = build_recurring_scheduler(settings)
    app.state.jobs = None
    if settings.SCHEDULER_ENABLED:
        app.state.jobs = start_reconciliation_jobs(app.state.recurring, settings)

    yield

    if app.state.jobs is not None:
        app.state.jobs.shutdown(wait=False)
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Slot scheduling and conflict resolution for bookable sports fields",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

register_error_handlers(app)
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    jobs = getattr(app.state, "jobs", None)
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": await get_cache_stats(),
        "scheduler": "running" if jobs is not None and jobs.running else "stopped",
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
