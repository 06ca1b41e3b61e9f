"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from fieldslots.api.routes import admin, bookings, fields, subscriptions

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(fields.router)
api_router.include_router(subscriptions.router)
api_router.include_router(bookings.router)
api_router.include_router(admin.router)
