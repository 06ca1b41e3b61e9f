"""
Redis caching for day slot listings.

CACHING STRATEGY
================

What we cache:
  - The JSON body of GET /fields/{id}/slots for one (field, day, duration)
  - Key pattern: "slots:{field_id}:{date}:{duration}"

Why:
  - The slot grid is the most frequent read while customers browse a day,
    and it is deterministic for a given set of bookings and subscriptions

What we never cache:
  - Availability checks. They are the authority for creating a booking and
    always read the database.

Invalidation strategy:
  - Booking status change: delete "slots:{field_id}:{date}:*"
  - Subscription created/cancelled: delete "slots:{field_id}:*" (a
    subscription touches many days)
  - Bookings materialized by the scheduler are not invalidated explicitly;
    the short TTL (REDIS_CACHE_TTL) bounds how long a listing can lag

Redis is advisory: every failure is logged and treated as a miss.
"""

import json
from datetime import date
from typing import Optional

from fieldslots.core.config import get_settings
from fieldslots.core.logging import get_logger
from fieldslots.core.metrics import record_cache_operation
from fieldslots.infrastructure.redis_client import get_redis

logger = get_logger(__name__)


def _make_slots_key(field_id: int, day: date, duration: Optional[int]) -> str:
    return f"slots:{field_id}:{day.isoformat()}:{duration or 'default'}"


async def get_cached_slots(field_id: int, day: date, duration: Optional[int]) -> Optional[dict]:
    """Retrieve a cached slot listing."""
    client = await get_redis()
    if not client:
        return None

    key = _make_slots_key(field_id, day, duration)
    try:
        data = await client.get(key)
        if data:
            logger.debug("cache_hit", key=key)
            record_cache_operation("get", hit=True)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
        record_cache_operation("get", hit=False)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_slots(field_id: int, day: date, duration: Optional[int], data: dict) -> None:
    """Cache a slot listing with TTL."""
    client = await get_redis()
    if not client:
        return

    settings = get_settings()
    key = _make_slots_key(field_id, day, duration)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def _delete_matching(pattern: str) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=pattern, count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", pattern=pattern, keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", pattern=pattern, error=str(e))


async def invalidate_field_day(field_id: int, day: date) -> None:
    await _delete_matching(f"slots:{field_id}:{day.isoformat()}:*")


async def invalidate_field(field_id: int) -> None:
    await _delete_matching(f"slots:{field_id}:*")


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
