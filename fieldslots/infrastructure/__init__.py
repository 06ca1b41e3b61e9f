"""
Infrastructure layer - external system integrations.
Keeps the scheduling core clean from implementation details.
"""

from .redis_client import get_redis, close_redis, RedisClient
from .notifier import LoggingNotifier, RedisNotifier
from .sql_store import SqlAlchemySchedulingStore, store_scope

__all__ = [
    'get_redis',
    'close_redis',
    'RedisClient',
    'LoggingNotifier',
    'RedisNotifier',
    'SqlAlchemySchedulingStore',
    'store_scope',
]
