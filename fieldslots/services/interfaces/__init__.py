"""
Service interfaces for dependency inversion.
The scheduling core depends on these, never on a concrete database or
notification transport.
"""

from .store import SchedulingStore
from .notifier import Notifier, NotificationEvent, BOOKING_CREATED, SUBSCRIPTION_AUTO_CANCELLED

__all__ = [
    'SchedulingStore',
    'Notifier',
    'NotificationEvent',
    'BOOKING_CREATED',
    'SUBSCRIPTION_AUTO_CANCELLED',
]
