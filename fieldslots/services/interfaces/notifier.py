"""
Notification interface.

The core emits structured events and never formats messages; delivery
(push, email, in-app) belongs to whoever implements Notifier.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

BOOKING_CREATED = "booking_created"
SUBSCRIPTION_AUTO_CANCELLED = "subscription_auto_cancelled"


@dataclass(frozen=True)
class NotificationEvent:
    type: str
    user_id: int
    field_id: int
    date: Optional[date] = None
    data: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "user_id": self.user_id,
            "field_id": self.field_id,
            "date": self.date.isoformat() if self.date else None,
            "data": self.data,
        }


class Notifier(ABC):
    """
    Interface for delivering scheduling events.

    Implementations:
    - LoggingNotifier: writes each event to the structured log
    - RedisNotifier: publishes JSON events on a Redis channel
    """

    @abstractmethod
    async def publish(self, event: NotificationEvent) -> None:
        """Deliver one event. Must not raise for delivery failures."""
