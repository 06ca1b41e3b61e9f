"""
Error taxonomy for the scheduling core.

Data-integrity errors (InvalidTimeFormat, UnknownIntervalType,
SchedulingAnomaly) are fatal for the record they concern and are never
retried. SlotConflict is an expected outcome that callers turn into a
"skip". PersistenceError wraps storage failures; the reconciliation
scheduler records it against the subscription and moves on.
"""

from typing import Any, Optional


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling core."""


class InvalidTimeFormat(SchedulingError):
    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid time format: {value!r}")


class UnknownIntervalType(SchedulingError):
    def __init__(self, interval: Any):
        self.interval = interval
        super().__init__(f"Unknown subscription interval: {interval!r}")


class SchedulingAnomaly(SchedulingError):
    """No valid occurrence could be found within the bounded search."""


class SlotConflict(SchedulingError):
    def __init__(self, result: Any):
        self.result = result
        super().__init__(getattr(result, "reason", None) or "Slot not available")


class PersistenceError(SchedulingError):
    pass


class InvalidStatusTransition(SchedulingError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move booking from {current} to {target}")


class NotFound(SchedulingError):
    def __init__(self, kind: str, identifier: Optional[int] = None):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found" if identifier is not None else f"{kind} not found")


class SubscriptionConflict(SchedulingError):
    """A new subscription would collide with existing bookings."""

    def __init__(self, conflicts: list):
        self.conflicts = conflicts
        super().__init__(f"Recurring booking conflicts with {len(conflicts)} existing booking(s)")
