"""
Slot calendar generation.

A field's day is cut into fixed-size [start, end) slots stepping from the
opening time. A trailing slot that would run past closing is dropped rather
than shortened. Output depends only on the three inputs.
"""

from fieldslots.scheduling.overlap import TimeRange


def generate_slots(opening: int, closing: int, granularity: int) -> list[TimeRange]:
    if granularity <= 0:
        raise ValueError(f"Slot granularity must be positive, got {granularity}")

    slots = []
    current = opening
    while current + granularity <= closing:
        slots.append(TimeRange(current, current + granularity))
        current += granularity
    return slots
