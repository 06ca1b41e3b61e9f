"""
Operating-day resolution for a field.

Tokens are weekday names ("Monday") or the aggregates "everyday",
"weekdays" (Mon-Fri) and "weekends" (Sat-Sun); matching is case-insensitive
and the result is an OR across tokens. A field with no tokens at all is
treated as open every day.
"""

from datetime import date
from typing import Iterable, Optional

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

EVERYDAY = "everyday"
WEEKDAYS = "weekdays"
WEEKENDS = "weekends"


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def weekday_index(name: str) -> int:
    """Monday=0 .. Sunday=6, matching `date.weekday()`."""
    lowered = name.strip().lower()
    for index, candidate in enumerate(WEEKDAY_NAMES):
        if candidate.lower() == lowered:
            return index
    raise ValueError(f"Unknown weekday name: {name!r}")


def operates_on(tokens: Optional[Iterable[str]], day: date) -> bool:
    tokens = [token.strip().lower() for token in (tokens or []) if token and token.strip()]
    if not tokens:
        # Permissive default carried over from existing venue data: an
        # unconfigured field is open every day.
        return True

    weekday = day.weekday()
    name = WEEKDAY_NAMES[weekday].lower()
    for token in tokens:
        if token == EVERYDAY:
            return True
        if token == WEEKDAYS and weekday < 5:
            return True
        if token == WEEKENDS and weekday >= 5:
            return True
        if token == name:
            return True
    return False
