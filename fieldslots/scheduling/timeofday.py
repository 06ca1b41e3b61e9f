"""
Time-of-day codec.

Every time the core compares is an integer count of minutes since midnight.
Persisted strings come in two shapes:

  "HH:MM" / "H:MM"      24-hour, 00:00 .. 23:59
  "H:MMAM" / "H:MMPM"   12-hour, no space before the meridiem, any case

"12:00AM" is 0 and "12:00PM" is 720. Times are normalized at write time, so a
string that fails to parse here is a data-integrity problem and raises
InvalidTimeFormat instead of being guessed at.
"""

import re

from fieldslots.core.errors import InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

_TIME_12H = re.compile(r"^(\d{1,2}):(\d{2})([AaPp][Mm])$")
_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time(text: str) -> int:
    """Parse a persisted time string into minutes since midnight."""
    if not isinstance(text, str):
        raise InvalidTimeFormat(text)
    value = text.strip()

    match = _TIME_12H.match(value)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        meridiem = match.group(3).upper()
        if not 1 <= hours <= 12 or minutes > 59:
            raise InvalidTimeFormat(text)
        if meridiem == "AM" and hours == 12:
            hours = 0
        elif meridiem == "PM" and hours != 12:
            hours += 12
        return hours * 60 + minutes

    match = _TIME_24H.match(value)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            raise InvalidTimeFormat(text)
        return hours * 60 + minutes

    raise InvalidTimeFormat(text)


def format_time(minutes: int) -> str:
    """Render minutes since midnight as "HH:MM". 1440 renders as "24:00"."""
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"minutes out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_time_12h(minutes: int) -> str:
    """Render minutes since midnight as "H:MMAM" / "H:MMPM" for display."""
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"minutes out of range: {minutes}")
    hours, mins = divmod(minutes % MINUTES_PER_DAY, 60)
    meridiem = "PM" if hours >= 12 else "AM"
    display_hour = hours % 12 or 12
    return f"{display_hour}:{mins:02d}{meridiem}"


def normalize_time(text: str) -> str:
    return format_time(parse_time(text))
