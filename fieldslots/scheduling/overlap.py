"""
Half-open interval overlap.

Every comparison of two time ranges in the package goes through `overlaps`
so that tie-breaking is identical everywhere: [09:00, 09:30) and
[09:30, 10:00) touch but do not overlap.
"""

from typing import NamedTuple

from fieldslots.scheduling.timeofday import format_time, parse_time


class TimeRange(NamedTuple):
    """[start, end) in minutes since midnight."""

    start: int
    end: int

    @classmethod
    def parse(cls, start: str, end: str) -> "TimeRange":
        return cls(parse_time(start), parse_time(end))

    @property
    def duration(self) -> int:
        return self.end - self.start

    def label(self) -> str:
        return f"{format_time(self.start)} - {format_time(self.end)}"


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    return a.start < b.end and b.start < a.end
