"""
Domain models for intervals, members and within-day scheduling windows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import time
from typing import List, Optional, Tuple

import pendulum
from pendulum import DateTime

from .exceptions import InvalidRangeError


@dataclass(frozen=True)
class Interval:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidRangeError(
                f"Start time {self.start} must be before end time {self.end}"
            )

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "Interval") -> bool:
        """Check if this range overlaps with another (touching ends do not)."""
        return self.start < other.end and self.end > other.start

    def contains(self, instant: DateTime) -> bool:
        """Check if an instant falls inside the range."""
        return self.start <= instant < self.end

    def is_within(self, other: "Interval") -> bool:
        """Check if this range lies completely inside another, bounds inclusive."""
        return self.start >= other.start and self.end <= other.end

    def is_adjacent_to(self, other: "Interval") -> bool:
        """Check if one range ends exactly where the other starts."""
        return self.end == other.start or self.start == other.end

    def intersection(self, other: "Interval") -> "Interval | None":
        """
        Calculate the intersection of two ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return Interval(start=start, end=end)

    def __str__(self) -> str:
        if self.start.date() == self.end.date():
            return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('YYYY-MM-DD HH:mm')}"


@dataclass(eq=False)
class Member:
    """
    A group member and the intervals during which they are free.

    Two members are equal when name, email and group label match. Two
    different people with identical strings are indistinguishable here.
    Because the label takes part in equality, members are unhashable.
    """
    name: str
    email: str
    group: Optional[str] = None
    free_intervals: List[Interval] = field(default_factory=list)

    def __post_init__(self):
        if not self.group:
            self.group = None

    @property
    def key(self) -> Tuple[str, str, Optional[str]]:
        """Value key used for roster membership tests."""
        return (self.name, self.email, self.group)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Member):
            return NotImplemented
        return self.key == other.key

    @property
    def has_group(self) -> bool:
        return self.group is not None

    def belongs_to_group(self, label: str) -> bool:
        """Exact label match; untagged members never belong."""
        return self.group is not None and self.group == label

    def add_availability(self, interval: Interval) -> bool:
        """Add a free interval. Returns False if it is already present."""
        if interval in self.free_intervals:
            return False
        self.free_intervals.append(interval)
        return True

    def remove_availability(self, interval: Interval) -> bool:
        """Remove a free interval. Returns False if it was not present."""
        try:
            self.free_intervals.remove(interval)
        except ValueError:
            return False
        return True

    def is_available_for(self, interval: Interval) -> bool:
        """
        Check whether any free interval overlaps the given one.

        Partial overlap counts as available.
        """
        return any(free.overlaps(interval) for free in self.free_intervals)

    def __str__(self) -> str:
        return f"{self.name} ({self.email})"


@dataclass(frozen=True)
class TimeRangeTemplate:
    """
    A reusable within-day window such as 08:00-14:00 or 20:00-01:00.

    When the end time is earlier than the start time the window runs past
    midnight and ends on the following calendar day.
    """
    start_time: time
    end_time: time
    label: str = ""

    @property
    def wraps_midnight(self) -> bool:
        return self.end_time < self.start_time

    def window_for(self, date: date_type, timezone: str = "UTC") -> Tuple[DateTime, DateTime]:
        """Return the absolute (start, end) of this window on the given date."""
        start = pendulum.datetime(
            date.year, date.month, date.day,
            self.start_time.hour, self.start_time.minute,
            tz=timezone
        )

        end_date = pendulum.date(date.year, date.month, date.day)
        if self.wraps_midnight:
            end_date = end_date.add(days=1)

        end = pendulum.datetime(
            end_date.year, end_date.month, end_date.day,
            self.end_time.hour, self.end_time.minute,
            tz=timezone
        )
        return start, end

    def generate_slots(
        self,
        date: date_type,
        granularity_minutes: int,
        timezone: str = "UTC"
    ) -> List[Interval]:
        """
        Walk the window in fixed steps and return the candidate slots.

        The last slot may end exactly at the window end but never past it.
        A window of zero length yields no slots.

        Raises:
            ValueError: If granularity_minutes is not positive
        """
        if granularity_minutes <= 0:
            raise ValueError(
                f"granularity_minutes must be greater than zero, got {granularity_minutes}"
            )

        window_start, window_end = self.window_for(date, timezone)
        slots: List[Interval] = []

        cursor = window_start
        while cursor.add(minutes=granularity_minutes) <= window_end:
            slot_end = cursor.add(minutes=granularity_minutes)
            slots.append(Interval(start=cursor, end=slot_end))
            cursor = slot_end

        return slots

    def __str__(self) -> str:
        window = f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"
        return f"{self.label} ({window})" if self.label else window


DEFAULT_TEMPLATES: Tuple[TimeRangeTemplate, ...] = (
    TimeRangeTemplate(time(8, 0), time(14, 0), "Morning/Afternoon"),
    TimeRangeTemplate(time(20, 0), time(1, 0), "Evening/Night"),
)


def generate_candidate_slots(
    templates: List[TimeRangeTemplate],
    date: date_type,
    granularity_minutes: int,
    timezone: str = "UTC"
) -> List[Interval]:
    """Concatenate each template's slots in declaration order, never merging them."""
    slots: List[Interval] = []
    for template in templates:
        slots.extend(template.generate_slots(date, granularity_minutes, timezone))
    return slots


@dataclass
class BookingResult:
    """
    Outcome of a tentative booking.

    ``accepted`` is True only when ``conflicts`` is empty, unless the
    booking was forced through the override path.
    """
    interval: Interval
    accepted: bool
    conflicts: List[Interval] = field(default_factory=list)
    forced: bool = False

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)
