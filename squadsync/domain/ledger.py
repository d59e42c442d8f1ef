"""
Committed meeting intervals for a group.
"""

import logging
from datetime import date as date_type
from typing import Iterator, List, Optional, Sequence

from pendulum import DateTime

from .exceptions import ConflictError
from .models import BookingResult, Interval

logger = logging.getLogger(__name__)


class BookingLedger:
    """
    Set of committed intervals that must not overlap.

    The no-overlap invariant is enforced by ``add`` and
    ``add_with_conflict_report``. ``force_add`` is the emergency path and
    may leave overlapping entries behind.
    """

    def __init__(self, intervals: Optional[Sequence[Interval]] = None):
        self._intervals: List[Interval] = []
        for interval in intervals or []:
            self.add(interval)

    @property
    def intervals(self) -> List[Interval]:
        """Committed intervals in insertion order."""
        return list(self._intervals)

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self) -> Iterator[Interval]:
        return iter(list(self._intervals))

    def __contains__(self, interval: object) -> bool:
        return interval in self._intervals

    def conflicts_for(self, interval: Interval) -> List[Interval]:
        """Return every committed interval overlapping the given one."""
        return [existing for existing in self._intervals if existing.overlaps(interval)]

    def has_conflict(self, interval: Interval) -> bool:
        return any(existing.overlaps(interval) for existing in self._intervals)

    def add(self, interval: Interval) -> None:
        """
        Commit an interval.

        Raises:
            ConflictError: If it overlaps or duplicates a committed interval.
                The ledger is left unchanged.
        """
        conflicts = self.conflicts_for(interval)
        if conflicts:
            raise ConflictError(interval, conflicts)

        self._intervals.append(interval)

    def add_with_conflict_report(self, interval: Interval) -> BookingResult:
        """
        Try to commit an interval and report what it collides with.

        Every overlapping entry is listed, not only the first one.
        """
        conflicts = self.conflicts_for(interval)

        if conflicts:
            logger.info("Booking %s rejected: %d conflict(s)", interval, len(conflicts))
            return BookingResult(interval=interval, accepted=False, conflicts=conflicts)

        self._intervals.append(interval)
        return BookingResult(interval=interval, accepted=True)

    def force_add(self, interval: Interval) -> List[Interval]:
        """
        Commit an interval regardless of overlaps.

        An exact duplicate is not stored twice. Returns the committed
        intervals that were overridden.
        """
        conflicts = [existing for existing in self.conflicts_for(interval) if existing != interval]

        if interval in self._intervals:
            return conflicts

        if conflicts:
            logger.warning(
                "Forcing %s over %d conflicting booking(s)", interval, len(conflicts)
            )
        self._intervals.append(interval)
        return conflicts

    def remove(self, interval: Interval) -> bool:
        """Remove by value. Returns False if the interval was not committed."""
        try:
            self._intervals.remove(interval)
        except ValueError:
            return False
        return True

    def query(self, instant: DateTime) -> bool:
        """Check whether any committed interval contains the instant."""
        return any(interval.contains(instant) for interval in self._intervals)

    def on_date(self, date: date_type) -> List[Interval]:
        """Committed intervals starting on the given calendar date."""
        return [
            interval for interval in self._intervals
            if interval.start.date() == date
        ]

    def clear(self) -> None:
        self._intervals.clear()
