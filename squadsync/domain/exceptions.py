"""
Domain-specific exception hierarchy for the squadsync scheduler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .models import Interval


class SquadSyncError(Exception):
    """Base class for all application-level errors."""


class InvalidRangeError(SquadSyncError, ValueError):
    """Raised when an interval is constructed with start >= end."""


class ConflictError(SquadSyncError):
    """Raised when a booking overlaps one or more committed intervals."""

    def __init__(self, interval: "Interval", conflicts: List["Interval"]):
        self.interval = interval
        self.conflicts = list(conflicts)
        super().__init__(
            f"{interval} conflicts with {len(self.conflicts)} committed interval(s)"
        )


class PersistenceError(SquadSyncError):
    """Raised when registry data cannot be read or written."""


class NotificationError(SquadSyncError):
    """Raised by a mail transport when a single delivery fails."""


class PermissionDeniedError(SquadSyncError):
    """Raised when the access policy rejects an operation."""
