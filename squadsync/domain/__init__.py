"""
Domain layer - Pure scheduling logic without external I/O.
"""

from .availability import AvailabilityMatrix
from .exceptions import (
    ConflictError,
    InvalidRangeError,
    NotificationError,
    PermissionDeniedError,
    PersistenceError,
    SquadSyncError,
)
from .ledger import BookingLedger
from .models import BookingResult, Interval, Member, TimeRangeTemplate
from .partition import GroupPartition
from .registry import GroupRegistry
from .slot_finder import CommonSlotFinder

__all__ = [
    "AvailabilityMatrix",
    "BookingLedger",
    "BookingResult",
    "CommonSlotFinder",
    "ConflictError",
    "GroupPartition",
    "GroupRegistry",
    "Interval",
    "InvalidRangeError",
    "Member",
    "NotificationError",
    "PermissionDeniedError",
    "PersistenceError",
    "SquadSyncError",
    "TimeRangeTemplate",
]
