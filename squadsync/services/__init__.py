"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .access import AllowAllPolicy, Role, RoleAccessPolicy
from .notifications import DeliveryReport, NotificationService, TemplateType
from .scheduler import (
    BookRequest,
    CancelBookingRequest,
    FindSlotsRequest,
    ForceBookRequest,
    SchedulingService,
    SlotSearchResult,
)

__all__ = [
    "AllowAllPolicy",
    "BookRequest",
    "CancelBookingRequest",
    "DeliveryReport",
    "FindSlotsRequest",
    "ForceBookRequest",
    "NotificationService",
    "Role",
    "RoleAccessPolicy",
    "SchedulingService",
    "SlotSearchResult",
    "TemplateType",
]
