"""
Application service executing scheduling requests against a registry.

Callers (CLI, a GUI, an HTTP layer) build small request objects and get
result values back; they never reach into the registry's state directly.
Collaborators are passed in explicitly so tests can swap them for stubs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date as date_type
from typing import Any, List, Optional, Protocol, Sequence, Union

from ..domain.availability import AvailabilityMatrix
from ..domain.models import BookingResult, Interval, Member, TimeRangeTemplate
from ..domain.registry import GroupRegistry
from .access import AccessPolicy, Action, AllowAllPolicy
from .notifications import DeliveryReport, NotificationService, TemplateType

logger = logging.getLogger(__name__)


class RegistryStoreProtocol(Protocol):
    """Protocol describing the persistence behaviour needed by the service."""

    def save(self, registry: GroupRegistry) -> None:
        """Persist the registry."""


@dataclass(frozen=True)
class FindSlotsRequest:
    date: date_type
    granularity_minutes: int = 30
    group_label: Optional[str] = None


@dataclass(frozen=True)
class BookRequest:
    interval: Interval
    subject: str = ""
    message: str = ""
    notify: bool = False


@dataclass(frozen=True)
class ForceBookRequest:
    interval: Interval
    subject: str
    message: str = ""
    priority: str = "High"
    ignore_conflicts: bool = True
    notify: bool = True


@dataclass(frozen=True)
class CancelBookingRequest:
    interval: Interval


SchedulingRequest = Union[FindSlotsRequest, BookRequest, ForceBookRequest, CancelBookingRequest]


@dataclass
class SlotSearchResult:
    """
    Common slots plus the context needed to render them.

    ``member_count`` is the number of members evaluated, so callers can tell
    "nobody to evaluate" apart from "no slot reached the quorum".
    """
    slots: List[Interval]
    member_count: int
    matrix: AvailabilityMatrix
    group_label: Optional[str] = None

    @property
    def has_members(self) -> bool:
        return self.member_count > 0


@dataclass
class BookingOutcome:
    booking: BookingResult
    delivery: Optional[DeliveryReport] = None
    notes: List[str] = field(default_factory=list)


class SchedulingService:
    """
    Orchestrates access checks, engine calls, persistence and notification.
    """

    def __init__(
        self,
        registry: GroupRegistry,
        store: Optional[RegistryStoreProtocol] = None,
        notifier: Optional[NotificationService] = None,
        access_policy: Optional[AccessPolicy] = None,
    ) -> None:
        self.registry = registry
        self._store = store
        self._notifier = notifier
        self._access_policy = access_policy or AllowAllPolicy()

    def execute(self, request: SchedulingRequest) -> Any:
        """Dispatch a request object to its handler."""
        if isinstance(request, FindSlotsRequest):
            return self.find_slots(request)
        if isinstance(request, BookRequest):
            return self.book(request)
        if isinstance(request, ForceBookRequest):
            return self.force_book(request)
        if isinstance(request, CancelBookingRequest):
            return self.cancel(request)
        raise TypeError(f"Unsupported request type: {type(request).__name__}")

    def find_slots(self, request: FindSlotsRequest) -> SlotSearchResult:
        """Compute common slots for the roster or one labelled group."""
        self._access_policy.check(Action.FIND)

        if request.group_label is None:
            members = self.registry.members
            slots = self.registry.find_common_time_slots(
                request.date, request.granularity_minutes
            )
        else:
            members = self.registry.members_by_group(request.group_label)
            slots = self.registry.find_common_time_slots_for_group(
                request.group_label, request.date, request.granularity_minutes
            )

        candidates = self.registry.slot_finder().candidate_slots(
            request.date, request.granularity_minutes
        )

        return SlotSearchResult(
            slots=slots,
            member_count=len(members),
            matrix=AvailabilityMatrix.build(members, candidates),
            group_label=request.group_label,
        )

    def book(self, request: BookRequest) -> BookingOutcome:
        """Book through the conflict-reporting path so conflicts surface first."""
        self._access_policy.check(Action.BOOK)

        result = self.registry.book(request.interval)
        outcome = BookingOutcome(booking=result)

        if not result.accepted:
            return outcome

        self._persist()
        if request.notify:
            outcome.delivery = self._notify(
                self.registry.members, request.interval, request.subject, request.message
            )
        return outcome

    def force_book(self, request: ForceBookRequest) -> BookingOutcome:
        """Emergency booking, optionally overriding existing bookings."""
        self._access_policy.check(Action.FORCE_BOOK)

        result = self.registry.force_book(
            request.interval, ignore_conflicts=request.ignore_conflicts
        )
        outcome = BookingOutcome(booking=result)

        if not result.accepted:
            return outcome

        if result.conflicts:
            outcome.notes.append(
                f"Overrode {len(result.conflicts)} existing booking(s)"
            )

        self._persist()
        if request.notify:
            message = f"PRIORITY: {request.priority}\n\n{request.message}"
            outcome.delivery = self._notify(
                self.registry.members, request.interval, request.subject, message
            )
        return outcome

    def cancel(self, request: CancelBookingRequest) -> bool:
        self._access_policy.check(Action.CANCEL)

        removed = self.registry.cancel_booking(request.interval)
        if removed:
            self._persist()
        return removed

    def add_member(self, member: Member) -> bool:
        self._access_policy.check(Action.MANAGE_MEMBERS)

        added = self.registry.add_member(member)
        if added:
            self._persist()
        return added

    def remove_member(self, member: Member) -> bool:
        self._access_policy.check(Action.MANAGE_MEMBERS)

        removed = self.registry.remove_member(member)
        if removed:
            self._persist()
        return removed

    def move_member(self, member: Member, new_label: Optional[str]) -> int:
        """Relabel one member; ``None`` removes the label."""
        self._access_policy.check(Action.MANAGE_MEMBERS)

        moved = self.registry.move_member_to_group(member, new_label)
        if moved:
            self._persist()
        return moved

    def update_settings(
        self,
        quorum: Optional[int] = None,
        emergency_scheduling: Optional[bool] = None,
        windows: Optional[Sequence[TimeRangeTemplate]] = None
    ) -> None:
        """
        Change the search settings of the registry. Arguments left as ``None``
        keep their current value.

        Raises:
            ValueError: If the quorum is negative or ``windows`` is empty
        """
        self._access_policy.check(Action.CONFIGURE)

        if windows is not None and not windows:
            raise ValueError("At least one window is required")
        if quorum is not None and quorum < 0:
            raise ValueError(f"Quorum must not be negative, got {quorum}")

        if quorum is not None:
            self.registry.minimum_members_required = quorum
        if emergency_scheduling is not None:
            self.registry.emergency_scheduling = emergency_scheduling
        if windows is not None:
            self.registry.set_default_windows(windows)

        logger.info(
            "Settings for %s: quorum=%d emergency=%s windows=%d",
            self.registry.name,
            self.registry.minimum_members_required,
            self.registry.emergency_scheduling,
            len(self.registry.templates),
        )
        self._persist()

    def _persist(self) -> None:
        if self._store is not None:
            self._store.save(self.registry)

    def _notify(
        self,
        members: List[Member],
        interval: Interval,
        subject: str,
        message: str
    ) -> Optional[DeliveryReport]:
        if self._notifier is None:
            logger.debug("No notifier configured; skipping notification for %s", interval)
            return None
        return self._notifier.send_invitations(
            members, interval, subject, message, TemplateType.MEETING_INVITATION
        )
