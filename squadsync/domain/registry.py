"""
A study group: roster, default windows, quorum, override flag and bookings.
"""

import logging
from datetime import date as date_type
from typing import Dict, List, Optional, Sequence

from .ledger import BookingLedger
from .models import DEFAULT_TEMPLATES, BookingResult, Interval, Member, TimeRangeTemplate
from .partition import GroupPartition
from .slot_finder import CommonSlotFinder

logger = logging.getLogger(__name__)

UNGROUPED_LABEL = "Ungrouped"


class GroupRegistry:
    """
    Owns everything needed to find and book common time for one group.

    All mutation is synchronous and immediate. The registry does no locking;
    callers sharing an instance across threads must serialize access.
    """

    def __init__(
        self,
        name: str,
        templates: Optional[Sequence[TimeRangeTemplate]] = None,
        minimum_members_required: int = 0,
        emergency_scheduling: bool = False,
        timezone: str = "UTC",
        ledger: Optional[BookingLedger] = None
    ):
        self.name = name
        self.timezone = timezone
        self._members: List[Member] = []
        self._templates: List[TimeRangeTemplate] = list(
            DEFAULT_TEMPLATES if templates is None else templates
        )
        self.minimum_members_required = minimum_members_required
        self.emergency_scheduling = emergency_scheduling
        self.ledger = ledger if ledger is not None else BookingLedger()

    @property
    def minimum_members_required(self) -> int:
        """Quorum for common slots; 0 means all members."""
        return self._minimum_members_required

    @minimum_members_required.setter
    def minimum_members_required(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"minimum_members_required must not be negative, got {value}")
        self._minimum_members_required = value

    # Roster

    @property
    def members(self) -> List[Member]:
        return list(self._members)

    def add_member(self, member: Member) -> bool:
        """Add a member. Returns False if an equal member is already present."""
        if member in self._members:
            return False
        self._members.append(member)
        return True

    def add_members(self, members: Sequence[Member]) -> int:
        """
        Add several members, returning how many were new.

        Not atomic: members added before a failure stay in the roster.
        """
        return sum(1 for member in members if self.add_member(member))

    def remove_member(self, member: Member) -> bool:
        """Remove a member by value. Returns False if absent."""
        try:
            self._members.remove(member)
        except ValueError:
            return False
        return True

    def find_member(self, name: str) -> Member | None:
        """Find the first member with the given name (case-insensitive)."""
        for member in self._members:
            if member.name.lower() == name.lower():
                return member
        return None

    # Windows

    @property
    def templates(self) -> List[TimeRangeTemplate]:
        return list(self._templates)

    def set_default_windows(self, templates: Sequence[TimeRangeTemplate]) -> None:
        self._templates = list(templates)

    def slot_finder(self) -> CommonSlotFinder:
        return CommonSlotFinder(self._templates, timezone=self.timezone)

    # Finding common time

    def find_common_time_slots(self, date: date_type, granularity_minutes: int) -> List[Interval]:
        """Common slots for the whole roster on the given date."""
        return self.slot_finder().find_common_slots(
            self._members,
            date,
            granularity_minutes,
            quorum=self.minimum_members_required,
            emergency_override=self.emergency_scheduling
        )

    def find_common_time_slots_for_group(
        self,
        label: str,
        date: date_type,
        granularity_minutes: int
    ) -> List[Interval]:
        """Common slots for the members carrying one group label."""
        return self.partition(label).find_common_slots(
            self.slot_finder(),
            date,
            granularity_minutes,
            quorum=self.minimum_members_required,
            emergency_override=self.emergency_scheduling
        )

    # Group labels

    def partition(self, label: str) -> GroupPartition:
        return GroupPartition(label, self._members)

    def all_groups(self) -> List[str]:
        """Distinct group labels in first-seen roster order."""
        groups: List[str] = []
        for member in self._members:
            if member.has_group and member.group not in groups:
                groups.append(member.group)
        return groups

    def members_by_group(self, label: str) -> List[Member]:
        return list(self.partition(label).members)

    def ungrouped_members(self) -> List[Member]:
        return [member for member in self._members if not member.has_group]

    def group_statistics(self) -> Dict[str, int]:
        """
        Member count per label, plus an "Ungrouped" bucket when any member
        has no label.
        """
        stats: Dict[str, int] = {}

        for member in self._members:
            if member.has_group:
                stats[member.group] = stats.get(member.group, 0) + 1

        ungrouped_count = len(self.ungrouped_members())
        if ungrouped_count > 0:
            stats[UNGROUPED_LABEL] = stats.get(UNGROUPED_LABEL, 0) + ungrouped_count

        return stats

    def _relabel(self, member: Member, new_label: Optional[str]) -> bool:
        candidate = Member(name=member.name, email=member.email, group=new_label)
        if candidate == member:
            return False

        # Relabeling must not produce two equal members in the roster
        if candidate in self._members:
            logger.warning(
                "Cannot move %s to group %r: an identical member already exists",
                member, new_label
            )
            return False

        member.group = candidate.group
        return True

    def move_member_to_group(self, member: Member, new_label: Optional[str]) -> int:
        """
        Relabel one roster member. ``None`` removes the label.

        Returns:
            Number of members relabeled (0 or 1)
        """
        for existing in self._members:
            if existing == member:
                return 1 if self._relabel(existing, new_label) else 0
        return 0

    def disband_group(self, label: str) -> int:
        """
        Remove a label from every member carrying it.

        Returns:
            Number of members that lost the label
        """
        count = 0
        for member in self.members_by_group(label):
            if self._relabel(member, None):
                count += 1
        if count:
            logger.info("Disbanded group %r (%d member(s))", label, count)
        return count

    # Bookings

    def book(self, interval: Interval) -> BookingResult:
        """Tentatively book an interval, reporting conflicts instead of raising."""
        result = self.ledger.add_with_conflict_report(interval)
        if result.accepted:
            logger.info("Booked %s for %s", interval, self.name)
        return result

    def force_book(self, interval: Interval, ignore_conflicts: bool = True) -> BookingResult:
        """
        Emergency booking.

        With ``ignore_conflicts`` the interval is committed even if it
        overlaps existing bookings; otherwise this behaves like ``book``.
        """
        if not ignore_conflicts:
            return self.book(interval)

        overridden = self.ledger.force_add(interval)
        logger.info("Force-booked %s for %s", interval, self.name)
        return BookingResult(
            interval=interval, accepted=True, conflicts=overridden, forced=True
        )

    def cancel_booking(self, interval: Interval) -> bool:
        return self.ledger.remove(interval)
