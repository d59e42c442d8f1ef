"""
Named sub-groups of a registry's members.
"""

from datetime import date as date_type
from typing import List, Sequence

from .models import Interval, Member
from .slot_finder import CommonSlotFinder


class GroupPartition:
    """
    The members of a roster carrying one exact group label.

    Untagged members never belong to a partition. The quorum passed to
    ``find_common_slots`` is clamped against the partition size, not the
    full roster.
    """

    def __init__(self, label: str, roster: Sequence[Member]):
        self.label = label
        self.members: List[Member] = [
            member for member in roster if member.belongs_to_group(label)
        ]

    def __len__(self) -> int:
        return len(self.members)

    @property
    def is_empty(self) -> bool:
        return not self.members

    def find_common_slots(
        self,
        finder: CommonSlotFinder,
        date: date_type,
        granularity_minutes: int,
        quorum: int = 0,
        emergency_override: bool = False
    ) -> List[Interval]:
        """Run the slot finder against this partition only."""
        if self.is_empty:
            return []

        return finder.find_common_slots(
            self.members,
            date,
            granularity_minutes,
            quorum=quorum,
            emergency_override=emergency_override
        )
