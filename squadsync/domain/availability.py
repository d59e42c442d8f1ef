"""
Member x candidate-slot availability matrix.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple

from .models import Interval, Member


@dataclass
class AvailabilityMatrix:
    """
    Precomputed view of which member is free for which candidate slot.

    Cells use the same rule as the slot finder: a member is available for a
    slot when any of their free intervals overlaps it.
    """
    members: List[Member]
    slots: List[Interval]
    _cells: List[List[bool]] = field(default_factory=list, repr=False)

    @classmethod
    def build(cls, members: Sequence[Member], slots: Sequence[Interval]) -> "AvailabilityMatrix":
        member_list = list(members)
        slot_list = list(slots)
        cells = [
            [member.is_available_for(slot) for slot in slot_list]
            for member in member_list
        ]
        return cls(members=member_list, slots=slot_list, _cells=cells)

    def _slot_index(self, slot: Interval) -> int:
        try:
            return self.slots.index(slot)
        except ValueError:
            raise KeyError(f"Slot {slot} is not part of this matrix") from None

    def _member_index(self, member: Member) -> int:
        try:
            return self.members.index(member)
        except ValueError:
            raise KeyError(f"Member {member} is not part of this matrix") from None

    def is_available(self, member: Member, slot: Interval) -> bool:
        return self._cells[self._member_index(member)][self._slot_index(slot)]

    def available_members(self, slot: Interval) -> List[Member]:
        column = self._slot_index(slot)
        return [
            member for member, row in zip(self.members, self._cells)
            if row[column]
        ]

    def count(self, slot: Interval) -> int:
        """Number of members available for the slot."""
        column = self._slot_index(slot)
        return sum(1 for row in self._cells if row[column])

    def rows(self) -> Iterator[Tuple[Member, List[bool]]]:
        """Yield (member, availability per slot) in roster order."""
        for member, row in zip(self.members, self._cells):
            yield member, list(row)
