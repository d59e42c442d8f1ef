"""
Core business logic for finding common time slots.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O).
"""

import logging
from datetime import date as date_type
from typing import List, Sequence

from .models import Interval, Member, TimeRangeTemplate, generate_candidate_slots

logger = logging.getLogger(__name__)


def effective_quorum(quorum: int, member_count: int) -> int:
    """
    Number of available members a slot needs.

    A quorum of 0 means every member; a positive quorum is clamped to the
    member count.
    """
    if quorum < 0:
        raise ValueError(f"quorum must not be negative, got {quorum}")
    if quorum > 0:
        return min(quorum, member_count)
    return member_count


class CommonSlotFinder:
    """
    Finds candidate slots that enough members are free for.

    Algorithm:
    1. Generate candidate slots from every template, in declaration order
    2. For each slot, count members with a free interval overlapping it
    3. Emit the slot as soon as the count reaches the effective quorum
    4. Under emergency override, emit every slot without counting
    """

    def __init__(self, templates: Sequence[TimeRangeTemplate], timezone: str = "UTC"):
        self.templates = list(templates)
        self.timezone = timezone

    def candidate_slots(self, date: date_type, granularity_minutes: int) -> List[Interval]:
        """Return every candidate slot for the date without evaluating it."""
        return generate_candidate_slots(
            self.templates, date, granularity_minutes, self.timezone
        )

    def find_common_slots(
        self,
        members: Sequence[Member],
        date: date_type,
        granularity_minutes: int,
        quorum: int = 0,
        emergency_override: bool = False
    ) -> List[Interval]:
        """
        Find all candidate slots judged common for the given members.

        Args:
            members: Members to evaluate, in roster order
            date: Calendar date the windows are anchored on
            granularity_minutes: Length of each candidate slot
            quorum: Minimum available members, 0 for all
            emergency_override: Treat every slot as common

        Returns:
            Common slots in generation order. Empty when there are no members.
        """
        member_list = list(members)

        if not member_list:
            return []

        required = effective_quorum(quorum, len(member_list))
        candidates = self.candidate_slots(date, granularity_minutes)

        if emergency_override:
            logger.debug(
                "Emergency override active: %d candidate slot(s) on %s are all common",
                len(candidates), date
            )
            return candidates

        common: List[Interval] = []

        for slot in candidates:
            available = 0

            for member in member_list:
                if member.is_available_for(slot):
                    available += 1

                # Stop counting once the quorum is met
                if available >= required:
                    common.append(slot)
                    break

        logger.debug(
            "%d of %d candidate slot(s) on %s reach quorum %d/%d",
            len(common), len(candidates), date, required, len(member_list)
        )
        return common
