"""
Tests for GroupRegistry.
"""

from datetime import time

import pendulum
import pytest

from squadsync.domain.models import Interval, Member, TimeRangeTemplate
from squadsync.domain.registry import UNGROUPED_LABEL, GroupRegistry

TZ = "UTC"
DATE = pendulum.date(2025, 1, 1)


def at(hour: int, minute: int = 0, day: int = 1) -> pendulum.DateTime:
    return pendulum.datetime(2025, 1, day, hour, minute, tz=TZ)


def _registry(**kwargs) -> GroupRegistry:
    kwargs.setdefault("templates", [TimeRangeTemplate(time(8, 0), time(14, 0))])
    return GroupRegistry("Study Group", timezone=TZ, **kwargs)


class TestRoster:
    """Roster management."""

    def test_add_member_is_idempotent(self):
        registry = _registry()

        assert registry.add_member(Member("alice", "a@example.com"))
        assert not registry.add_member(Member("alice", "a@example.com"))
        assert len(registry.members) == 1

    def test_same_person_with_other_label_is_distinct(self):
        registry = _registry()
        registry.add_member(Member("alice", "a@example.com"))

        assert registry.add_member(Member("alice", "a@example.com", group="X"))

    def test_remove_member(self):
        registry = _registry()
        registry.add_member(Member("alice", "a@example.com"))

        assert registry.remove_member(Member("alice", "a@example.com"))
        assert not registry.remove_member(Member("alice", "a@example.com"))
        assert registry.members == []

    def test_add_members_counts_new_entries(self):
        registry = _registry()

        added = registry.add_members([
            Member("alice", "a@example.com"),
            Member("bob", "b@example.com"),
            Member("alice", "a@example.com"),
        ])

        assert added == 2

    def test_find_member(self):
        registry = _registry()
        registry.add_member(Member("Alice", "a@example.com"))

        assert registry.find_member("alice").email == "a@example.com"
        assert registry.find_member("nobody") is None

    def test_negative_quorum_rejected(self):
        with pytest.raises(ValueError):
            _registry(minimum_members_required=-1)

    def test_default_windows(self):
        registry = GroupRegistry("Study Group")

        assert [t.label for t in registry.templates] == ["Morning/Afternoon", "Evening/Night"]


class TestFindCommonTimeSlots:
    """Finding common time through the registry."""

    def test_uses_registry_quorum(self):
        shared = Interval(at(9), at(9, 30))
        registry = _registry(minimum_members_required=2)
        registry.add_members([
            Member("a", "a@example.com", free_intervals=[shared]),
            Member("b", "b@example.com", free_intervals=[shared]),
            Member("c", "c@example.com"),
        ])

        assert registry.find_common_time_slots(DATE, 30) == [shared]

    def test_emergency_scheduling_returns_every_slot(self):
        registry = _registry(emergency_scheduling=True)
        registry.add_member(Member("a", "a@example.com"))

        assert len(registry.find_common_time_slots(DATE, 30)) == 12

    def test_emergency_scheduling_with_empty_roster(self):
        registry = _registry(emergency_scheduling=True)

        assert registry.find_common_time_slots(DATE, 30) == []

    def test_for_group(self):
        shared = Interval(at(11), at(11, 30))
        registry = _registry()
        registry.add_members([
            Member("a", "a@example.com", group="X", free_intervals=[shared]),
            Member("b", "b@example.com", group="X", free_intervals=[shared]),
            Member("c", "c@example.com"),
        ])

        assert registry.find_common_time_slots(DATE, 30) == []
        assert registry.find_common_time_slots_for_group("X", DATE, 30) == [shared]
        assert registry.find_common_time_slots_for_group("Y", DATE, 30) == []


class TestGroups:
    """Group labels, statistics and relabeling."""

    def _labelled_registry(self) -> GroupRegistry:
        registry = _registry()
        registry.add_members([
            Member("a", "a@example.com", group="X"),
            Member("b", "b@example.com", group="X"),
            Member("c", "c@example.com"),
        ])
        return registry

    def test_group_statistics(self):
        registry = self._labelled_registry()

        assert registry.group_statistics() == {"X": 2, UNGROUPED_LABEL: 1}

    def test_statistics_without_ungrouped_members(self):
        registry = _registry()
        registry.add_member(Member("a", "a@example.com", group="X"))

        assert registry.group_statistics() == {"X": 1}

    def test_all_groups_and_ungrouped(self):
        registry = self._labelled_registry()

        assert registry.all_groups() == ["X"]
        assert [m.name for m in registry.ungrouped_members()] == ["c"]

    def test_disband_group(self):
        registry = self._labelled_registry()

        assert registry.disband_group("X") == 2
        assert "X" not in registry.all_groups()
        assert registry.group_statistics() == {UNGROUPED_LABEL: 3}

    def test_disband_unknown_group(self):
        assert self._labelled_registry().disband_group("nope") == 0

    def test_move_member_to_group(self):
        registry = self._labelled_registry()

        moved = registry.move_member_to_group(Member("c", "c@example.com"), "Y")

        assert moved == 1
        assert registry.members_by_group("Y") == [Member("c", "c@example.com", group="Y")]

    def test_move_unknown_member(self):
        registry = self._labelled_registry()

        assert registry.move_member_to_group(Member("z", "z@example.com"), "Y") == 0

    def test_move_refuses_to_create_duplicates(self):
        registry = _registry()
        registry.add_members([
            Member("a", "a@example.com", group="X"),
            Member("a", "a@example.com", group="Y"),
        ])

        assert registry.move_member_to_group(Member("a", "a@example.com", group="X"), "Y") == 0
        assert len(registry.members) == 2


class TestBookings:
    """Booking through the registry."""

    def test_book_and_conflict(self):
        registry = _registry()

        assert registry.book(Interval(at(10), at(11))).accepted
        result = registry.book(Interval(at(10, 30), at(11, 30)))

        assert not result.accepted
        assert result.conflicts == [Interval(at(10), at(11))]

    def test_force_book_overrides_conflicts(self):
        registry = _registry()
        registry.book(Interval(at(10), at(11)))

        result = registry.force_book(Interval(at(10, 30), at(11, 30)))

        assert result.accepted and result.forced
        assert result.conflicts == [Interval(at(10), at(11))]
        assert len(registry.ledger) == 2

    def test_force_book_can_keep_conflict_checks(self):
        registry = _registry()
        registry.book(Interval(at(10), at(11)))

        result = registry.force_book(Interval(at(10, 30), at(11, 30)), ignore_conflicts=False)

        assert not result.accepted
        assert len(registry.ledger) == 1

    def test_cancel_booking(self):
        registry = _registry()
        registry.book(Interval(at(10), at(11)))

        assert registry.cancel_booking(Interval(at(10), at(11)))
        assert not registry.cancel_booking(Interval(at(10), at(11)))
