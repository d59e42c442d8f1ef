"""
Tests for the Typer CLI.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from squadsync.adapters.registry_store import RegistryStore
from squadsync.cli.app import app

runner = CliRunner()

CONFIG_YAML = """
group_name: "CLI Group"
timezone: "UTC"
data_file: "data/group.json"
windows:
  - start: "09:00"
    end: "11:00"
    label: "Morning"
members:
  - name: alice
    email: alice@example.com
    group: "Team A"
  - name: bob
    email: bob@example.com
    group: "Team A"
  - name: carol
    email: carol@example.com
"""


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


def _run(config_path: Path, *args: str):
    command, *rest = args
    return runner.invoke(app, [command, "-c", str(config_path), *rest])


class TestFindCommand:
    """Tests for `find`."""

    def test_group_search(self, config_path):
        for name in ("alice", "bob"):
            result = _run(config_path, "free", name, "2025-01-01", "09:00", "60")
            assert result.exit_code == 0, result.output

        result = _run(config_path, "find", "--date", "2025-01-01", "--group", "Team A")

        assert result.exit_code == 0, result.output
        assert "2 common slot(s)" in result.output
        assert "2025-01-01 09:00 - 09:30" in result.output

    def test_full_roster_without_common_time(self, config_path):
        _run(config_path, "free", "alice", "2025-01-01", "09:00", "60")

        result = _run(config_path, "find", "--date", "2025-01-01")

        assert result.exit_code == 0
        assert "No common slots found" in result.output

    def test_unknown_group(self, config_path):
        result = _run(config_path, "find", "--date", "2025-01-01", "--group", "nobody")

        assert result.exit_code == 0
        assert "No members to evaluate" in result.output

    def test_invalid_date(self, config_path):
        result = _run(config_path, "find", "--date", "01.01.2025")

        assert result.exit_code == 1
        assert "Error" in result.output

    @pytest.mark.parametrize("granularity", ["0", "-15"])
    def test_non_positive_granularity_is_rejected(self, config_path, granularity):
        result = _run(config_path, "find", "--date", "2025-01-01", "--granularity", granularity, "--matrix")

        assert result.exit_code == 1
        assert "granularity_minutes must be greater than zero" in result.output
        assert "09:00 - 09:30" not in result.output

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["find", "-c", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestBookingCommands:
    """Tests for `book`, `force-book`, `cancel` and `bookings`."""

    def test_book_conflict_and_force(self, config_path, tmp_path):
        first = _run(config_path, "book", "2025-01-01", "09:00", "60")
        assert first.exit_code == 0, first.output
        assert "Booked" in first.output

        clash = _run(config_path, "book", "2025-01-01", "09:30", "60")
        assert clash.exit_code == 1
        assert "conflicts with" in clash.output

        forced = _run(config_path, "force-book", "2025-01-01", "09:30", "60", "--yes", "--no-notify")
        assert forced.exit_code == 0, forced.output
        assert "Force-booked" in forced.output
        assert "Overrode 1" in forced.output

        registry = RegistryStore(tmp_path / "data" / "group.json").load()
        assert len(registry.ledger) == 2

    def test_force_book_prompt_can_abort(self, config_path, tmp_path):
        _run(config_path, "book", "2025-01-01", "09:00", "60")

        result = runner.invoke(
            app,
            ["force-book", "-c", str(config_path), "2025-01-01", "09:30", "60", "--no-notify"],
            input="n\n",
        )

        assert result.exit_code == 1
        assert len(RegistryStore(tmp_path / "data" / "group.json").load().ledger) == 1

    def test_cancel(self, config_path):
        _run(config_path, "book", "2025-01-01", "09:00", "60")

        result = _run(config_path, "cancel", "2025-01-01", "09:00", "60")

        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert "No bookings yet" in _run(config_path, "bookings").output


class TestSettingsCommand:
    """Tests for `settings`."""

    def test_quorum_applies_to_saved_registry(self, config_path, tmp_path):
        _run(config_path, "free", "alice", "2025-01-01", "09:00", "30")
        assert "No common slots found" in _run(config_path, "find", "--date", "2025-01-01").output

        result = _run(config_path, "settings", "--quorum", "1")
        assert result.exit_code == 0, result.output
        assert "Settings saved" in result.output

        found = _run(config_path, "find", "--date", "2025-01-01")
        assert "1 common slot(s)" in found.output
        assert "2025-01-01 09:00 - 09:30" in found.output
        assert RegistryStore(tmp_path / "data" / "group.json").load().minimum_members_required == 1

    def test_emergency_toggle(self, config_path):
        on = _run(config_path, "settings", "--emergency")
        assert on.exit_code == 0, on.output

        found = _run(config_path, "find", "--date", "2025-01-01")
        assert "Emergency scheduling is on" in found.output
        assert "4 common slot(s)" in found.output

        _run(config_path, "settings", "--no-emergency")
        assert "No common slots found" in _run(config_path, "find", "--date", "2025-01-01").output

    def test_windows(self, config_path, tmp_path):
        result = _run(config_path, "settings", "-w", "Night=20:00-01:00", "-w", "13:00-14:00")

        assert result.exit_code == 0, result.output
        assert "20:00-01:00" in result.output
        templates = RegistryStore(tmp_path / "data" / "group.json").load().templates
        assert [(t.label, t.wraps_midnight) for t in templates] == [("Night", True), ("", False)]

    def test_from_config_reapplies_edited_file(self, config_path, tmp_path):
        _run(config_path, "free", "alice", "2025-01-01", "09:00", "30")
        config_path.write_text(
            CONFIG_YAML + "defaults:\n  quorum: 1\n", encoding="utf-8"
        )
        assert "No common slots found" in _run(config_path, "find", "--date", "2025-01-01").output

        result = _run(config_path, "settings", "--from-config")

        assert result.exit_code == 0, result.output
        assert "1 common slot(s)" in _run(config_path, "find", "--date", "2025-01-01").output

    def test_show_without_changes(self, config_path, tmp_path):
        result = _run(config_path, "settings")

        assert result.exit_code == 0
        assert "all members" in result.output
        assert "Settings saved" not in result.output
        assert not (tmp_path / "data" / "group.json").exists()

    @pytest.mark.parametrize("args", [
        ["--quorum", "-1"],
        ["-w", "nine-eleven"],
        ["-w", "09:00"],
        ["-w", "10:00-10:00"],
    ])
    def test_invalid_values(self, config_path, tmp_path, args):
        result = _run(config_path, "settings", *args)

        assert result.exit_code == 1
        assert "Error" in result.output
        assert not (tmp_path / "data" / "group.json").exists()


class TestRosterCommands:
    """Tests for `members`, `add-member`, `groups` and `version`."""

    def test_add_member_and_list(self, config_path):
        result = _run(config_path, "add-member", "dave", "dave@example.com", "--group", "Team B")
        assert result.exit_code == 0
        assert "Added dave" in result.output

        again = _run(config_path, "add-member", "dave", "dave@example.com", "--group", "Team B")
        assert "already a member" in again.output

        listing = _run(config_path, "members")
        assert "dave" in listing.output

    def test_free_for_unknown_member(self, config_path):
        result = _run(config_path, "free", "zed", "2025-01-01", "09:00", "60")

        assert result.exit_code == 1
        assert "Unknown member" in result.output

    def test_groups_and_disband(self, config_path):
        stats = _run(config_path, "groups")
        assert "Team A" in stats.output
        assert "Ungrouped" in stats.output

        result = _run(config_path, "groups", "--disband", "Team A")
        assert result.exit_code == 0
        assert "2 member(s)" in result.output

    def test_disband_unknown_label(self, config_path):
        result = _run(config_path, "groups", "--disband", "Unknown")

        assert result.exit_code == 0
        assert "No members carry the label 'Unknown'" in result.output
        assert "Disbanded" not in result.output

    def test_remove_member(self, config_path, tmp_path):
        result = _run(config_path, "remove-member", "carol")

        assert result.exit_code == 0, result.output
        assert "Removed carol" in result.output
        registry = RegistryStore(tmp_path / "data" / "group.json").load()
        assert [m.name for m in registry.members] == ["alice", "bob"]

        missing = _run(config_path, "remove-member", "carol")
        assert missing.exit_code == 1
        assert "Unknown member" in missing.output

    def test_move_member(self, config_path, tmp_path):
        result = _run(config_path, "move-member", "carol", "Team A")

        assert result.exit_code == 0, result.output
        assert "Moved carol to group 'Team A'" in result.output
        registry = RegistryStore(tmp_path / "data" / "group.json").load()
        assert registry.find_member("carol").group == "Team A"

        again = _run(config_path, "move-member", "carol", "Team A")
        assert "already in group 'Team A'" in again.output

        ungrouped = _run(config_path, "move-member", "alice")
        assert "Moved alice to no group" in ungrouped.output
        registry = RegistryStore(tmp_path / "data" / "group.json").load()
        assert registry.find_member("alice").group is None

    def test_free_remove(self, config_path, tmp_path):
        _run(config_path, "free", "alice", "2025-01-01", "09:00", "60")

        result = _run(config_path, "free", "alice", "2025-01-01", "09:00", "60", "--remove")

        assert result.exit_code == 0, result.output
        assert "no longer free" in result.output
        registry = RegistryStore(tmp_path / "data" / "group.json").load()
        assert registry.find_member("alice").free_intervals == []

        again = _run(config_path, "free", "alice", "2025-01-01", "09:00", "60", "--remove")
        assert again.exit_code == 0
        assert "has no free interval" in again.output

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "squadsync" in result.output
