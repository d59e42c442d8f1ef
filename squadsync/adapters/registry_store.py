"""
JSON persistence for a GroupRegistry using pydantic snapshot models.
"""

from __future__ import annotations

import json
import logging
from datetime import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..domain.exceptions import InvalidRangeError, PersistenceError
from ..domain.ledger import BookingLedger
from ..domain.models import Interval, Member, TimeRangeTemplate
from ..domain.registry import GroupRegistry

logger = logging.getLogger(__name__)


SCHEMA_VERSION = 1


def _parse_datetime(value: Any) -> DateTime:
    if isinstance(value, DateTime):
        return value
    parsed = pendulum.parse(str(value))
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse datetime: {value}")
    return parsed


class IntervalRecord(BaseModel):
    """Serialized interval; timestamps are ISO 8601 strings with offset."""
    start: str
    end: str

    @classmethod
    def from_interval(cls, interval: Interval) -> "IntervalRecord":
        return cls(
            start=interval.start.to_iso8601_string(),
            end=interval.end.to_iso8601_string()
        )

    def to_interval(self) -> Interval:
        return Interval(start=_parse_datetime(self.start), end=_parse_datetime(self.end))


class MemberRecord(BaseModel):
    name: str
    email: str
    group: Optional[str] = None
    free_intervals: List[IntervalRecord] = Field(default_factory=list)

    @classmethod
    def from_member(cls, member: Member) -> "MemberRecord":
        return cls(
            name=member.name,
            email=member.email,
            group=member.group,
            free_intervals=[IntervalRecord.from_interval(i) for i in member.free_intervals]
        )

    def to_member(self) -> Member:
        member = Member(name=self.name, email=self.email, group=self.group)
        for record in self.free_intervals:
            member.add_availability(record.to_interval())
        return member


class WindowRecord(BaseModel):
    start: time
    end: time
    label: str = ""

    @classmethod
    def from_template(cls, template: TimeRangeTemplate) -> "WindowRecord":
        return cls(start=template.start_time, end=template.end_time, label=template.label)

    def to_template(self) -> TimeRangeTemplate:
        return TimeRangeTemplate(start_time=self.start, end_time=self.end, label=self.label)


class RegistryRecord(BaseModel):
    """Closed set of fields that make up a persisted registry."""
    schema_version: int = SCHEMA_VERSION
    name: str
    timezone: str = "UTC"
    minimum_members_required: int = 0
    emergency_scheduling: bool = False
    windows: List[WindowRecord] = Field(default_factory=list)
    members: List[MemberRecord] = Field(default_factory=list)
    bookings: List[IntervalRecord] = Field(default_factory=list)

    @field_validator("minimum_members_required")
    @classmethod
    def validate_quorum(cls, value: int) -> int:
        if value < 0:
            raise ValueError("minimum_members_required must not be negative")
        return value


def dump_registry(registry: GroupRegistry) -> Dict[str, Any]:
    """Convert a registry to plain JSON-compatible data."""
    record = RegistryRecord(
        name=registry.name,
        timezone=registry.timezone,
        minimum_members_required=registry.minimum_members_required,
        emergency_scheduling=registry.emergency_scheduling,
        windows=[WindowRecord.from_template(t) for t in registry.templates],
        members=[MemberRecord.from_member(m) for m in registry.members],
        bookings=[IntervalRecord.from_interval(i) for i in registry.ledger.intervals]
    )
    return record.model_dump(mode="json")


def load_registry(data: Dict[str, Any]) -> GroupRegistry:
    """
    Rebuild a registry from data produced by ``dump_registry``.

    Raises:
        PersistenceError: If the data is malformed
    """
    try:
        record = RegistryRecord.model_validate(data)

        # Bookings are restored as stored, including ones forced over conflicts
        ledger = BookingLedger()
        for booking in record.bookings:
            ledger.force_add(booking.to_interval())

        registry = GroupRegistry(
            name=record.name,
            templates=[w.to_template() for w in record.windows],
            minimum_members_required=record.minimum_members_required,
            emergency_scheduling=record.emergency_scheduling,
            timezone=record.timezone,
            ledger=ledger
        )
        for member_record in record.members:
            registry.add_member(member_record.to_member())

    except (ValidationError, InvalidRangeError, ValueError) as exc:
        raise PersistenceError(f"Invalid registry data: {exc}") from exc

    return registry


class RegistryStore:
    """
    Saves and loads a single registry as a JSON file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, registry: GroupRegistry) -> None:
        """
        Write the registry to disk.

        Raises:
            PersistenceError: If the file cannot be written
        """
        payload = json.dumps(dump_registry(registry), indent=2, ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as file_handle:
                file_handle.write(payload)
        except OSError as exc:
            raise PersistenceError(f"Could not save registry to {self.path}: {exc}") from exc

        logger.debug(
            "Saved registry %r (%d members, %d bookings) to %s",
            registry.name, len(registry.members), len(registry.ledger), self.path
        )

    def load(self) -> GroupRegistry:
        """
        Read the registry from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist
            PersistenceError: If the file cannot be read or parsed
        """
        if not self.path.exists():
            raise FileNotFoundError(f"Registry file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as file_handle:
                data = json.load(file_handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Could not read registry from {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise PersistenceError("Registry file must contain a JSON object at the root level.")

        registry = load_registry(data)
        logger.debug("Loaded registry %r from %s", registry.name, self.path)
        return registry

    def clear(self) -> None:
        """Delete the stored registry, if any."""
        if self.path.exists():
            self.path.unlink()
