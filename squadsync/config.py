"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.models import DEFAULT_TEMPLATES, Member, TimeRangeTemplate
from .domain.registry import GroupRegistry


class DefaultsConfig(BaseModel):
    """Default settings for slot search."""
    granularity_minutes: int = 30
    quorum: int = 0  # 0 = all members
    emergency_scheduling: bool = False

    @field_validator("granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Ensure slot length is positive."""
        if value <= 0:
            raise ValueError("granularity_minutes must be greater than zero")
        return value

    @field_validator("quorum")
    @classmethod
    def validate_quorum(cls, value: int) -> int:
        if value < 0:
            raise ValueError("quorum must not be negative")
        return value


class WindowConfig(BaseModel):
    """Within-day window; end earlier than start wraps past midnight."""
    start: time
    end: time
    label: str = ""

    @field_validator("start", "end", mode="before")
    @classmethod
    def validate_time_text(cls, value):
        """YAML 1.1 reads unquoted 20:00 as the integer 1200."""
        if isinstance(value, int):
            raise ValueError("window times must be quoted strings such as '20:00'")
        return value

    def to_template(self) -> TimeRangeTemplate:
        return TimeRangeTemplate(start_time=self.start, end_time=self.end, label=self.label)


def _default_windows() -> List[WindowConfig]:
    return [
        WindowConfig(start=t.start_time, end=t.end_time, label=t.label)
        for t in DEFAULT_TEMPLATES
    ]


class MemberConfig(BaseModel):
    """Member seeded from the config file."""
    name: str
    email: str
    group: Optional[str] = None

    def to_member(self) -> Member:
        return Member(name=self.name, email=self.email, group=self.group)


class AppConfig(BaseModel):
    """Application configuration."""
    group_name: str = "My Study Group"
    timezone: str = "UTC"
    data_file: Path = Path("data/study_group.json")
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    windows: List[WindowConfig] = Field(default_factory=_default_windows)
    members: List[MemberConfig] = Field(default_factory=list)

    @field_validator("members")
    @classmethod
    def validate_members(cls, value: List[MemberConfig]) -> List[MemberConfig]:
        """Ensure no two configured members are identical."""
        seen: set[tuple] = set()
        for member in value:
            key = (member.name, member.email, member.group or None)
            if key in seen:
                raise ValueError(f"Duplicate member detected: {member.name} ({member.email})")
            seen.add(key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def resolve_data_file(self, config_path: Path | None = None) -> Path:
        """Resolve a relative data file against the config file's directory."""
        if self.data_file.is_absolute() or config_path is None:
            return self.data_file
        return config_path.parent / self.data_file

    def build_registry(self) -> GroupRegistry:
        """Create a fresh registry seeded from this configuration."""
        registry = GroupRegistry(
            name=self.group_name,
            templates=[w.to_template() for w in self.windows],
            minimum_members_required=self.defaults.quorum,
            emergency_scheduling=self.defaults.emergency_scheduling,
            timezone=self.timezone,
        )
        registry.add_members([m.to_member() for m in self.members])
        return registry


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
