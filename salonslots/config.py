"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Dict

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import (
    DEFAULT_BUSINESS_HOURS,
    WEEKDAY_NAMES,
    WeeklyBusinessHours,
    parse_time_of_day,
)


class DayHoursConfig(BaseModel):
    """Opening hours for one weekday."""
    start: str = "09:00"
    end: str = "18:00"
    closed: bool = False

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Ensure the value parses as HH:MM."""
        parsed = parse_time_of_day(value)
        return parsed.strftime("%H:%M")

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DayHoursConfig":
        """Ensure an open day opens before it closes."""
        if not self.closed and parse_time_of_day(self.end) <= parse_time_of_day(self.start):
            raise ValueError("end must be later than start on an open day")
        return self


def _default_week() -> Dict[str, DayHoursConfig]:
    return {
        name: DayHoursConfig(**hours.to_dict())
        for name, hours in DEFAULT_BUSINESS_HOURS.items()
    }


class SupabaseConfig(BaseModel):
    """Hosted database credentials."""
    url: str = ""
    key: str = ""

    def is_configured(self) -> bool:
        return bool(self.url and self.key)


class GoogleConfig(BaseModel):
    """Google OAuth client used for token refresh."""
    client_id: str = ""
    client_secret: str = ""


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Africa/Nairobi"
    step_minutes: int = 30
    calendar_buffer_minutes: int = 15
    default_service_duration: int = 60
    business_hours: Dict[str, DayHoursConfig] = Field(default_factory=_default_week)
    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)
    google: GoogleConfig = Field(default_factory=GoogleConfig)

    @field_validator("step_minutes", "default_service_duration")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("calendar_buffer_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        if value < 0:
            raise ValueError("calendar_buffer_minutes cannot be negative")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("business_hours")
    @classmethod
    def validate_weekdays(cls, value: Dict[str, DayHoursConfig]) -> Dict[str, DayHoursConfig]:
        """Normalize weekday keys and reject unknown ones."""
        normalized: Dict[str, DayHoursConfig] = {}
        for name, hours in value.items():
            key = name.lower()
            if key not in WEEKDAY_NAMES:
                raise ValueError(f"Unknown weekday in business_hours: {name}")
            normalized[key] = hours
        return normalized

    def weekly_hours(self) -> WeeklyBusinessHours:
        """Business hours as a domain object (unset weekdays use defaults)."""
        return WeeklyBusinessHours.from_dict(
            {name: hours.model_dump() for name, hours in self.business_hours.items()}
        )

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
