"""
Configuration models and loader for Status Slayer.

Loads a TOML file with one [[section]] table per status bar section:

    min_interval = 100

    [[section]]
    name = "kernel release"
    command = "uname -r"
    interval = "oneshot"
"""

import logging
import tomllib
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from xdg.BaseDirectory import xdg_config_home

from .errors import ConfigInvalidError

logger = logging.getLogger(__name__)

ONESHOT = "oneshot"
DEFAULT_INTERVAL = 1
DEFAULT_MIN_INTERVAL_MS = 1000


def default_config_path() -> Path:
    """Return $XDG_CONFIG_HOME/stslayer/config.toml."""
    return Path(xdg_config_home) / "stslayer" / "config.toml"


class Section(BaseModel):
    """One status bar section: a shell command run on its own schedule."""

    name: str = Field(..., description="Section name, used as the block instance")
    command: str = Field(..., description="Shell command whose stdout is displayed")
    interval: Union[int, str] = Field(
        DEFAULT_INTERVAL,
        description="Seconds between runs, or 'oneshot' to run once"
    )

    @field_validator('name', 'command')
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate name and command are not blank."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator('interval', mode='before')
    @classmethod
    def validate_interval(cls, v):
        """Accept 'oneshot' (any case) or a whole number of seconds >= 1."""
        if isinstance(v, bool):
            raise ValueError("interval must be 'oneshot' or a number of seconds")
        if isinstance(v, str):
            if v.strip().lower() == ONESHOT:
                return ONESHOT
            raise ValueError(f"unknown interval {v!r}, expected 'oneshot' or seconds")
        if isinstance(v, int):
            if v < 1:
                raise ValueError(f"interval must be at least 1 second, got {v}")
            return v
        raise ValueError("interval must be 'oneshot' or a whole number of seconds")

    @property
    def is_oneshot(self) -> bool:
        return self.interval == ONESHOT

    @property
    def period(self) -> Optional[float]:
        """Seconds between runs, None for oneshot sections."""
        if self.is_oneshot:
            return None
        return float(self.interval)


class Config(BaseModel):
    """Complete Status Slayer configuration."""

    model_config = ConfigDict(populate_by_name=True)

    sections: List[Section] = Field(
        ...,
        alias="section",
        description="Sections in display order"
    )
    min_interval: int = Field(
        DEFAULT_MIN_INTERVAL_MS,
        ge=0,
        description="Minimum milliseconds between status emissions"
    )
    click_events: bool = Field(False, description="Request click events from the bar")

    @model_validator(mode='before')
    @classmethod
    def accept_sections_key(cls, data):
        """Allow [[sections]] as well as [[section]]."""
        if isinstance(data, dict) and "sections" in data and "section" not in data:
            data = dict(data)
            data["section"] = data.pop("sections")
        return data

    @model_validator(mode='after')
    def validate_sections(self):
        """Require at least one section and unique section names."""
        if not self.sections:
            raise ValueError("at least one section must be defined")

        seen = set()
        duplicates = []
        for section in self.sections:
            if section.name in seen and section.name not in duplicates:
                duplicates.append(section.name)
            seen.add(section.name)
        if duplicates:
            raise ValueError(f"duplicate section names: {', '.join(duplicates)}")

        return self

    @property
    def min_interval_seconds(self) -> float:
        return self.min_interval / 1000


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        message = item["msg"]
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def parse_config(data: dict, file_path: Optional[str] = None) -> Config:
    """
    Validate raw configuration data.

    Args:
        data: Parsed TOML document
        file_path: Source file, for error messages

    Returns:
        Validated Config

    Raises:
        ConfigInvalidError: If validation fails
    """
    if "section" not in data and "sections" not in data:
        raise ConfigInvalidError("at least one section must be defined", file_path)

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigInvalidError(_format_validation_error(e), file_path) from e


def load_config(path: Path) -> Config:
    """
    Load configuration from a TOML file.

    Args:
        path: Path to config.toml

    Returns:
        Validated Config

    Raises:
        ConfigInvalidError: If the file is missing, unreadable, not valid TOML,
            or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise ConfigInvalidError("file not found", str(path))

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigInvalidError(f"TOML syntax error: {e}", str(path)) from e
    except OSError as e:
        raise ConfigInvalidError(f"cannot read file: {e}", str(path)) from e

    config = parse_config(data, str(path))
    logger.info(f"Loaded {len(config.sections)} sections from {path}")
    return config
