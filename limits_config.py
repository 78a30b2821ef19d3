"""
Configuration file loading for claude-limits.

Default location:
    Linux/macOS: $XDG_CONFIG_HOME/claude-limits/config.yaml (~/.config/...)
    Windows:     %APPDATA%\\claude-limits\\config.yaml

Example:
    formats:
      preset: 24hour        # 12hour, 24hour, iso8601, us, eu
      datetime: "%a %H:%M"  # overrides the preset's datetime pattern

Format values are strftime patterns.
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from usage_errors import ConfigError

# Module-level logger
logger = logging.getLogger(__name__)

CONFIG_ENV = "CLAUDE_LIMITS_CONFIG"


@dataclass
class FormatPreset:
    """strftime patterns used when displaying timestamps."""
    datetime: str
    date: str
    time: str


PRESETS = {
    "12hour": FormatPreset(
        datetime="%a, %b %-d %Y at %-I:%M %p %Z",
        date="%a, %b %-d %Y",
        time="%-I:%M %p",
    ),
    "24hour": FormatPreset(
        datetime="%a, %b %-d %Y at %H:%M %Z",
        date="%a, %b %-d %Y",
        time="%H:%M",
    ),
    "iso8601": FormatPreset(
        datetime="%Y-%m-%dT%H:%M:%S%z",
        date="%Y-%m-%d",
        time="%H:%M:%S",
    ),
    "us": FormatPreset(
        datetime="%b %-d, %Y %-I:%M %p %Z",
        date="%b %-d, %Y",
        time="%-I:%M %p",
    ),
    "eu": FormatPreset(
        datetime="%-d %b %Y %H:%M %Z",
        date="%-d %b %Y",
        time="%H:%M",
    ),
}

DEFAULT_FORMATS = PRESETS["12hour"]


@dataclass
class FormatsConfig:
    """`formats:` section of the config file."""
    preset: str = ""
    datetime: str = ""
    date: str = ""
    time: str = ""


@dataclass
class Config:
    """Full claude-limits configuration."""
    formats: FormatsConfig = field(default_factory=FormatsConfig)

    def resolved_formats(self) -> FormatPreset:
        """Defaults, then the named preset, then individual overrides."""
        base = DEFAULT_FORMATS
        if self.formats.preset:
            if self.formats.preset in PRESETS:
                base = PRESETS[self.formats.preset]
            else:
                logger.warning(f"Unknown format preset {self.formats.preset!r}, using defaults")

        return FormatPreset(
            datetime=self.formats.datetime or base.datetime,
            date=self.formats.date or base.date,
            time=self.formats.time or base.time,
        )


def default_config_path() -> Path:
    """Platform default config file path."""
    if sys.platform == "win32":
        config_dir = os.environ.get("APPDATA")
        if not config_dir:
            config_dir = os.path.join(os.environ.get("USERPROFILE", str(Path.home())),
                                      "AppData", "Roaming")
    else:
        config_dir = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")

    return Path(config_dir) / "claude-limits" / "config.yaml"


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"config section {name!r} must be a mapping")
    return section


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load the config file.

    Path resolution: explicit path, then $CLAUDE_LIMITS_CONFIG, then the
    platform default. A missing file is not an error.

    Raises:
        ConfigError: File unreadable or not valid YAML
    """
    if not path:
        path = os.environ.get(CONFIG_ENV) or default_config_path()
    path = Path(path)

    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return Config()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ConfigError(f"failed to parse config {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"failed to read config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must be a mapping")

    formats = _section(data, "formats")
    logger.debug(f"Loaded config from {path}")

    return Config(formats=FormatsConfig(
        preset=str(formats.get("preset") or ""),
        datetime=str(formats.get("datetime") or ""),
        date=str(formats.get("date") or ""),
        time=str(formats.get("time") or ""),
    ))


def load_config_or_default(path: Optional[Path] = None) -> Config:
    """Load the config file, falling back to defaults on any error."""
    try:
        return load_config(path)
    except ConfigError as e:
        logger.warning(f"{e} - using default config")
        return Config()
