"""Configuration management for sessionscan.

Configuration is loaded from ~/.sessionscan/config.toml (or the file named by
the SESSIONSCAN_CONFIG environment variable) with sensible defaults.

Example config file:
    [sources.aider]
    enabled = true
    paths = ["~/code/myproject"]

    [sources.cursor]
    enabled = false

    [scan]
    default_limit = 20
    max_files = 0

    [logging]
    level = "WARNING"
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

# Use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SESSIONSCAN_CONFIG"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SourceConfig(BaseModel):
    """Configuration for one session scanner."""

    enabled: bool = True
    paths: list[str] = Field(default_factory=list)

    def expanded_paths(self) -> list[Path]:
        return [Path(p).expanduser() for p in self.paths]


class ScanConfig(BaseModel):
    """Configuration for discovery."""

    default_limit: int = Field(default=20, ge=0)
    # Files examined per scanner per scan; 0 means unbounded
    max_files: int = Field(default=0, ge=0)


class LoggingConfig(BaseModel):
    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return value


class Config(BaseModel):
    """Main configuration model for sessionscan."""

    sources: dict[str, SourceConfig] = Field(default_factory=dict)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def source(self, source_name: str) -> SourceConfig:
        """Settings for a source; unconfigured sources use the defaults."""
        return self.sources.get(source_name) or SourceConfig()

    def is_source_enabled(self, source_name: str) -> bool:
        return self.source(source_name).enabled


def get_config_path() -> Path:
    """Location of the config file, honoring SESSIONSCAN_CONFIG."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".sessionscan" / "config.toml"


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from a TOML file.

    If the file doesn't exist or can't be parsed, returns the default
    configuration. Partial configurations are merged with defaults.

    Args:
        config_path: Path to the config file. Defaults to get_config_path().

    Returns:
        Config object with loaded or default values.
    """
    if config_path is None:
        config_path = get_config_path()

    default_config = Config()

    if not config_path.exists():
        return default_config

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return default_config

    try:
        return _merge_config(default_config, data)
    except ValidationError as e:
        logger.warning("Ignoring invalid config %s: %s", config_path, e)
        return default_config


def _merge_config(default: Config, data: dict[str, Any]) -> Config:
    """Merge loaded config data with defaults.

    Args:
        default: Default configuration.
        data: Loaded TOML data.

    Returns:
        Merged Config object.
    """
    sources = dict(default.sources)
    for source_name, source_data in _section(data, "sources").items():
        if not isinstance(source_data, dict):
            continue
        existing = sources.get(source_name, SourceConfig())
        sources[source_name] = SourceConfig(
            enabled=source_data.get("enabled", existing.enabled),
            paths=source_data.get("paths", existing.paths),
        )

    scan_data = _section(data, "scan")
    scan = ScanConfig(
        default_limit=scan_data.get("default_limit", default.scan.default_limit),
        max_files=scan_data.get("max_files", default.scan.max_files),
    )

    logging_data = _section(data, "logging")
    logging_config = LoggingConfig(level=logging_data.get("level", default.logging.level))

    return Config(sources=sources, scan=scan, logging=logging_config)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a top-level table; anything else is ignored with a warning."""
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        logger.warning("Ignoring config section [%s]: expected a table", name)
        return {}
    return section
