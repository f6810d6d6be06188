"""Platform resolver.

Maps the running OS to its conventional home, roaming app-data and local
app-data directories:

    Windows: %APPDATA%, %LOCALAPPDATA%, %USERPROFILE%
    macOS:   ~/Library/Application Support, ~/
    Linux:   $XDG_CONFIG_HOME (~/.config), $XDG_DATA_HOME (~/.local/share), ~/

Nothing here raises; the returned paths may not exist.
"""

from __future__ import annotations

import os
import sys
from enum import Enum
from pathlib import Path
from typing import Iterable


class Platform(str, Enum):
    """Operating systems with distinct session directory conventions."""

    MACOS = "macos"
    WINDOWS = "windows"
    LINUX = "linux"


def get_platform() -> Platform:
    """Return the current platform. Anything that is not Windows or macOS is Linux."""
    if sys.platform == "win32":
        return Platform.WINDOWS
    if sys.platform == "darwin":
        return Platform.MACOS
    return Platform.LINUX


def get_home() -> Path:
    return Path.home()


def _env_path(name: str) -> Path | None:
    value = os.environ.get(name)
    if value:
        return Path(value).expanduser()
    return None


def get_app_data_dir() -> Path:
    """Roaming application data directory for the current platform."""
    platform = get_platform()
    if platform is Platform.WINDOWS:
        return _env_path("APPDATA") or get_home() / "AppData" / "Roaming"
    if platform is Platform.MACOS:
        return get_home() / "Library" / "Application Support"
    return _env_path("XDG_CONFIG_HOME") or get_home() / ".config"


def get_local_app_data_dir() -> Path:
    """Non-roaming application data directory for the current platform."""
    platform = get_platform()
    if platform is Platform.WINDOWS:
        return _env_path("LOCALAPPDATA") or get_home() / "AppData" / "Local"
    if platform is Platform.MACOS:
        return get_home() / "Library" / "Application Support"
    return _env_path("XDG_DATA_HOME") or get_home() / ".local" / "share"


def resolve_paths(candidates: Iterable[Path]) -> list[Path]:
    """Return the candidates that exist, in order, without duplicates."""
    resolved: list[Path] = []
    for candidate in candidates:
        try:
            if candidate.exists() and candidate not in resolved:
                resolved.append(candidate)
        except OSError:
            continue
    return resolved
