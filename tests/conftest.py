import json
import os
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture(autouse=True)
def home(tmp_path_factory, monkeypatch) -> Path:
    """Point every home and app-data lookup at an empty temporary home."""
    home_dir = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("USERPROFILE", str(home_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home_dir / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home_dir / ".local" / "share"))
    monkeypatch.setenv("APPDATA", str(home_dir / "AppData" / "Roaming"))
    monkeypatch.setenv("LOCALAPPDATA", str(home_dir / "AppData" / "Local"))
    monkeypatch.delenv("CODEX_HOME", raising=False)
    monkeypatch.delenv("SESSIONSCAN_CONFIG", raising=False)
    return home_dir


@pytest.fixture
def app_data(home) -> Path:
    """Roaming app-data directory of the current platform inside the fake home."""
    from sessionscan.platforms import get_app_data_dir

    return get_app_data_dir()


def write_jsonl(path: Path, records: list[Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
    return path


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def set_mtime(path: Path, timestamp: float) -> None:
    os.utime(path, (timestamp, timestamp))
