"""Zed editor assistant conversation scanner.

Zed stores assistant conversations in:

    macOS:   ~/Library/Application Support/Zed/conversations/
    Windows: %APPDATA%/Zed/conversations/
    all:     ~/.config/zed/conversations/

Files are ``*.json`` or ``*.zed``. Older files hold a flat message list
(``{messages: [{role, content}]}``); saved contexts keep the whole
conversation in one ``text`` buffer and give each message a ``start`` offset
and a ``metadata.role``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

from sessionscan.adapters.base import (
    MIN_FILE_BYTES,
    SessionScanner,
    TurnStrategy,
    extract_first_strategy,
    is_human_role,
    iter_flat_messages,
    make_turn,
)
from sessionscan.fs_utils import list_files, safe_read_json, safe_stats
from sessionscan.models import ConversationTurn, ParsedSession, SessionSummary
from sessionscan.platforms import Platform, get_app_data_dir, get_home, get_platform

MIN_TURNS = 2
CONTENT_KEYS = ("content", "body", "text")


class ZedScanner(SessionScanner):
    """Scanner for Zed assistant conversations."""

    @property
    def name(self) -> str:
        return "Zed"

    @property
    def source_type(self) -> str:
        return "zed"

    @property
    def description(self) -> str:
        return "Zed editor AI assistant conversations"

    def candidate_dirs(self) -> list[Path]:
        candidates: list[Path] = []
        if get_platform() in (Platform.MACOS, Platform.WINDOWS):
            candidates.append(get_app_data_dir() / "Zed" / "conversations")
        candidates.append(get_home() / ".config" / "zed" / "conversations")
        return candidates

    def iter_session_files(self) -> Iterator[Path]:
        for base_dir in self.get_session_dirs():
            yield from list_files(base_dir, [".json", ".zed"], recursive=True)

    def summarize(self, path: Path) -> SessionSummary | None:
        stats = safe_stats(path)
        if stats is None or stats.st_size < MIN_FILE_BYTES:
            return None

        data = safe_read_json(path)
        if not isinstance(data, dict):
            return None

        _, turns = extract_first_strategy(data, STRATEGIES)
        if len(turns) < MIN_TURNS:
            return None

        return self.build_session(
            path,
            turns,
            project=_project(data, path),
            title=_title(data),
            fallback_title="Zed session",
        )

    def parse_file(self, path: Path, max_turns: int | None) -> ParsedSession | None:
        data = safe_read_json(path)
        if not isinstance(data, dict):
            return None

        _, turns = extract_first_strategy(data, STRATEGIES, max_turns)
        return self.build_session(
            path,
            turns,
            project=_project(data, path),
            title=_title(data),
            fallback_title="Zed session",
            include_turns=True,
        )


def _flat(key: str) -> TurnStrategy:
    def strategy(data: dict[str, Any]) -> Iterator[ConversationTurn]:
        return iter_flat_messages(data.get(key), CONTENT_KEYS)

    return strategy


def _iter_saved_context(data: dict[str, Any]) -> Iterator[ConversationTurn]:
    """Slice the shared ``text`` buffer at each message's ``start`` offset."""
    text = data.get("text")
    messages = data.get("messages")
    if not isinstance(text, str) or not isinstance(messages, list):
        return

    anchors: list[tuple[int, Any]] = []
    for message in messages:
        if not isinstance(message, dict) or not isinstance(message.get("start"), int):
            continue
        metadata = message.get("metadata")
        role = metadata.get("role") if isinstance(metadata, dict) else message.get("role")
        anchors.append((message["start"], role))
    anchors.sort(key=lambda anchor: anchor[0])

    for index, (start, role) in enumerate(anchors):
        end = anchors[index + 1][0] if index + 1 < len(anchors) else len(text)
        # system messages hold the prompt preamble
        if role == "system":
            continue
        turn = make_turn("human" if is_human_role(role) else "assistant", text[start:end].strip())
        if turn is not None:
            yield turn


STRATEGIES: list[tuple[str, TurnStrategy]] = [
    ("messages", _flat("messages")),
    ("conversation", _flat("conversation")),
    ("entries", _flat("entries")),
    ("saved_context", _iter_saved_context),
]


def _title(data: dict[str, Any]) -> str | None:
    for key in ("title", "summary"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _project(data: dict[str, Any], path: Path) -> str:
    project = data.get("project")
    return project if isinstance(project, str) and project else path.parent.name
