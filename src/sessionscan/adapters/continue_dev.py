"""Continue.dev session scanner.

Continue stores one JSON document per session:

    ~/.continue/sessions/*.json
    macOS:   ~/Library/Application Support/Continue/sessions/
    Windows: %APPDATA%/Continue/sessions/
    Linux:   $XDG_CONFIG_HOME/continue/sessions/

The conversation lives under one of several keys depending on the version:
``history`` (``[{message: {role, content}}]`` or ``[{role, content}]``),
``messages``, or the older ``steps`` (``[{name: "UserInput", description}]``).
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
    make_turn,
    parse_timestamp,
    text_from_parts,
)
from sessionscan.fs_utils import file_uri_to_path, list_files, safe_read_json, safe_stats
from sessionscan.models import ConversationTurn, ParsedSession, SessionSummary
from sessionscan.platforms import Platform, get_app_data_dir, get_home, get_platform

MIN_TURNS = 2

USER_STEP_NAMES = ("UserInput",)
ASSISTANT_STEP_NAMES = ("DefaultModelEditCodeStep", "ChatModelResponse")


class ContinueDevScanner(SessionScanner):
    """Scanner for Continue.dev session documents."""

    @property
    def name(self) -> str:
        return "Continue.dev"

    @property
    def source_type(self) -> str:
        return "continue"

    @property
    def description(self) -> str:
        return "Continue.dev AI coding assistant sessions"

    def candidate_dirs(self) -> list[Path]:
        candidates = [get_home() / ".continue" / "sessions"]
        if get_platform() is Platform.LINUX:
            candidates.append(get_app_data_dir() / "continue" / "sessions")
        else:
            candidates.append(get_app_data_dir() / "Continue" / "sessions")
        return candidates

    def iter_session_files(self) -> Iterator[Path]:
        for base_dir in self.get_session_dirs():
            yield from list_files(base_dir, [".json"])

    def summarize(self, path: Path) -> SessionSummary | None:
        stats = safe_stats(path)
        if stats is None or stats.st_size < MIN_FILE_BYTES:
            return None

        data = safe_read_json(path)
        # sessions.json is a list index of all sessions, not a session
        if not isinstance(data, dict):
            return None

        _, turns = extract_first_strategy(data, STRATEGIES)
        if len(turns) < MIN_TURNS:
            return None

        project_path, project = _resolve_project(data, path)
        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            title=_title(data),
            fallback_title="Continue session",
        )

    def parse_file(self, path: Path, max_turns: int | None) -> ParsedSession | None:
        data = safe_read_json(path)
        if not isinstance(data, dict):
            return None

        _, turns = extract_first_strategy(data, STRATEGIES, max_turns)
        project_path, project = _resolve_project(data, path)
        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            title=_title(data),
            fallback_title="Continue session",
            include_turns=True,
        )


def _iter_message_items(items: Any) -> Iterator[ConversationTurn]:
    if not isinstance(items, list):
        return
    for item in items:
        if not isinstance(item, dict):
            continue
        message = item.get("message")
        if isinstance(message, dict):
            item = message

        content = item.get("content") or item.get("text") or item.get("message")
        if isinstance(content, list):
            content = text_from_parts(content, part_types=None)

        turn = make_turn(
            "human" if is_human_role(item.get("role")) else "assistant",
            content,
            parse_timestamp(item.get("timestamp")),
        )
        if turn is not None:
            yield turn


def _iter_history(data: dict[str, Any]) -> Iterator[ConversationTurn]:
    return _iter_message_items(data.get("history"))


def _iter_messages(data: dict[str, Any]) -> Iterator[ConversationTurn]:
    return _iter_message_items(data.get("messages"))


def _iter_steps(data: dict[str, Any]) -> Iterator[ConversationTurn]:
    steps = data.get("steps")
    if not isinstance(steps, list):
        return
    for step in steps:
        if not isinstance(step, dict):
            continue
        name = step.get("name")
        if name in USER_STEP_NAMES:
            turn = make_turn("human", step.get("description"))
        elif name in ASSISTANT_STEP_NAMES:
            turn = make_turn("assistant", step.get("description"))
        else:
            continue
        if turn is not None:
            yield turn


STRATEGIES: list[tuple[str, TurnStrategy]] = [
    ("history", _iter_history),
    ("messages", _iter_messages),
    ("steps", _iter_steps),
]


def _title(data: dict[str, Any]) -> str | None:
    title = data.get("title")
    return title if isinstance(title, str) and title else None


def _resolve_project(data: dict[str, Any], path: Path) -> tuple[str | None, str]:
    for key in ("workspaceDirectory", "workspacePath"):
        workspace = data.get(key)
        if isinstance(workspace, str) and workspace:
            if workspace.startswith("file:"):
                workspace = file_uri_to_path(workspace) or workspace
            return workspace, Path(workspace).name or workspace
    return None, path.parent.name
