"""VS Code Copilot Chat session scanner.

Copilot Chat keeps conversations under the editor's user data directory
(VS Code, VS Code Insiders and VSCodium share the layout):

    <app-data>/<variant>/User/workspaceStorage/<hash>/github.copilot-chat/*.json
    <app-data>/<variant>/User/workspaceStorage/<hash>/chatSessions/*.json
    <app-data>/<variant>/User/globalStorage/github.copilot-chat/*.json

where <app-data> is ~/Library/Application Support (macOS), %APPDATA%
(Windows) or $XDG_CONFIG_HOME (Linux). Each workspace hash directory has a
workspace.json whose ``folder`` URI names the project.
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
    iter_chat_requests,
    iter_flat_messages,
    make_turn,
)
from sessionscan.adapters.vscdb import workspace_folder
from sessionscan.fs_utils import list_dirs, list_files, safe_read_json, safe_stats
from sessionscan.models import ConversationTurn, ParsedSession, SessionSummary
from sessionscan.platforms import get_app_data_dir

MIN_TURNS = 2

CODE_VARIANTS = ("Code", "Code - Insiders", "VSCodium")
VENDOR_DIR = "github.copilot-chat"
WORKSPACE_SUBDIRS = (VENDOR_DIR, "chatSessions")
FLAT_CONTENT_KEYS = ("content", "text", "message")


class VSCodeCopilotScanner(SessionScanner):
    """Scanner for GitHub Copilot Chat sessions in VS Code."""

    @property
    def name(self) -> str:
        return "VS Code Copilot Chat"

    @property
    def source_type(self) -> str:
        return "vscode-copilot"

    @property
    def description(self) -> str:
        return "GitHub Copilot Chat sessions in VS Code"

    def candidate_dirs(self) -> list[Path]:
        app_data = get_app_data_dir()
        candidates: list[Path] = []
        for variant in CODE_VARIANTS:
            user_dir = app_data / variant / "User"
            candidates.append(user_dir / "workspaceStorage")
            candidates.append(user_dir / "globalStorage" / VENDOR_DIR)
        return candidates

    def iter_session_files(self) -> Iterator[Path]:
        for base_dir in self.get_session_dirs():
            if base_dir.name != "workspaceStorage":
                yield from list_files(base_dir, [".json"])
                continue

            for hash_dir in list_dirs(base_dir):
                for subdir in WORKSPACE_SUBDIRS:
                    yield from list_files(hash_dir / subdir, [".json"])

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

        project_path, project = _resolve_project(path)
        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            fallback_title="Copilot Chat session",
        )

    def parse_file(self, path: Path, max_turns: int | None) -> ParsedSession | None:
        data = safe_read_json(path)
        if not isinstance(data, dict):
            return None

        _, turns = extract_first_strategy(data, STRATEGIES, max_turns)
        project_path, project = _resolve_project(path)
        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            fallback_title="Copilot Chat session",
            include_turns=True,
        )


def _iter_conversations(data: dict[str, Any]) -> Iterator[ConversationTurn]:
    """``{conversations: [{turns: [{request, response} | {role, message}]}]}``"""
    conversations = data.get("conversations")
    if not isinstance(conversations, list):
        return
    for conversation in conversations:
        if not isinstance(conversation, dict) or not isinstance(conversation.get("turns"), list):
            continue
        for entry in conversation["turns"]:
            if not isinstance(entry, dict):
                continue
            candidates = (
                make_turn("human", entry.get("request")),
                make_turn("assistant", entry.get("response")),
                make_turn(
                    "human" if is_human_role(entry.get("role")) else "assistant",
                    entry.get("message"),
                ),
            )
            for turn in candidates:
                if turn is not None:
                    yield turn


def _iter_requests(data: dict[str, Any]) -> Iterator[ConversationTurn]:
    return iter_chat_requests(data.get("requests"))


def _flat(key: str) -> TurnStrategy:
    def strategy(data: dict[str, Any]) -> Iterator[ConversationTurn]:
        return iter_flat_messages(data.get(key), FLAT_CONTENT_KEYS)

    return strategy


STRATEGIES: list[tuple[str, TurnStrategy]] = [
    ("conversations", _iter_conversations),
    ("requests", _iter_requests),
    ("messages", _flat("messages")),
    ("history", _flat("history")),
    ("entries", _flat("entries")),
]


def _resolve_project(path: Path) -> tuple[str | None, str]:
    """Resolve the workspace folder of a session stored under workspaceStorage."""
    hash_dir = path.parent.parent
    if path.parent.name in WORKSPACE_SUBDIRS and hash_dir.parent.name == "workspaceStorage":
        project_path = workspace_folder(hash_dir)
        if project_path:
            return project_path, Path(project_path).name
    return None, path.parent.name
