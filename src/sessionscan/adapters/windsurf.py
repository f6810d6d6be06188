"""Windsurf (Codeium) Cascade chat scanner.

Windsurf keeps chat history inside each workspace's state database:

    <app-data>/Windsurf/User/workspaceStorage/<hash>/state.vscdb

The ``ItemTable`` key ``chat.ChatSessionStore.index`` holds
``{version, entries: {<session id>: {messages: [{role, content}]}}}``, so a
single database yields several sessions. Each one is addressed by the
virtual path ``<db path>|<session id>``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from sessionscan.adapters.base import SessionScanner, iter_flat_messages
from sessionscan.adapters.vscdb import STATE_DB_NAME, read_item_json, workspace_folder
from sessionscan.fs_utils import list_dirs, safe_stats
from sessionscan.models import ConversationTurn, ParsedSession, SessionSummary
from sessionscan.platforms import get_app_data_dir

MIN_TURNS = 2
CHAT_INDEX_KEY = "chat.ChatSessionStore.index"
CONTENT_KEYS = ("content", "text")
SESSION_SEP = "|"


class WindsurfScanner(SessionScanner):
    """Scanner for Windsurf Cascade chats stored in workspace databases."""

    @property
    def name(self) -> str:
        return "Windsurf"

    @property
    def source_type(self) -> str:
        return "windsurf"

    @property
    def description(self) -> str:
        return "Windsurf (Codeium) Cascade chat sessions (SQLite)"

    def candidate_dirs(self) -> list[Path]:
        return [get_app_data_dir() / "Windsurf" / "User" / "workspaceStorage"]

    def iter_session_files(self) -> Iterator[Path]:
        for base_dir in self.get_session_dirs():
            for hash_dir in list_dirs(base_dir):
                db_path = hash_dir / STATE_DB_NAME
                if db_path.is_file():
                    yield db_path

    def summarize(self, path: Path) -> SessionSummary | None:
        summaries = self.summarize_many(path)
        return summaries[0] if summaries else None

    def summarize_many(self, path: Path) -> list[SessionSummary]:
        entries = _read_entries(path)
        if not entries:
            return []

        modified_at = _mtime(path)
        size_bytes = _size(path)
        project_path, project = _resolve_project(path)

        summaries = []
        for session_id, entry in entries.items():
            turns = list(iter_entry_turns(entry))
            if len(turns) < MIN_TURNS:
                continue
            summaries.append(
                self.build_session(
                    f"{path}{SESSION_SEP}{session_id}",
                    turns,
                    project=project,
                    project_path=project_path,
                    fallback_title="Windsurf session",
                    session_id=session_id,
                    modified_at=modified_at,
                    size_bytes=size_bytes,
                )
            )
        return summaries

    def parse_file(self, path: Path, max_turns: int | None) -> ParsedSession | None:
        db_path, session_id = split_virtual_path(str(path))
        entries = _read_entries(Path(db_path))
        if not entries:
            return None

        if session_id is not None and session_id in entries:
            turns = list(iter_entry_turns(entries[session_id]))
        else:
            # no usable id: take the first entry that holds a conversation
            session_id, turns = None, []
            for entry_id, entry in entries.items():
                entry_turns = list(iter_entry_turns(entry))
                if len(entry_turns) >= MIN_TURNS:
                    session_id, turns = entry_id, entry_turns
                    break
        if session_id is None:
            return None
        if max_turns is not None:
            turns = turns[:max_turns]

        project_path, project = _resolve_project(Path(db_path))
        return self.build_session(
            f"{db_path}{SESSION_SEP}{session_id}",
            turns,
            project=project,
            project_path=project_path,
            fallback_title="Windsurf session",
            session_id=session_id,
            modified_at=_mtime(db_path),
            size_bytes=_size(db_path),
            include_turns=True,
        )


def split_virtual_path(file_path: str) -> tuple[str, str | None]:
    """Split ``<db path>|<session id>``; a plain path has no session id."""
    db_path, sep, session_id = file_path.rpartition(SESSION_SEP)
    if not sep or not db_path:
        return file_path, None
    return db_path, session_id or None


def iter_entry_turns(entry: Any) -> Iterator[ConversationTurn]:
    """Turns of one chat entry.

    Entries normally carry ``messages``; otherwise the first list-valued
    field that produces turns is used.
    """
    if not isinstance(entry, dict):
        return
    if isinstance(entry.get("messages"), list):
        yield from iter_flat_messages(entry["messages"], CONTENT_KEYS)
        return
    for value in entry.values():
        turns = list(iter_flat_messages(value, CONTENT_KEYS))
        if turns:
            yield from turns
            return


def _read_entries(db_path: Path) -> dict[str, Any]:
    index = read_item_json(db_path, CHAT_INDEX_KEY)
    if not isinstance(index, dict) or not isinstance(index.get("entries"), dict):
        return {}
    return index["entries"]


def _resolve_project(db_path: Path) -> tuple[str | None, str]:
    hash_dir = db_path.parent
    project_path = workspace_folder(hash_dir)
    if project_path:
        return project_path, Path(project_path).name
    return None, hash_dir.name


def _mtime(db_path: str | Path) -> datetime:
    stats = safe_stats(db_path)
    if stats is None:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc)


def _size(db_path: str | Path) -> int:
    stats = safe_stats(db_path)
    return stats.st_size if stats else 0
