"""Cursor session scanner.

Cursor has stored conversations in three places over its releases:

- Agent transcripts (plain text with ``<user_query>`` tags):
  ~/.cursor/projects/<project>/agent-transcripts/*.txt
- Chat sessions (VS Code style JSON, older releases):
  <app-data>/Cursor/User/workspaceStorage/<hash>/chatSessions/*.json
- Composer sessions in the global state database (newer releases):
  <app-data>/Cursor/User/globalStorage/state.vscdb

The global database keeps composer metadata under ``composerData:<id>``
(with ``fullConversationHeadersOnly`` giving bubble order and type, 1 = user,
2 = AI) and message bodies under ``bubbleId:<composer id>:<bubble id>`` in the
``cursorDiskKV`` table. Composer sessions are addressed by the virtual path
``vscdb:<db path>|<composer id>``.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from pathlib import Path
from typing import Any, Iterator

from sessionscan.adapters.base import (
    FORMAT_ERRORS,
    MIN_FILE_BYTES,
    SessionScanner,
    first_human_text,
    iter_chat_requests,
    make_turn,
    parse_timestamp,
)
from sessionscan.adapters.vscdb import (
    STATE_DB_NAME,
    connect_readonly,
    decode_value,
    workspace_folder,
)
from sessionscan.fs_utils import (
    decode_dir_name_to_path,
    list_dirs,
    list_files,
    safe_read_file,
    safe_read_json,
    safe_stats,
)
from sessionscan.models import ConversationTurn, ParsedSession, SessionSummary
from sessionscan.platforms import get_app_data_dir, get_home

logger = logging.getLogger(__name__)

VIRTUAL_PREFIX = "vscdb:"
SESSION_SEP = "|"
COMPOSER_PROJECT = "Cursor Composer"

USER_QUERY_RE = re.compile(r"<user_query>\n?(.*?)\n?</user_query>", re.DOTALL)
USER_BLOCK_RE = re.compile(r"^user:\s*$", re.MULTILINE)
ASSISTANT_MARKER_RE = re.compile(r"^\s*\n\s*A:\s*\n?")

# fullConversationHeadersOnly bubble type; every other type is the AI
USER_BUBBLE = 1


class CursorScanner(SessionScanner):
    """Scanner for Cursor transcripts, chat sessions and composer sessions."""

    @property
    def name(self) -> str:
        return "Cursor"

    @property
    def source_type(self) -> str:
        return "cursor"

    @property
    def description(self) -> str:
        return "Cursor AI IDE sessions (agent transcripts + chat sessions + composer)"

    def candidate_dirs(self) -> list[Path]:
        user_dir = get_app_data_dir() / "Cursor" / "User"
        return [
            get_home() / ".cursor" / "projects",
            user_dir / "workspaceStorage",
            user_dir / "globalStorage",
        ]

    def iter_session_files(self) -> Iterator[Path]:
        for base_dir in self.get_session_dirs():
            # composer sessions are read in collect_summaries
            if base_dir.name == "globalStorage":
                continue
            for project_dir in list_dirs(base_dir):
                yield from list_files(project_dir / "agent-transcripts", [".txt"])
                yield from list_files(project_dir / "chatSessions", [".json"])

    def collect_summaries(self) -> list[SessionSummary]:
        summaries = super().collect_summaries()
        seen_ids = {summary.id for summary in summaries}

        db_path = self._global_db()
        if db_path is not None:
            for summary in self._composer_summaries(db_path):
                if summary.id not in seen_ids:
                    seen_ids.add(summary.id)
                    summaries.append(summary)
        return summaries

    def summarize(self, path: Path) -> SessionSummary | None:
        stats = safe_stats(path)
        if stats is None or stats.st_size < MIN_FILE_BYTES:
            return None

        if path.suffix == ".txt":
            content = safe_read_file(path)
            if not content or not USER_QUERY_RE.search(content):
                return None
            turns = list(iter_transcript_turns(content))
            session_id = None
        else:
            data = safe_read_json(path)
            if not isinstance(data, dict) or not data.get("requests"):
                return None
            turns = list(iter_chat_requests(data["requests"]))
            session_id = data.get("sessionId") if isinstance(data.get("sessionId"), str) else None

        if not turns:
            return None

        project_path, project = _resolve_project(path)
        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            session_id=session_id,
            fallback_title=f"Cursor session in {project}",
        )

    def parse_file(self, path: Path, max_turns: int | None) -> ParsedSession | None:
        if str(path).startswith(VIRTUAL_PREFIX):
            return self._parse_composer(str(path), max_turns)

        if path.suffix == ".txt":
            content = safe_read_file(path)
            if not content:
                return None
            turns = list(iter_transcript_turns(content))
            session_id = None
        else:
            data = safe_read_json(path)
            if not isinstance(data, dict):
                return None
            turns = list(iter_chat_requests(data.get("requests")))
            session_id = data.get("sessionId") if isinstance(data.get("sessionId"), str) else None

        if max_turns is not None:
            turns = turns[:max_turns]

        project_path, project = _resolve_project(path)
        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            session_id=session_id,
            fallback_title="Cursor session",
            include_turns=True,
        )

    def _global_db(self) -> Path | None:
        for base_dir in self.get_session_dirs():
            if base_dir.name == "globalStorage" and (base_dir / STATE_DB_NAME).is_file():
                return base_dir / STATE_DB_NAME
        return None

    def _composer_summaries(self, db_path: Path) -> list[SessionSummary]:
        summaries: list[SessionSummary] = []
        try:
            with connect_readonly(db_path) as conn:
                rows = conn.execute(
                    "SELECT key, value FROM cursorDiskKV WHERE key LIKE 'composerData:%'"
                ).fetchall()
                for row in rows:
                    if self.max_files is not None and len(summaries) >= self.max_files:
                        break
                    try:
                        summary = self._composer_session(conn, db_path, row["key"], row["value"])
                    except FORMAT_ERRORS as e:
                        logger.debug("cursor: skipping %s: %s", row["key"], e)
                        continue
                    if summary is not None:
                        summaries.append(summary)
        except sqlite3.Error as e:
            logger.warning("Cannot read Cursor composer sessions from %s: %s", db_path, e)
        return summaries

    def _composer_session(
        self,
        conn: sqlite3.Connection,
        db_path: Path | str,
        key: str,
        value: Any,
        max_turns: int | None = None,
        include_turns: bool = False,
    ) -> SessionSummary | None:
        data = decode_value(value)
        if not isinstance(data, dict):
            return None
        headers = data.get("fullConversationHeadersOnly")
        if not isinstance(headers, list) or not headers:
            return None

        composer_id = data.get("composerId") or key.removeprefix("composerData:")
        turns = load_composer_turns(conn, composer_id, headers)
        if max_turns is not None:
            turns = turns[:max_turns]
        if not turns:
            return None

        name = data.get("name") if isinstance(data.get("name"), str) else None
        return self.build_session(
            f"{VIRTUAL_PREFIX}{db_path}{SESSION_SEP}{composer_id}",
            turns,
            project=COMPOSER_PROJECT,
            title=name,
            preview=name or first_human_text(turns),
            session_id=composer_id,
            modified_at=parse_timestamp(data.get("lastUpdatedAt") or data.get("createdAt")),
            size_bytes=len(value) if isinstance(value, (str, bytes)) else 0,
            fallback_title="Cursor composer session",
            include_turns=include_turns,
        )

    def _parse_composer(self, virtual_path: str, max_turns: int | None) -> ParsedSession | None:
        location = virtual_path.removeprefix(VIRTUAL_PREFIX)
        db_path, sep, composer_id = location.rpartition(SESSION_SEP)
        if not sep or not db_path or not composer_id:
            return None

        key = f"composerData:{composer_id}"
        try:
            with connect_readonly(db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM cursorDiskKV WHERE key = ?", (key,)
                ).fetchone()
                if row is None:
                    return None
                return self._composer_session(
                    conn, db_path, key, row["value"], max_turns=max_turns, include_turns=True
                )
        except sqlite3.Error as e:
            logger.warning("Cannot read Cursor composer %s from %s: %s", composer_id, db_path, e)
            return None


def iter_transcript_turns(content: str) -> Iterator[ConversationTurn]:
    """Turns from an agent transcript.

    Each ``user:`` block holds a ``<user_query>`` followed by the agent's
    reply, optionally introduced by an ``A:`` line.
    """
    for block in USER_BLOCK_RE.split(content):
        if not block.strip():
            continue

        match = USER_QUERY_RE.search(block)
        if match:
            human = make_turn("human", match.group(1).strip())
            if human is not None:
                yield human

        _, closed, reply = block.partition("</user_query>")
        if closed:
            assistant = make_turn("assistant", ASSISTANT_MARKER_RE.sub("", reply, count=1).strip())
            if assistant is not None:
                yield assistant


def load_composer_turns(
    conn: sqlite3.Connection,
    composer_id: str,
    headers: list[Any],
) -> list[ConversationTurn]:
    """Load a composer's bubbles in header order.

    Bubbles missing from the database are skipped. An AI bubble without text
    (tool calls only) is kept as a placeholder turn.
    """
    prefix = f"bubbleId:{composer_id}:"
    rows = conn.execute(
        "SELECT key, value FROM cursorDiskKV WHERE key LIKE ?",
        (f"{prefix}%",),
    ).fetchall()
    bubbles = {row["key"].removeprefix(prefix): decode_value(row["value"]) for row in rows}

    turns: list[ConversationTurn] = []
    for header in headers:
        if not isinstance(header, dict):
            continue
        bubble = bubbles.get(header.get("bubbleId"))
        if not isinstance(bubble, dict):
            continue

        text = next(
            (
                bubble[k]
                for k in ("text", "message", "rawText")
                if isinstance(bubble.get(k), str) and bubble[k].strip()
            ),
            "",
        )
        if header.get("type") == USER_BUBBLE:
            turns.append(ConversationTurn(role="human", content=text or "(empty)"))
        else:
            turns.append(ConversationTurn(role="assistant", content=text or "(AI response)"))
    return turns


def _resolve_project(path: Path) -> tuple[str | None, str]:
    """Project of a transcript or chat session from its project directory."""
    project_dir = path.parent.parent
    project_path = workspace_folder(project_dir)
    if not project_path and project_dir.name.startswith(("Users-", "home-")):
        project_path = decode_dir_name_to_path(project_dir.name)
    if project_path:
        return project_path, Path(project_path).name
    return None, project_dir.name
