"""Codex CLI session scanner.

OpenAI Codex CLI stores sessions as JSONL files in date-based directories:

    $CODEX_HOME/sessions/YYYY/MM/DD/rollout-*.jsonl
    $CODEX_HOME/archived_sessions/rollout-*.jsonl

($CODEX_HOME defaults to ~/.codex on every platform.)

Two line formats are supported:
1. Legacy format: direct JSON lines with 'type: message', 'role', 'content'
2. Modern format: wrapped in 'type/payload', where conversation messages are
   'response_item' records whose payload has 'type: message'
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterator

from sessionscan.adapters.base import SessionScanner, make_turn, parse_timestamp, text_from_parts
from sessionscan.fs_utils import list_files, read_jsonl
from sessionscan.models import ConversationTurn, ParsedSession, SessionSummary
from sessionscan.platforms import get_home

MIN_LINES = 3

# User messages injected by the CLI (AGENTS.md, sandbox context), not typed by the user
INJECTED_PREFIXES = (
    "# AGENTS.md",
    "<environment_context>",
    "<user_instructions>",
    "<permissions",
    "<app-context>",
    "<collaboration_mode>",
)


def get_codex_home() -> Path:
    """Return the Codex home directory, respecting the CODEX_HOME override."""
    env_home = os.environ.get("CODEX_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return get_home() / ".codex"


class CodexScanner(SessionScanner):
    """Scanner for OpenAI Codex CLI sessions."""

    @property
    def name(self) -> str:
        return "Codex (OpenAI CLI)"

    @property
    def source_type(self) -> str:
        return "codex"

    @property
    def description(self) -> str:
        return "OpenAI Codex CLI sessions (~/.codex/)"

    def candidate_dirs(self) -> list[Path]:
        codex_home = get_codex_home()
        return [codex_home / "sessions", codex_home / "archived_sessions"]

    def iter_session_files(self) -> Iterator[Path]:
        for base_dir in self.get_session_dirs():
            yield from list_files(base_dir, [".jsonl"], recursive=True)

    def summarize(self, path: Path) -> SessionSummary | None:
        lines = read_jsonl(path)
        if len(lines) < MIN_LINES:
            return None

        turns = list(_iter_turns(lines))
        if not turns:
            return None

        project_path, project = _resolve_project(lines, path)
        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            fallback_title="Codex session",
        )

    def parse_file(self, path: Path, max_turns: int | None) -> ParsedSession | None:
        lines = read_jsonl(path)
        if not lines:
            return None

        turns: list[ConversationTurn] = []
        for turn in _iter_turns(lines):
            if max_turns is not None and len(turns) >= max_turns:
                break
            turns.append(turn)

        project_path, project = _resolve_project(lines, path)
        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            fallback_title="Codex session",
            include_turns=True,
        )


def _message_payload(line: dict[str, Any]) -> dict[str, Any] | None:
    """Return the message object of a line in either format, if it has one."""
    payload = line.get("payload")
    if isinstance(payload, dict):
        return payload if payload.get("type") == "message" else None
    # Legacy format
    if line.get("type") == "message":
        return line
    return None


def _iter_turns(lines: list[Any]) -> Iterator[ConversationTurn]:
    """Extract conversation turns from Codex JSONL lines.

    Developer/system messages and CLI-injected user messages are dropped.
    """
    for line in lines:
        if not isinstance(line, dict):
            continue
        message = _message_payload(line)
        if message is None:
            continue

        role = message.get("role")
        # developer/system messages carry AGENTS.md instructions, not conversation
        if role in ("developer", "system"):
            continue

        content = text_from_parts(message.get("content"), part_types=None).strip()
        if not content:
            continue
        if role == "user" and content.startswith(INJECTED_PREFIXES):
            continue

        turn = make_turn(
            "human" if role == "user" else "assistant",
            content,
            parse_timestamp(line.get("timestamp")),
        )
        if turn is not None:
            yield turn


def _resolve_project(lines: list[Any], path: Path) -> tuple[str | None, str]:
    project_path: str | None = None
    for line in lines:
        if not isinstance(line, dict):
            continue
        payload = line.get("payload")
        if isinstance(payload, dict) and isinstance(payload.get("cwd"), str) and payload["cwd"]:
            project_path = payload["cwd"]
            break

    project = Path(project_path).name if project_path else path.parent.name
    return project_path, project
