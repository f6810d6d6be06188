"""Aider session scanner.

Aider keeps its history next to the project it ran in, plus a global copy:

    <project>/.aider.chat.history.md   (markdown chat log)
    <project>/.aider.input.history     (readline history of user input)
    ~/.aider/history/                  (global history)

Same paths on all platforms. Project roots can be added through the
``extra_dirs`` configuration.

Chat log format: each '#### ' line is a user message; everything up to the
next '#### ' line is the assistant's reply. Text before the first delimiter
(the '# aider chat started at ...' banner) is not part of the conversation.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator

from sessionscan.adapters.base import MIN_FILE_BYTES, SessionScanner, make_turn, parse_timestamp
from sessionscan.fs_utils import list_files, safe_read_file, safe_stats
from sessionscan.models import ConversationTurn, ParsedSession, SessionSummary
from sessionscan.platforms import get_home

USER_DELIMITER_RE = re.compile(r"^####\s+", re.MULTILINE)
INPUT_HISTORY_SUFFIX = ".aider.input.history"


class AiderScanner(SessionScanner):
    """Scanner for Aider markdown chat logs and input histories."""

    @property
    def name(self) -> str:
        return "Aider"

    @property
    def source_type(self) -> str:
        return "aider"

    @property
    def description(self) -> str:
        return "Aider AI pair programming sessions"

    def candidate_dirs(self) -> list[Path]:
        home = get_home()
        return [home / ".aider" / "history", home / ".aider"]

    def iter_session_files(self) -> Iterator[Path]:
        for base_dir in self.get_session_dirs():
            for path in list_files(base_dir, [".md", INPUT_HISTORY_SUFFIX], recursive=True):
                if "aider" in path.name:
                    yield path

    def summarize(self, path: Path) -> SessionSummary | None:
        stats = safe_stats(path)
        if stats is None or stats.st_size < MIN_FILE_BYTES:
            return None

        content = safe_read_file(path)
        if not content:
            return None

        turns = list(_iter_turns(path, content))
        if not any(turn.role == "human" for turn in turns):
            return None

        project_path, project = _resolve_project(path)
        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            fallback_title="Aider session",
        )

    def parse_file(self, path: Path, max_turns: int | None) -> ParsedSession | None:
        content = safe_read_file(path)
        if not content:
            return None

        turns: list[ConversationTurn] = []
        for turn in _iter_turns(path, content):
            if max_turns is not None and len(turns) >= max_turns:
                break
            turns.append(turn)

        project_path, project = _resolve_project(path)
        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            fallback_title="Aider session",
            include_turns=True,
        )


def _iter_turns(path: Path, content: str) -> Iterator[ConversationTurn]:
    if path.name.endswith(INPUT_HISTORY_SUFFIX):
        return iter_input_history_turns(content)
    return iter_markdown_turns(content)


def iter_markdown_turns(content: str) -> Iterator[ConversationTurn]:
    """Split an Aider chat log into alternating human/assistant turns."""
    blocks = USER_DELIMITER_RE.split(content)
    for block in blocks[1:]:
        first_line, _, rest = block.partition("\n")
        human = make_turn("human", first_line.strip())
        if human is None:
            continue
        yield human

        assistant = make_turn("assistant", rest.strip())
        if assistant is not None:
            yield assistant


def iter_input_history_turns(content: str) -> Iterator[ConversationTurn]:
    """Read an Aider readline history as human-only turns.

    Entries look like::

        # 2024-05-01 10:00:00.123456
        +first line of input
        +second line of input
    """
    timestamp = None
    lines: list[str] = []

    for raw in content.split("\n"):
        raw = raw.rstrip("\r")
        if raw.startswith("# "):
            turn = make_turn("human", "\n".join(lines), timestamp)
            if turn is not None:
                yield turn
            timestamp = parse_timestamp(raw[2:].strip())
            lines = []
        elif raw.startswith("+"):
            lines.append(raw[1:])

    turn = make_turn("human", "\n".join(lines), timestamp)
    if turn is not None:
        yield turn


def _resolve_project(path: Path) -> tuple[str | None, str]:
    # .aider.* dotfiles live in the root of the project they belong to
    if path.name.startswith(".aider"):
        return str(path.parent), path.parent.name
    return None, path.parent.name
