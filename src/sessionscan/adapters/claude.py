"""Claude Code session scanner.

Claude Code stores sessions in ~/.claude/projects/<project>/<session>.jsonl,
where <project> is the working directory with every separator replaced by '-'
(e.g. '-Users-foo-code-myapp'). Each line is a JSON object:

    type: "user" | "assistant" | "system" | "summary" | "file-history-snapshot" | ...
    message: {role, content: str | [{type: "text", text: "..."}, {type: "tool_use", ...}]}
    cwd: "/Users/foo/code/myapp"   (on most lines)

Only "user" and "assistant" lines carry conversation content.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

from sessionscan.adapters.base import (
    SessionScanner,
    first_human_text,
    make_turn,
    parse_timestamp,
    text_from_parts,
)
from sessionscan.fs_utils import decode_dir_name_to_path, list_dirs, list_files, read_jsonl
from sessionscan.models import ConversationTurn, ParsedSession, SessionSummary
from sessionscan.platforms import get_home

MIN_LINES = 3

# Human messages that are CLI plumbing rather than something the user typed
PREVIEW_SKIP_PREFIXES = (
    "<local-command-caveat>",
    "<environment_context>",
    "<command-name>",
)
PREVIEW_SEARCH_LIMIT = 8


class ClaudeCodeScanner(SessionScanner):
    """Scanner for Claude Code JSONL transcripts."""

    @property
    def name(self) -> str:
        return "Claude Code"

    @property
    def source_type(self) -> str:
        return "claude-code"

    @property
    def description(self) -> str:
        return "Claude Code CLI sessions (~/.claude/projects/)"

    def candidate_dirs(self) -> list[Path]:
        return [get_home() / ".claude" / "projects"]

    def iter_session_files(self) -> Iterator[Path]:
        for base_dir in self.get_session_dirs():
            for project_dir in list_dirs(base_dir):
                for path in list_files(project_dir, [".jsonl"]):
                    # agent-*.jsonl are subagent sidechains of a parent session
                    if path.name.startswith("agent-"):
                        continue
                    yield path

    def summarize(self, path: Path) -> SessionSummary | None:
        lines = read_jsonl(path)
        if len(lines) < MIN_LINES:
            return None

        turns = list(_iter_turns(lines))
        project_path, project = _resolve_project(lines, path)
        preview = first_human_text(turns, PREVIEW_SKIP_PREFIXES, PREVIEW_SEARCH_LIMIT)

        return self.build_session(
            path,
            turns,
            project=project,
            project_path=project_path,
            preview=preview,
            fallback_title=f"Claude session in {project}",
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
            fallback_title="Claude session",
            include_turns=True,
        )


def _iter_turns(lines: list[Any]) -> Iterator[ConversationTurn]:
    for line in lines:
        if not isinstance(line, dict):
            continue
        line_type = line.get("type")
        if line_type not in ("user", "assistant"):
            continue

        message = line.get("message")
        if not isinstance(message, dict):
            continue

        turn = make_turn(
            "human" if line_type == "user" else "assistant",
            text_from_parts(message.get("content")),
            parse_timestamp(line.get("timestamp")),
        )
        if turn is not None:
            yield turn


def _resolve_project(lines: list[Any], path: Path) -> tuple[str | None, str]:
    """Find the project path and name for a session file.

    Prefers the first recorded ``cwd``; otherwise decodes the encoded project
    directory name against the local filesystem.
    """
    dir_name = path.parent.name
    project_path: str | None = None

    for line in lines:
        if isinstance(line, dict) and isinstance(line.get("cwd"), str) and line["cwd"]:
            project_path = line["cwd"]
            break

    if project_path is None and dir_name.startswith("-"):
        project_path = decode_dir_name_to_path(dir_name)

    project = Path(project_path).name if project_path else dir_name
    return project_path, project or dir_name
