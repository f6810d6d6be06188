"""Base scanner interface for session sources."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from itertools import islice
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator

from sessionscan.fs_utils import extract_project_description, safe_stats
from sessionscan.models import ConversationTurn, ParsedSession, SessionSummary
from sessionscan.platforms import resolve_paths

logger = logging.getLogger(__name__)

# Files smaller than this hold no real conversation
MIN_FILE_BYTES = 100
PREVIEW_CHARS = 200
TITLE_CHARS = 80

# Shape errors from a drifted file format; the file is skipped
FORMAT_ERRORS = (ValueError, TypeError, KeyError, AttributeError, IndexError)


class SessionScanner(ABC):
    """Base class for all session scanners.

    A scanner knows where one tool stores its transcripts on each platform,
    how to summarize a transcript cheaply for listing, and how to decode it
    fully on demand. ``scan`` and ``parse`` never raise for a bad file: the
    file is skipped (``scan``) or reported as ``None`` (``parse``).
    """

    def __init__(
        self,
        extra_dirs: Iterable[str | Path] | None = None,
        max_files: int | None = None,
    ) -> None:
        """Initialize the scanner.

        Args:
            extra_dirs: Additional directories to search besides the
                platform defaults.
            max_files: Stop after examining this many files per scan. None or
                0 means unbounded.
        """
        self.extra_dirs = [Path(d).expanduser() for d in extra_dirs or []]
        self.max_files = max_files or None

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name (e.g., 'Claude Code')."""
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Source identifier (e.g., 'claude-code')."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @abstractmethod
    def candidate_dirs(self) -> list[Path]:
        """Platform-conditioned directories where the tool may keep sessions."""
        ...

    @abstractmethod
    def iter_session_files(self) -> Iterator[Path]:
        """Yield candidate session files in enumeration order."""
        ...

    @abstractmethod
    def summarize(self, path: Path) -> SessionSummary | None:
        """Build a summary for one file, or None if it does not qualify."""
        ...

    @abstractmethod
    def parse_file(self, path: Path, max_turns: int | None) -> ParsedSession | None:
        """Decode one file into a ParsedSession with at most max_turns turns."""
        ...

    def get_session_dirs(self) -> list[Path]:
        """Return the candidate directories that exist on this machine."""
        return resolve_paths([*self.candidate_dirs(), *self.extra_dirs])

    def scan(self, limit: int) -> list[SessionSummary]:
        """Summarize up to ``limit`` sessions, newest first.

        Args:
            limit: Maximum number of summaries to return.

        Returns:
            Summaries sorted by modification time, descending.
        """
        return sort_summaries(self.collect_summaries())[: max(limit, 0)]

    def collect_summaries(self) -> list[SessionSummary]:
        """Summarize every qualifying session file, in enumeration order."""
        summaries: list[SessionSummary] = []
        seen: set[Path] = set()

        for path in self.iter_session_files():
            if path in seen:
                continue
            if self.max_files is not None and len(seen) >= self.max_files:
                logger.debug("%s: stopping after %d files", self.source_type, self.max_files)
                break
            seen.add(path)
            summaries.extend(self._summarize_safely(path))

        return summaries

    def summarize_many(self, path: Path) -> list[SessionSummary]:
        """Summaries for every session stored in one file.

        Most tools write one session per file; database-backed sources
        override this.
        """
        summary = self.summarize(path)
        return [summary] if summary is not None else []

    def parse(self, file_path: str | Path, max_turns: int | None = None) -> ParsedSession | None:
        """Decode a session file into its ordered turns.

        Args:
            file_path: Path returned in ``SessionSummary.file_path``.
            max_turns: Stop after this many turns. None means all turns.

        Returns:
            The parsed session, or None if no turn could be extracted.
        """
        if max_turns is not None:
            max_turns = max(max_turns, 0)
        try:
            parsed = self.parse_file(Path(file_path), max_turns)
        except FORMAT_ERRORS as e:
            logger.debug("%s: cannot parse %s: %s", self.source_type, file_path, e)
            return None
        if parsed is None or not parsed.turns:
            return None
        return parsed

    def _summarize_safely(self, path: Path) -> list[SessionSummary]:
        try:
            return self.summarize_many(path)
        except FORMAT_ERRORS as e:
            logger.debug("%s: skipping %s: %s", self.source_type, path, e)
            return []

    def build_session(
        self,
        file_path: str | Path,
        turns: list[ConversationTurn],
        *,
        project: str,
        fallback_title: str,
        project_path: str | None = None,
        title: str | None = None,
        preview: str | None = None,
        session_id: str | None = None,
        modified_at: datetime | None = None,
        size_bytes: int | None = None,
        include_turns: bool = False,
    ) -> SessionSummary:
        """Assemble a SessionSummary (or ParsedSession) from extracted turns.

        Args:
            file_path: Source file, or a virtual path for database-backed sources.
            turns: Turns extracted from the file, in order.
            project: Human-readable project name.
            fallback_title: Title used when neither ``title`` nor a preview exists.
            project_path: Originating project directory, when known.
            title: Explicit title recorded by the tool.
            preview: Preview text. Defaults to the first human turn.
            session_id: Defaults to the file name without its extension.
            modified_at: Defaults to the file's mtime.
            size_bytes: Defaults to the file's size.
            include_turns: Return a ParsedSession carrying ``turns``.
        """
        human_count, ai_count = count_roles(turns)
        if preview is None:
            preview = first_human_text(turns)
        preview = preview[:PREVIEW_CHARS]

        if modified_at is None or size_bytes is None:
            stats = safe_stats(file_path)
            if modified_at is None:
                modified_at = (
                    datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc)
                    if stats
                    else datetime.now(timezone.utc)
                )
            if size_bytes is None:
                size_bytes = stats.st_size if stats else 0

        fields: dict[str, Any] = {
            "id": session_id or session_id_from_path(file_path),
            "source": self.source_type,
            "file_path": str(file_path),
            "project": project,
            "project_path": project_path,
            "project_description": extract_project_description(project_path),
            "title": (title or preview[:TITLE_CHARS] or fallback_title)[:TITLE_CHARS],
            "preview": preview,
            "message_count": len(turns),
            "human_message_count": human_count,
            "ai_message_count": ai_count,
            "modified_at": modified_at,
            "size_bytes": size_bytes,
        }
        if include_turns:
            return ParsedSession(**fields, turns=turns)
        return SessionSummary(**fields)


def sort_summaries(summaries: Iterable[SessionSummary]) -> list[SessionSummary]:
    """Sort newest first; equal timestamps are ordered by source, then id."""
    by_identity = sorted(summaries, key=lambda s: (s.source, s.id))
    return sorted(by_identity, key=lambda s: s.modified_at, reverse=True)


def session_id_from_path(path: str | Path) -> str:
    """Session id derived from the file name without its extension."""
    return Path(path).stem


def count_roles(turns: Iterable[ConversationTurn]) -> tuple[int, int]:
    """Return (human, assistant) turn counts."""
    human = ai = 0
    for turn in turns:
        if turn.role == "human":
            human += 1
        else:
            ai += 1
    return human, ai


def first_human_text(
    turns: Iterable[ConversationTurn],
    skip_prefixes: tuple[str, ...] = (),
    search_limit: int | None = None,
) -> str:
    """Find the first human turn usable as a preview.

    Args:
        turns: Turns in order.
        skip_prefixes: Human turns starting with any of these are boilerplate.
        search_limit: Only look at this many human turns.

    Returns:
        The turn's content, or an empty string.
    """
    examined = 0
    for turn in turns:
        if turn.role != "human":
            continue
        if search_limit is not None and examined >= search_limit:
            break
        examined += 1
        text = turn.content.strip()
        if text and not text.startswith(skip_prefixes):
            return text
    return ""


def make_turn(
    role: str, content: Any, timestamp: datetime | None = None
) -> ConversationTurn | None:
    """Build a turn, or None when the content is not non-blank text."""
    if not isinstance(content, str) or not content.strip():
        return None
    return ConversationTurn(
        role="human" if role == "human" else "assistant",
        content=content,
        timestamp=timestamp,
    )


def is_human_role(role: Any) -> bool:
    return role in ("user", "human")


def text_from_parts(content: Any, part_types: tuple[str, ...] | None = ("text",)) -> str:
    """Flatten message content into text.

    Args:
        content: A string, or a list of typed content blocks.
        part_types: Block types whose ``text`` is kept. None keeps every
            block that has text.

    Returns:
        The concatenated text, blocks joined by newlines.
    """
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    texts = []
    for block in content:
        if isinstance(block, str):
            texts.append(block)
            continue
        if not isinstance(block, dict):
            continue
        if part_types is not None and block.get("type") not in part_types:
            continue
        text = block.get("text")
        if isinstance(text, str) and text:
            texts.append(text)
    return "\n".join(texts)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO string or a Unix timestamp (seconds or milliseconds)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


TurnStrategy = Callable[[dict[str, Any]], Iterator[ConversationTurn]]


def extract_first_strategy(
    data: dict[str, Any],
    strategies: list[tuple[str, TurnStrategy]],
    max_turns: int | None = None,
) -> tuple[str | None, list[ConversationTurn]]:
    """Run extraction strategies in order; the first that yields turns wins.

    Args:
        data: Decoded session document.
        strategies: (name, strategy) pairs in priority order.
        max_turns: Stop each strategy after this many turns.

    Returns:
        The winning strategy's name and its turns, or (None, []).
    """
    for strategy_name, strategy in strategies:
        turns = list(islice(strategy(data), max_turns))
        if turns:
            return strategy_name, turns
    return None, []


def iter_flat_messages(items: Any, content_keys: tuple[str, ...]) -> Iterator[ConversationTurn]:
    """Turns from a flat list of ``{role, <content key>: str}`` objects.

    The first truthy content key is used; messages whose content is not text
    are skipped.
    """
    if not isinstance(items, list):
        return
    for item in items:
        if not isinstance(item, dict):
            continue
        content = next((item[key] for key in content_keys if item.get(key)), None)
        turn = make_turn(
            "human" if is_human_role(item.get("role")) else "assistant",
            content,
            parse_timestamp(item.get("timestamp")),
        )
        if turn is not None:
            yield turn


def iter_chat_requests(requests: Any) -> Iterator[ConversationTurn]:
    """Turns from VS Code style chat sessions: ``[{message, response}]``.

    ``message`` is a string or ``{text}``; ``response`` is a string or a list
    of strings / ``{value}`` / ``{text}`` fragments that are concatenated.
    """
    if not isinstance(requests, list):
        return
    for request in requests:
        if not isinstance(request, dict):
            continue

        message = request.get("message")
        if isinstance(message, dict):
            message = message.get("text")
        human = make_turn("human", message, parse_timestamp(request.get("timestamp")))
        if human is not None:
            yield human

        response = request.get("response")
        if isinstance(response, list):
            fragments = []
            for fragment in response:
                if isinstance(fragment, str):
                    fragments.append(fragment)
                elif isinstance(fragment, dict):
                    value = fragment.get("value") or fragment.get("text")
                    if isinstance(value, str):
                        fragments.append(value)
            response = "".join(fragments)
        if isinstance(response, str):
            assistant = make_turn("assistant", response.strip())
            if assistant is not None:
                yield assistant
