"""Canonical session models for sessionscan.

Every adapter, whatever the on-disk format of its tool (JSON Lines, nested
JSON, Markdown, SQLite key-value rows), normalizes into the models defined
here. They are transient: rebuilt from the files on every call and never
persisted.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Role = Literal["human", "assistant"]


class ConversationTurn(BaseModel):
    """One normalized utterance, in the order it appears in the source file."""

    role: Role
    content: str = Field(min_length=1)
    timestamp: datetime | None = None


class SessionSummary(BaseModel):
    """Lightweight descriptor of one discovered transcript.

    Built without keeping the full conversation around, so listing many
    sessions stays cheap. ``human_message_count + ai_message_count`` is a
    best-effort ``message_count``.
    """

    # Identity
    id: str
    source: str
    file_path: str

    # Project
    project: str
    project_path: str | None = None
    project_description: str | None = None

    # Preview
    title: str
    preview: str = ""

    # Counts
    message_count: int = 0
    human_message_count: int = 0
    ai_message_count: int = 0

    # File metadata
    modified_at: datetime
    size_bytes: int = 0

    @field_validator("modified_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are taken as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ParsedSession(SessionSummary):
    """A session summary plus its full, ordered turn sequence."""

    turns: list[ConversationTurn] = Field(default_factory=list)


class ScannerStatus(BaseModel):
    """Availability report for one registered scanner."""

    name: str
    source: str
    description: str
    available: bool
    dirs: list[str] = Field(default_factory=list)
    error: str | None = None
