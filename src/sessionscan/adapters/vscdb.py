"""Helpers for VS Code style editor storage.

VS Code forks (Cursor, Windsurf) keep state in ``state.vscdb`` SQLite
databases, either the ``ItemTable`` key-value table or Cursor's
``cursorDiskKV``, with JSON encoded values. Each workspace hash directory
also carries a ``workspace.json`` naming the opened folder.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sessionscan.fs_utils import file_uri_to_path, safe_read_json

logger = logging.getLogger(__name__)

STATE_DB_NAME = "state.vscdb"


@contextmanager
def connect_readonly(db_path: str | Path) -> Iterator[sqlite3.Connection]:
    """Open a read-only connection to a state database.

    The editor may hold the database open, so the connection never writes
    and waits briefly for locks.

    Yields:
        SQLite connection with row factory set.
    """
    uri = Path(db_path).resolve().as_uri() + "?mode=ro"
    conn = sqlite3.connect(uri, uri=True, timeout=5.0)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def decode_value(value: Any) -> Any | None:
    """Decode a JSON column value stored as text or blob."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return None


def read_item_json(db_path: str | Path, key: str, table: str = "ItemTable") -> Any | None:
    """Read and decode one JSON value by key.

    Returns:
        The decoded value, or None if the database, table or key is missing
        or the value is not JSON.
    """
    try:
        with connect_readonly(db_path) as conn:
            row = conn.execute(f"SELECT value FROM {table} WHERE key = ?", (key,)).fetchone()
    except sqlite3.Error as e:
        logger.warning("Cannot read %s from %s: %s", key, db_path, e)
        return None
    return decode_value(row["value"]) if row else None


def workspace_folder(hash_dir: Path) -> str | None:
    """Local path of the folder a workspace storage directory belongs to."""
    workspace = safe_read_json(hash_dir / "workspace.json")
    if isinstance(workspace, dict) and isinstance(workspace.get("folder"), str):
        return file_uri_to_path(workspace["folder"])
    return None
