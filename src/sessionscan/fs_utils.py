"""Non-throwing filesystem helpers shared by all adapters.

Every helper degrades instead of raising: a missing file, a permission error
or malformed JSON turns into ``None`` or an empty list, which is the expected
case on machines where most tools are not installed.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from sessionscan.platforms import Platform, get_platform

PathLike = str | os.PathLike

README_NAMES = ("README.md", "readme.md", "Readme.md", "README.rst")
MANIFEST_DESCRIPTION_RE = re.compile(r'description\s*=\s*"([^"]+)"')
DRIVE_LETTER_RE = re.compile(r"^[a-zA-Z]$")


def exists(path: PathLike) -> bool:
    try:
        return os.path.exists(path)
    except (OSError, ValueError):
        return False


def safe_stats(path: PathLike) -> os.stat_result | None:
    """Stat a file, returning None when it cannot be accessed."""
    try:
        return os.stat(path)
    except (OSError, ValueError):
        return None


def safe_read_file(path: PathLike) -> str | None:
    """Read a UTF-8 text file, returning None if it cannot be read.

    Undecodable bytes become U+FFFD, so a file cut mid-character while its
    tool is still appending keeps every complete line.
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read()
    except (OSError, ValueError):
        return None


def safe_read_json(path: PathLike) -> Any | None:
    """Read and decode a JSON document, returning None if it is unreadable or invalid."""
    content = safe_read_file(path)
    if not content:
        return None
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return None


def read_jsonl(path: PathLike) -> list[Any]:
    """Read a JSON Lines file.

    Malformed lines are dropped silently, so a truncated file still yields
    every record that was written completely.

    Args:
        path: Path to the JSONL file.

    Returns:
        Parsed values of the well-formed lines, in file order.
    """
    content = safe_read_file(path)
    if not content:
        return []

    entries: list[Any] = []
    # Only \n ends a record; U+2028 and U+0085 may appear raw inside strings
    for line in content.split("\n"):
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(json.loads(line))
        except json.JSONDecodeError:
            # Skip malformed lines
            continue
    return entries


def list_files(
    directory: PathLike,
    extensions: list[str] | tuple[str, ...] | None = None,
    recursive: bool = False,
) -> list[Path]:
    """List files in a directory, optionally filtered by suffix.

    Args:
        directory: Directory to list.
        extensions: Filename endings to keep (e.g. [".jsonl"]). None keeps all.
        recursive: Descend into subdirectories.

    Returns:
        Matching file paths sorted by name within each directory. Unreadable
        or missing directories contribute nothing.
    """
    results: list[Path] = []
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except (OSError, ValueError):
        return results

    for entry in entries:
        try:
            if entry.is_file():
                if extensions is None or entry.name.endswith(tuple(extensions)):
                    results.append(Path(entry.path))
            elif recursive and entry.is_dir(follow_symlinks=False):
                results.extend(list_files(entry.path, extensions, recursive=True))
        except OSError:
            continue
    return results


def list_dirs(directory: PathLike) -> list[Path]:
    """List the immediate subdirectories of a directory, sorted by name."""
    try:
        with os.scandir(directory) as it:
            return sorted(Path(e.path) for e in it if e.is_dir())
    except (OSError, ValueError):
        return []


def file_uri_to_path(uri: str) -> str | None:
    """Convert an editor ``file://`` folder URI into a filesystem path."""
    try:
        parsed = urlparse(uri)
    except ValueError:
        return None
    if parsed.scheme != "file" or not parsed.path:
        return None
    path = unquote(parsed.path)
    # file:///c%3A/Users/... on Windows
    if re.match(r"^/[a-zA-Z]:", path):
        path = path[1:]
    return path


def extract_project_description(project_path: PathLike | None) -> str | None:
    """Scrape a short description of a project from its manifest or README.

    Tries, in order: the ``description`` of ``package.json`` (200 chars), the
    first prose paragraph of a README (300 chars), then a ``description = "..."``
    entry in ``Cargo.toml`` or ``pyproject.toml`` (200 chars).

    Args:
        project_path: Root directory of the project.

    Returns:
        The description, or None if nothing qualifies.
    """
    if not project_path or not exists(project_path):
        return None
    root = Path(project_path)

    package = safe_read_json(root / "package.json")
    if isinstance(package, dict):
        description = package.get("description")
        if isinstance(description, str) and description:
            return description[:200]

    for readme_name in README_NAMES:
        content = safe_read_file(root / readme_name)
        if not content:
            continue
        description = _first_readme_paragraph(content)
        if len(description) > 10:
            return description[:300]

    for manifest_name in ("Cargo.toml", "pyproject.toml"):
        content = safe_read_file(root / manifest_name)
        if not content:
            continue
        match = MANIFEST_DESCRIPTION_RE.search(content)
        if match:
            return match.group(1)[:200]

    return None


def _first_readme_paragraph(content: str) -> str:
    description = ""
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped:
            if description:
                break
            continue
        if stripped.startswith(("#", "=", "-")):
            if description:
                break
            continue
        if stripped.startswith(("![", "<img")):
            continue
        description += (" " if description else "") + stripped
        if len(description) > 200:
            break
    return description


def decode_dir_name_to_path(dir_name: str) -> str | None:
    """Reconstruct a filesystem path from a hyphen-encoded directory name.

    Claude Code names project directories by replacing every path separator
    with ``-`` (``/Users/alice/my-cool-project`` becomes
    ``-Users-alice-my-cool-project``), which is lossy when the original path
    contains hyphens. The path is rebuilt greedily against the real
    filesystem: at each step the longest run of remaining tokens that exists
    on disk is taken as one segment; if no run exists, a single token is
    appended literally.

    The result is ambiguous when another hyphen-joined run also exists on
    disk: with both ``/tmp/x-y`` and ``/tmp/x/y-z`` present, ``-tmp-x-y-z``
    decodes to ``/tmp/x-y/z`` because the longest existing run always wins.

    On Windows a leading single-letter token is treated as a drive letter
    (``c-Users-PC-project`` becomes ``C:\\Users\\PC\\project``).

    Args:
        dir_name: The encoded directory name.

    Returns:
        The most plausible original path, or None for an empty name.
    """
    platform = get_platform()
    sep = "\\" if platform is Platform.WINDOWS else "/"
    stripped = dir_name[1:] if dir_name.startswith("-") else dir_name
    if not stripped:
        return None

    tokens = stripped.split("-")
    current = ""
    i = 0

    if platform is Platform.WINDOWS and DRIVE_LETTER_RE.match(tokens[0]):
        current = tokens[0].upper() + ":"
        i = 1

    while i < len(tokens):
        matched = 0
        for end in range(len(tokens), i, -1):
            candidate = current + sep + "-".join(tokens[i:end])
            if exists(candidate):
                current = candidate
                matched = end - i
                break

        if matched:
            i += matched
        else:
            current += sep + tokens[i]
            i += 1

    return current or None
