"""Session scanners for different AI coding tools."""

from __future__ import annotations

from sessionscan.adapters.aider import AiderScanner
from sessionscan.adapters.base import SessionScanner
from sessionscan.adapters.claude import ClaudeCodeScanner
from sessionscan.adapters.codex import CodexScanner
from sessionscan.adapters.continue_dev import ContinueDevScanner
from sessionscan.adapters.cursor import CursorScanner
from sessionscan.adapters.registry import ScannerRegistry
from sessionscan.adapters.vscode_copilot import VSCodeCopilotScanner
from sessionscan.adapters.windsurf import WindsurfScanner
from sessionscan.adapters.zed import ZedScanner
from sessionscan.config import Config

# Registration order; also the order of the status listing
SCANNER_CLASSES: list[type[SessionScanner]] = [
    ClaudeCodeScanner,
    CodexScanner,
    AiderScanner,
    ContinueDevScanner,
    VSCodeCopilotScanner,
    ZedScanner,
    CursorScanner,
    WindsurfScanner,
]


def create_default_registry(config: Config | None = None) -> ScannerRegistry:
    """Build a registry holding every enabled scanner.

    Args:
        config: Source and scan settings. Defaults to Config(), which enables
            every scanner with no extra directories.

    Returns:
        A new registry. Nothing is registered globally.
    """
    config = config or Config()
    registry = ScannerRegistry()
    for scanner_cls in SCANNER_CLASSES:
        scanner = scanner_cls(max_files=config.scan.max_files)
        if not config.is_source_enabled(scanner.source_type):
            continue
        scanner.extra_dirs = config.source(scanner.source_type).expanded_paths()
        registry.register(scanner)
    return registry


__all__ = [
    "AiderScanner",
    "ClaudeCodeScanner",
    "CodexScanner",
    "ContinueDevScanner",
    "CursorScanner",
    "SCANNER_CLASSES",
    "ScannerRegistry",
    "SessionScanner",
    "VSCodeCopilotScanner",
    "WindsurfScanner",
    "ZedScanner",
    "create_default_registry",
]
