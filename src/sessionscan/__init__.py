"""
sessionscan - AI coding session discovery

Find and read the conversation transcripts that AI coding assistants (Claude
Code, Codex, Aider, Continue, Copilot Chat, Zed, Cursor, Windsurf) leave on
the local filesystem.
"""

__version__ = "0.1.0"

from sessionscan.adapters import SessionScanner, ScannerRegistry, create_default_registry
from sessionscan.config import Config, load_config
from sessionscan.models import (
    ConversationTurn,
    ParsedSession,
    ScannerStatus,
    SessionSummary,
)

__all__ = [
    "__version__",
    # Models
    "ConversationTurn",
    "SessionSummary",
    "ParsedSession",
    "ScannerStatus",
    # Config
    "Config",
    "load_config",
    # Scanners
    "SessionScanner",
    "ScannerRegistry",
    "create_default_registry",
]
