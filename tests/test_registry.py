"""Tests for the scanner registry and default assembly."""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator

from sessionscan.adapters import SCANNER_CLASSES, create_default_registry
from sessionscan.adapters.base import SessionScanner
from sessionscan.adapters.registry import ScannerRegistry
from sessionscan.config import Config, ScanConfig, SourceConfig
from sessionscan.models import ConversationTurn, ParsedSession, SessionSummary

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def summary(source: str, session_id: str, minutes: int) -> SessionSummary:
    return SessionSummary(
        id=session_id,
        source=source,
        file_path=f"/fake/{source}/{session_id}",
        project="p",
        title=session_id,
        message_count=2,
        human_message_count=1,
        ai_message_count=1,
        modified_at=BASE_TIME + timedelta(minutes=minutes),
        size_bytes=1,
    )


class FakeScanner(SessionScanner):
    """In-memory scanner returning canned summaries."""

    def __init__(self, source: str, sessions: list[SessionSummary], dirs=("/fake",)):
        super().__init__()
        self._source = source
        self._sessions = sessions
        self._dirs = [Path(d) for d in dirs]

    @property
    def name(self) -> str:
        return f"Fake {self._source}"

    @property
    def source_type(self) -> str:
        return self._source

    @property
    def description(self) -> str:
        return "fake"

    def candidate_dirs(self) -> list[Path]:
        return self._dirs

    def get_session_dirs(self) -> list[Path]:
        return self._dirs

    def iter_session_files(self) -> Iterator[Path]:
        return iter([])

    def collect_summaries(self) -> list[SessionSummary]:
        return list(self._sessions)

    def summarize(self, path: Path) -> SessionSummary | None:
        return None

    def parse_file(self, path: Path, max_turns: int | None) -> ParsedSession | None:
        turns = [ConversationTurn(role="human", content=str(path))]
        return ParsedSession(**summary(self._source, "parsed", 0).model_dump(), turns=turns)


class BrokenScanner(FakeScanner):
    """Scanner whose every entry point raises."""

    def __init__(self):
        super().__init__("broken", [])

    def get_session_dirs(self) -> list[Path]:
        raise PermissionError("denied")

    def scan(self, limit: int) -> list[SessionSummary]:
        raise RuntimeError("format changed")

    def parse(self, file_path, max_turns=None):
        raise KeyError("messages")


class NamelessScanner(FakeScanner):
    """Scanner whose identifying properties raise."""

    def __init__(self):
        super().__init__("nameless", [summary("nameless", "n1", 50)])

    @property
    def name(self) -> str:
        raise RuntimeError("no name")

    @property
    def source_type(self) -> str:
        raise RuntimeError("no source")


def make_registry() -> ScannerRegistry:
    return ScannerRegistry(
        [
            FakeScanner("alpha", [summary("alpha", "a1", 10), summary("alpha", "a2", 30)]),
            BrokenScanner(),
            FakeScanner("beta", [summary("beta", "b1", 20), summary("beta", "b2", 40)]),
        ]
    )


class TestScanAll:
    def test_merges_sorted_newest_first(self):
        sessions = make_registry().scan_all(10)
        assert [s.id for s in sessions] == ["b2", "a2", "b1", "a1"]

    def test_limit_keeps_most_recent(self):
        registry = make_registry()
        for limit in range(0, 6):
            sessions = registry.scan_all(limit)
            assert len(sessions) <= limit
            assert [s.id for s in sessions] == ["b2", "a2", "b1", "a1"][:limit]

    def test_negative_limit(self):
        assert make_registry().scan_all(-1) == []

    def test_source_filter(self):
        registry = make_registry()
        assert {s.source for s in registry.scan_all(10, source="beta")} == {"beta"}
        assert registry.scan_all(10, source="Beta") == []
        assert registry.scan_all(10, source="nope") == []

    def test_tie_break_by_source_then_id(self):
        registry = ScannerRegistry(
            [
                FakeScanner("zed", [summary("zed", "1", 0)]),
                FakeScanner("aider", [summary("aider", "b", 0), summary("aider", "a", 0)]),
            ]
        )
        assert [(s.source, s.id) for s in registry.scan_all(10)] == [
            ("aider", "a"),
            ("aider", "b"),
            ("zed", "1"),
        ]

    def test_broken_scanner_is_isolated_and_logged(self, caplog):
        with caplog.at_level(logging.ERROR, logger="sessionscan.adapters.registry"):
            sessions = make_registry().scan_all(10)

        assert len(sessions) == 4
        assert "Fake broken" in caplog.text
        assert "scan" in caplog.text

    def test_naive_timestamps_merge_with_aware_ones(self):
        drifted = SessionSummary(
            **summary("drifted", "d1", 0).model_dump(exclude={"modified_at"}),
            modified_at=datetime(2025, 1, 2),
        )
        registry = ScannerRegistry(
            [FakeScanner("good", [summary("good", "g1", 0)]), FakeScanner("drifted", [drifted])]
        )

        sessions = registry.scan_all(10)

        assert [s.id for s in sessions] == ["d1", "g1"]
        assert sessions[0].modified_at.tzinfo is not None

    def test_raising_properties_stay_inside_the_registry(self, caplog):
        registry = make_registry()
        registry.register(NamelessScanner())

        with caplog.at_level(logging.ERROR, logger="sessionscan.adapters.registry"):
            assert len(registry.scan_all(10, source="alpha")) == 2
            assert "n1" in [s.id for s in registry.scan_all(10)]
            assert registry.parse_session("/some/file", "alpha") is not None

        assert "NamelessScanner" in caplog.text


class TestParseSession:
    def test_dispatches_by_source(self):
        session = make_registry().parse_session("/some/file", "beta", max_turns=5)
        assert session.source == "beta"
        assert session.turns[0].content == str(Path("/some/file"))

    def test_unknown_source(self):
        assert make_registry().parse_session("/some/file", "nope") is None

    def test_broken_parse_is_none(self):
        assert make_registry().parse_session("/some/file", "broken") is None

    def test_real_scanner_missing_file(self, tmp_path):
        registry = create_default_registry()
        assert registry.parse_session(tmp_path / "missing.jsonl", "claude-code") is None


class TestScannerStatus:
    def test_reports_every_scanner(self):
        statuses = make_registry().list_scanner_status()

        assert [s.source for s in statuses] == ["alpha", "broken", "beta"]
        alpha, broken, beta = statuses
        assert alpha.available is True
        assert alpha.dirs == [str(Path("/fake"))]
        assert alpha.error is None
        assert broken.available is False
        assert broken.dirs == []
        assert broken.error == "denied"

    def test_raising_properties_are_reported(self):
        [status] = ScannerRegistry([NamelessScanner()]).list_scanner_status()

        assert status.name == "NamelessScanner"
        assert status.source == ""
        assert status.description == "fake"
        assert status.available is False
        assert status.error == "no name"

    def test_unavailable_when_no_dirs(self):
        [status] = ScannerRegistry([FakeScanner("x", [], dirs=())]).list_scanner_status()
        assert status.available is False


class TestCreateDefaultRegistry:
    def test_registers_every_scanner_in_order(self):
        registry = create_default_registry()
        assert [type(s) for s in registry.scanners()] == SCANNER_CLASSES
        assert [s.source_type for s in registry.scanners()] == [
            "claude-code",
            "codex",
            "aider",
            "continue",
            "vscode-copilot",
            "zed",
            "cursor",
            "windsurf",
        ]

    def test_registries_are_independent(self):
        first = create_default_registry()
        first.register(FakeScanner("extra", []))
        assert len(create_default_registry().scanners()) == len(SCANNER_CLASSES)

    def test_config_disables_and_extends(self, tmp_path):
        config = Config(
            sources={
                "cursor": SourceConfig(enabled=False),
                "aider": SourceConfig(paths=[str(tmp_path)]),
            },
            scan=ScanConfig(max_files=5),
        )

        registry = create_default_registry(config)

        assert registry.get_scanner("cursor") is None
        aider = registry.get_scanner("aider")
        assert aider.extra_dirs == [tmp_path]
        assert aider.max_files == 5
        assert aider.get_session_dirs() == [tmp_path]

    def test_empty_machine(self):
        registry = create_default_registry()
        assert registry.scan_all(10) == []
        assert all(not s.available for s in registry.list_scanner_status())
