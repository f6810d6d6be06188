"""Tests for the sessionscan command-line interface."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from click.testing import CliRunner
from conftest import write_jsonl
from rich.console import Console

from sessionscan.cli import cli, format_age, truncate


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def claude_session(home):
    return write_jsonl(
        home / ".claude" / "projects" / "-work-demo" / "abc.jsonl",
        [
            {"type": "user", "cwd": "/work/demo", "message": {"content": "fix bug"}},
            {"type": "assistant", "message": {"content": "done [bold]really[/bold]"}},
            {"type": "user", "message": {"content": "thanks"}},
        ],
    )


class TestScanCommand:
    def test_json_output(self, runner, claude_session):
        result = runner.invoke(cli, ["scan", "--json"])

        assert result.exit_code == 0, result.output
        [session] = json.loads(result.output)
        assert session["id"] == "abc"
        assert session["source"] == "claude-code"
        assert session["project"] == "demo"
        assert session["message_count"] == 3

    def test_table_output(self, runner, claude_session, monkeypatch):
        monkeypatch.setattr("sessionscan.cli.console", Console(width=250))

        result = runner.invoke(cli, ["scan", "--limit", "5"])

        assert result.exit_code == 0, result.output
        assert "claude-code" in result.output
        assert "fix bug" in result.output

    def test_empty_scan_explains_with_status(self, runner):
        result = runner.invoke(cli, ["scan"])

        assert result.exit_code == 0, result.output
        assert "No sessions found" in result.output
        assert "Not Found" in result.output

    def test_unknown_source(self, runner, claude_session):
        result = runner.invoke(cli, ["scan", "--source", "nope"])

        assert result.exit_code == 0
        assert "No scanner for source 'nope'" in result.output

    def test_default_limit_from_config(self, runner, claude_session, tmp_path):
        config = tmp_path / "config.toml"
        config.write_text("[scan]\ndefault_limit = 0\n")

        result = runner.invoke(cli, ["--config", str(config), "scan", "--json"])

        assert json.loads(result.output) == []

    def test_disabled_source(self, runner, claude_session, tmp_path, monkeypatch):
        config = tmp_path / "config.toml"
        config.write_text('[sources.claude-code]\nenabled = false\n')
        monkeypatch.setenv("SESSIONSCAN_CONFIG", str(config))

        result = runner.invoke(cli, ["scan", "--json"])

        assert json.loads(result.output) == []


class TestReadCommand:
    def test_json_output(self, runner, claude_session):
        result = runner.invoke(
            cli, ["read", str(claude_session), "--source", "claude-code", "--json"]
        )

        assert result.exit_code == 0, result.output
        session = json.loads(result.output)
        assert [t["role"] for t in session["turns"]] == ["human", "assistant", "human"]

    def test_max_turns(self, runner, claude_session):
        result = runner.invoke(
            cli,
            ["read", str(claude_session), "--source", "claude-code", "--max-turns", "1", "--json"],
        )

        assert len(json.loads(result.output)["turns"]) == 1

    def test_rich_output_keeps_literal_brackets(self, runner, claude_session):
        result = runner.invoke(cli, ["read", str(claude_session), "-s", "claude-code"])

        assert result.exit_code == 0, result.output
        assert "HUMAN" in result.output
        assert "[bold]really[/bold]" in result.output

    def test_missing_file_fails(self, runner, tmp_path):
        result = runner.invoke(
            cli, ["read", str(tmp_path / "missing.jsonl"), "--source", "claude-code"]
        )
        assert result.exit_code == 1

    def test_source_is_required(self, runner, claude_session):
        result = runner.invoke(cli, ["read", str(claude_session)])
        assert result.exit_code == 2

    def test_negative_max_turns_rejected(self, runner, claude_session):
        result = runner.invoke(
            cli, ["read", str(claude_session), "-s", "claude-code", "--max-turns", "-1"]
        )
        assert result.exit_code == 2


class TestSourcesCommand:
    def test_json_lists_every_scanner(self, runner, claude_session):
        result = runner.invoke(cli, ["sources", "--json"])

        assert result.exit_code == 0, result.output
        statuses = {s["source"]: s for s in json.loads(result.output)}
        assert len(statuses) == 8
        assert statuses["claude-code"]["available"] is True
        assert statuses["codex"]["available"] is False
        assert statuses["codex"]["error"] is None

    def test_table(self, runner):
        result = runner.invoke(cli, ["sources"])
        assert result.exit_code == 0
        assert "windsurf" in result.output


class TestHelpers:
    def test_truncate(self):
        assert truncate("abc", 5) == "abc"
        assert truncate("abcdef", 3) == "abc..."

    def test_format_age(self):
        now = datetime.now(timezone.utc)
        assert format_age(now - timedelta(minutes=5)) == "5m ago"
        assert format_age(now - timedelta(hours=3)) == "3h ago"
        assert format_age(now - timedelta(days=2)) == "2d ago"
        assert format_age(now - timedelta(weeks=3)) == "3w ago"
