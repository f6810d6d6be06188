"""Tests for the JSON-document editor scanners: Continue, Copilot Chat and Zed."""

from conftest import write_json

from sessionscan.adapters.continue_dev import ContinueDevScanner
from sessionscan.adapters.vscode_copilot import VSCodeCopilotScanner
from sessionscan.adapters.zed import ZedScanner

PAD = "x" * 120


class TestContinueDevScanner:
    def test_history_format(self, home):
        write_json(
            home / ".continue" / "sessions" / "abc.json",
            {
                "sessionId": "abc",
                "title": "Refactor auth",
                "workspaceDirectory": "file:///work/auth-service",
                "history": [
                    {"message": {"role": "user", "content": "split the module " + PAD}},
                    {"message": {"role": "assistant", "content": [{"type": "text", "text": "ok"}]}},
                ],
            },
        )

        [session] = ContinueDevScanner().scan(10)

        assert session.source == "continue"
        assert session.title == "Refactor auth"
        assert session.project == "auth-service"
        assert session.project_path == "/work/auth-service"
        assert session.message_count == 2

    def test_steps_format(self, home):
        write_json(
            home / ".continue" / "sessions" / "old.json",
            {
                "steps": [
                    {"name": "UserInput", "description": "explain this " + PAD},
                    {"name": "ChatModelResponse", "description": "it sorts"},
                    {"name": "SomethingElse", "description": "ignored"},
                ]
            },
        )

        session = ContinueDevScanner().parse(home / ".continue" / "sessions" / "old.json")

        assert [t.role for t in session.turns] == ["human", "assistant"]

    def test_session_index_and_single_turn_are_skipped(self, home):
        sessions = home / ".continue" / "sessions"
        write_json(sessions / "sessions.json", [{"sessionId": "abc", "title": PAD}])
        write_json(sessions / "one.json", {"history": [{"role": "user", "content": PAD}]})

        assert ContinueDevScanner().scan(10) == []

    def test_invalid_json_parses_to_none(self, home):
        path = home / ".continue" / "sessions" / "broken.json"
        path.parent.mkdir(parents=True)
        path.write_text('{"history": [{"role": "user", "content": "' + PAD, encoding="utf-8")

        assert ContinueDevScanner().parse(path) is None
        assert ContinueDevScanner().scan(10) == []


class TestVSCodeCopilotScanner:
    def test_workspace_chat_session(self, app_data):
        hash_dir = app_data / "Code" / "User" / "workspaceStorage" / "0a1b2c"
        write_json(hash_dir / "workspace.json", {"folder": "file:///work/web-app"})
        write_json(
            hash_dir / "chatSessions" / "s1.json",
            {
                "requests": [
                    {
                        "message": {"text": "why is this slow " + PAD},
                        "response": [{"value": "Because "}, {"value": "of N+1 queries"}],
                    }
                ]
            },
        )

        [session] = VSCodeCopilotScanner().scan(10)

        assert session.source == "vscode-copilot"
        assert session.project == "web-app"
        assert session.project_path == "/work/web-app"

        parsed = VSCodeCopilotScanner().parse(session.file_path)
        assert parsed.turns[1].content == "Because of N+1 queries"

    def test_global_conversations(self, app_data):
        write_json(
            app_data
            / "Code - Insiders"
            / "User"
            / "globalStorage"
            / "github.copilot-chat"
            / "c.json",
            {
                "conversations": [
                    {"turns": [{"request": "hello " + PAD, "response": "hi there"}]},
                ]
            },
        )

        [session] = VSCodeCopilotScanner().scan(10)

        assert session.project == "github.copilot-chat"
        assert session.human_message_count == 1
        assert session.ai_message_count == 1

    def test_first_non_empty_strategy_wins(self, app_data):
        path = write_json(
            app_data / "Code" / "User" / "globalStorage" / "github.copilot-chat" / "m.json",
            {
                "conversations": [],
                "messages": [
                    {"role": "user", "content": "from messages " + PAD},
                    {"role": "assistant", "text": "reply"},
                ],
                "history": [{"role": "user", "content": "from history"}],
            },
        )

        session = VSCodeCopilotScanner().parse(path)

        assert session.turns[0].content.startswith("from messages")
        assert len(session.turns) == 2


class TestZedScanner:
    def test_flat_messages(self, home):
        write_json(
            home / ".config" / "zed" / "conversations" / "c.json",
            {
                "title": "Lifetimes",
                "messages": [
                    {"role": "user", "content": "explain lifetimes " + PAD},
                    {"role": "assistant", "body": "they bound references"},
                ],
            },
        )

        [session] = ZedScanner().scan(10)

        assert session.source == "zed"
        assert session.title == "Lifetimes"
        assert session.project == "conversations"

    def test_saved_context(self, home):
        text = "You are helpful.\nWhat is a monad?\nA monoid in the category of endofunctors."
        path = write_json(
            home / ".config" / "zed" / "conversations" / "ctx.zed",
            {
                "summary": "Monads",
                "text": text,
                "messages": [
                    {"start": 0, "metadata": {"role": "system"}},
                    {"start": text.index("What"), "metadata": {"role": "user"}},
                    {"start": text.index("A monoid"), "metadata": {"role": "assistant"}},
                ],
            },
        )

        session = ZedScanner().parse(path)

        assert [(t.role, t.content) for t in session.turns] == [
            ("human", "What is a monad?"),
            ("assistant", "A monoid in the category of endofunctors."),
        ]
        assert session.title == "Monads"
