"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

import chat_relay.cli as cli
from chat_relay.chat import ChatDisplayConfig, ConversationStore
from chat_relay.core.errors import GatewayError, RelayConnectionError
from chat_relay.services.ai_service import GatewayResult


class FakeAgent:
    error = None
    calls = []

    def __init__(self, settings):
        self.settings = settings

    async def invoke(self, query):
        FakeAgent.calls.append(("invoke", query, self.settings.OLLAMA_MODEL))
        if FakeAgent.error is not None:
            raise FakeAgent.error
        return GatewayResult(content=f"full answer to {query}", model=self.settings.OLLAMA_MODEL)

    async def quick_search(self, query):
        FakeAgent.calls.append(("quick", query, self.settings.OLLAMA_MODEL))
        return GatewayResult(content=f"quick answer to {query}", model=self.settings.OLLAMA_MODEL)


@pytest.fixture(autouse=True)
def fake_agent(monkeypatch):
    FakeAgent.error = None
    FakeAgent.calls = []
    monkeypatch.setattr(cli, "ResearchAgent", FakeAgent)
    return FakeAgent


def test_ask_prints_results_banner():
    result = CliRunner().invoke(cli.main, ["ask", "What is Rust?"])
    assert result.exit_code == 0
    assert "RESEARCH RESULTS" in result.output
    assert "full answer to What is Rust?" in result.output
    assert FakeAgent.calls == [("invoke", "What is Rust?", "llama3.2")]


def test_ask_quick_with_model_override():
    result = CliRunner().invoke(cli.main, ["ask", "--quick", "--model", "mistral", "Rust web frameworks"])
    assert result.exit_code == 0
    assert FakeAgent.calls == [("quick", "Rust web frameworks", "mistral")]


def test_ask_invalid_config_fails(monkeypatch):
    monkeypatch.setenv("TEMPERATURE", "7")
    result = CliRunner().invoke(cli.main, ["ask", "q"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
    assert FakeAgent.calls == []


def test_ask_connection_failure_prints_tip():
    FakeAgent.error = GatewayError("Connection error.")
    result = CliRunner().invoke(cli.main, ["ask", "q"])
    assert result.exit_code == 1
    assert "ollama serve" in result.output


def test_ask_model_failure_prints_pull_tip():
    FakeAgent.error = GatewayError("model 'llama3.2' not found")
    result = CliRunner().invoke(cli.main, ["ask", "q"])
    assert result.exit_code == 1
    assert "ollama pull llama3.2" in result.output


class FakeTransport:
    instances = []
    fail_sends = False

    def __init__(self, store, url):
        self.store = store
        self.url = url
        self.connected = False
        self.sent = []
        self.closed = False

    @classmethod
    def for_host(cls, store, hostname, port):
        transport = cls(store, f"ws://{hostname}:{port}/ws")
        cls.instances.append(transport)
        return transport

    async def open(self):
        self.connected = True

    async def send(self, query):
        self.store.append_user_message(query)
        if FakeTransport.fail_sends:
            raise RelayConnectionError("WebSocket issue: connection refused")
        self.sent.append(query)
        self.store.append_assistant_chunk("echo ")
        self.store.append_assistant_chunk(query)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_transport(monkeypatch):
    FakeTransport.instances = []
    FakeTransport.fail_sends = False
    monkeypatch.setattr(cli, "ChatTransport", FakeTransport)
    return FakeTransport


def test_chat_prints_committed_assistant_text(fake_transport):
    result = CliRunner().invoke(cli.main, ["chat", "--host", "relay.local"], input="hello\n\nworld\n")

    assert result.exit_code == 0
    assert "Connected to ws://relay.local:3000/ws" in result.output
    assert "Assistant [" in result.output
    assert "echo hello" in result.output
    assert "echo world" in result.output

    (transport,) = fake_transport.instances
    assert transport.sent == ["hello", "world"]
    assert transport.closed
    assert [m.text for m in transport.store] == ["hello", "echo hello", "world", "echo world"]


def test_chat_reports_send_failure_and_keeps_going(fake_transport):
    fake_transport.fail_sends = True
    result = CliRunner().invoke(cli.main, ["chat"], input="hello\nagain\n")

    assert result.exit_code == 0
    assert result.output.count("Could not send message") == 2
    (transport,) = fake_transport.instances
    assert [m.is_user for m in transport.store] == [True, False, True, False]


def test_terminal_view_prints_header_then_only_new_text(capsys):
    view = cli._TerminalView(ChatDisplayConfig(assistant_name="Agent"))
    store = ConversationStore(on_change=view, clock=lambda: "09:30")

    store.append_user_message("q")
    store.append_assistant_chunk("abc")
    store.append_assistant_chunk("def")

    assert capsys.readouterr().out == "Agent [09:30]:\nabcdef"


def test_terminal_view_accent_follows_dark_mode():
    assert cli._TerminalView(ChatDisplayConfig(dark_mode=True))._accent == "bright_yellow"
    assert cli._TerminalView(ChatDisplayConfig(dark_mode=False))._accent == "blue"


def test_serve_runs_app_on_requested_port(monkeypatch):
    import main

    calls = []
    monkeypatch.setattr(main, "run", lambda **kwargs: calls.append(kwargs))

    result = CliRunner().invoke(cli.main, ["serve", "--port", "8099", "--verbose"])

    assert result.exit_code == 0
    assert "http://localhost:8099" in result.output
    assert calls == [{"host": "0.0.0.0", "port": 8099, "verbose": True}]
