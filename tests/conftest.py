"""Shared test fixtures for the chat relay."""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import pytest
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

from chat_relay.core.config import Settings
from chat_relay.core.errors import GatewayError
from chat_relay.services.ai_service import GatewayResult


CONFIG_ENV_VARS = [
    "ENVIRONMENT",
    "OLLAMA_HOST",
    "OLLAMA_MODEL",
    "OLLAMA_API_KEY",
    "TEMPERATURE",
    "MAX_TOKENS",
    "REQUEST_TIMEOUT_SECS",
    "SERVER_PORT",
    "STATIC_DIR",
]


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch, tmp_path):
    """Run every test against default settings, with no .env file in reach."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """create_app and the CLI reconfigure the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


class RecordingGatewayFactory:
    """Gateway factory that records every construction and every query."""

    def __init__(self, answer: Optional[Callable[[str], str]] = None, error: Optional[Exception] = None):
        self.answer = answer or (lambda query: f"answer to {query}")
        self.error = error
        self.settings_seen: List[Settings] = []
        self.queries: List[str] = []
        self.gate: Optional[asyncio.Event] = None

    @property
    def instances(self) -> int:
        return len(self.settings_seen)

    def __call__(self, settings: Settings) -> "_RecordingGateway":
        self.settings_seen.append(settings)
        return _RecordingGateway(self)


class _RecordingGateway:
    def __init__(self, factory: RecordingGatewayFactory):
        self.factory = factory

    async def invoke(self, query: str) -> GatewayResult:
        self.factory.queries.append(query)
        if self.factory.gate is not None:
            await self.factory.gate.wait()
        if self.factory.error is not None:
            raise self.factory.error
        return GatewayResult(content=self.factory.answer(query), model="test-model")


class CountingSettingsLoader:
    """Settings loader returning a fresh instance per call, optionally scripted."""

    def __init__(self, *scripted: Any):
        self.scripted = list(scripted)
        self.calls = 0

    def __call__(self) -> Settings:
        self.calls += 1
        if self.scripted:
            item = self.scripted.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return Settings()


@pytest.fixture
def gateway_factory():
    return RecordingGatewayFactory()


@pytest.fixture
def settings_loader():
    return CountingSettingsLoader()


class FakeServerSocket:
    """Stands in for fastapi.WebSocket using raw ASGI-style messages."""

    def __init__(self):
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent: List[str] = []
        self.closed = False
        self.fail_sends = False
        self.close_error: Optional[Exception] = None

    def push_text(self, text: str) -> None:
        self.incoming.put_nowait({"type": "websocket.receive", "text": text})

    def push_bytes(self, data: bytes) -> None:
        self.incoming.put_nowait({"type": "websocket.receive", "bytes": data})

    def disconnect(self, code: int = 1000) -> None:
        self.incoming.put_nowait({"type": "websocket.disconnect", "code": code})

    async def receive(self) -> Dict[str, Any]:
        return await self.incoming.get()

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise RuntimeError("Cannot call 'send' once a close message has been sent.")
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        if self.close_error is not None:
            raise self.close_error
        self.closed = True


@pytest.fixture
def server_socket():
    return FakeServerSocket()


_CLOSE = object()


class FakeClientSocket:
    """Stands in for a websockets client connection."""

    def __init__(self):
        self.frames: asyncio.Queue = asyncio.Queue()
        self.sent: List[str] = []
        self.closed = False
        self.fail_sends = False

    def push(self, frame: Any) -> None:
        self.frames.put_nowait(frame)

    def end(self) -> None:
        self.frames.put_nowait(_CLOSE)

    async def send(self, message: str) -> None:
        if self.fail_sends:
            raise ConnectionClosedError(None, None)
        self.sent.append(message)

    async def recv(self) -> Any:
        frame = await self.frames.get()
        if frame is _CLOSE:
            raise ConnectionClosedOK(None, None)
        return frame

    async def close(self) -> None:
        self.closed = True
        self.end()


@pytest.fixture
def client_socket():
    return FakeClientSocket()
