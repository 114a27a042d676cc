"""Client side of the chat socket.

One connection per chat lifetime. A single writer task owns the socket's
write half and everything else talks to it through a queue; a reader task
feeds inbound text frames into the chunk buffer in arrival order.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from chat_relay.core.errors import RelayConnectionError
from .buffer import ChunkBuffer
from .store import ConversationStore


logger = logging.getLogger("chat_relay.chat.transport")

DEFAULT_PORT = 3000
WS_PATH = "/ws"

Connector = Callable[[str], Awaitable[Any]]


def build_ws_url(hostname: str, port: int = DEFAULT_PORT) -> str:
    return f"ws://{hostname}:{port}{WS_PATH}"


async def _default_connect(url: str) -> Any:
    # No keepalive pings: a dropped connection is simply over.
    return await websockets.connect(url, ping_interval=None)


class ChatTransport:
    """Connects a ConversationStore to the relay server."""

    def __init__(
        self,
        store: ConversationStore,
        url: str,
        connect: Connector = _default_connect,
    ):
        self.store = store
        self.url = url
        self.buffer = ChunkBuffer(store.append_assistant_chunk)
        self._connect = connect
        self._ws: Any = None
        self._outbox: "asyncio.Queue[Optional[Tuple[str, asyncio.Future]]]" = asyncio.Queue()
        self._writer_task: Optional[asyncio.Task] = None
        self._reader_task: Optional[asyncio.Task] = None
        self.open_error: Optional[Exception] = None

    @classmethod
    def for_host(cls, store: ConversationStore, hostname: str, port: int = DEFAULT_PORT, **kwargs) -> "ChatTransport":
        return cls(store, build_ws_url(hostname, port), **kwargs)

    @property
    def connected(self) -> bool:
        return self._writer_task is not None and not self._writer_task.done()

    async def open(self) -> None:
        """Open the socket once. Failure is logged and remembered, not retried."""
        if self._ws is not None or self.open_error is not None:
            return
        try:
            ws = await self._connect(self.url)
        except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError) as e:
            self.open_error = e
            logger.error("Failed to open WebSocket %s: %s", self.url, e)
            return

        self._ws = ws
        self._writer_task = asyncio.create_task(self._write_loop(ws))
        self._reader_task = asyncio.create_task(self._read_loop(ws))
        logger.info("WebSocket connected: %s", self.url)

    async def send(self, query: str) -> None:
        """Record the query locally, then write it as one frame.

        The user message and its assistant placeholder stay in the store
        even when the write fails. Text still buffered for the previous
        answer is committed to its own message before the new one opens.
        """
        self.buffer.finish()
        self.store.append_user_message(query)

        if not self.connected:
            reason = self.open_error or "socket is not open"
            raise RelayConnectionError(f"WebSocket issue: {reason}")

        done: asyncio.Future = asyncio.get_running_loop().create_future()
        self._outbox.put_nowait((query, done))
        await done

    async def _write_loop(self, ws: Any) -> None:
        while True:
            item = await self._outbox.get()
            if item is None:
                return
            query, done = item
            try:
                await ws.send(query)
            except (ConnectionClosed, OSError) as e:
                logger.warning("WebSocket write failed: %s", e)
                if not done.done():
                    done.set_exception(RelayConnectionError(f"WebSocket issue: {e}"))
                continue
            if not done.done():
                done.set_result(None)

    async def _read_loop(self, ws: Any) -> None:
        try:
            while True:
                frame = await ws.recv()
                if not isinstance(frame, str):
                    logger.info("Non-text frame received, stopping reader")
                    return
                self.buffer.feed(frame)
        except ConnectionClosed as e:
            logger.info("WebSocket closed: %s", e)
        finally:
            self.buffer.finish()

    async def wait_closed(self) -> None:
        """Wait until the server side of the stream has ended."""
        if self._reader_task is not None:
            await self._reader_task

    async def close(self) -> None:
        if self._writer_task is not None:
            self._outbox.put_nowait(None)
            await self._writer_task
        if self._ws is not None:
            await self._ws.close()
        if self._reader_task is not None:
            await self._reader_task

    async def __aenter__(self) -> "ChatTransport":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
