"""Per-connection chat session: one receive task and one send task over a socket."""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol

from fastapi import WebSocketDisconnect

from chat_relay.core.config import Settings, load_settings
from chat_relay.core.errors import ConfigError, GatewayError
from chat_relay.core.messages import (
    ERROR_CONFIG_INVALID,
    ERROR_CONFIG_LOAD,
    ERROR_RESEARCH_FAILED,
)
from chat_relay.services.ai_service import GatewayFactory
from chat_relay.services.research_agent import create_research_agent


logger = logging.getLogger("chat_relay.chat.session")


class ServerSocket(Protocol):
    """The subset of ``fastapi.WebSocket`` a session uses."""

    async def receive(self) -> Dict[str, Any]: ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class SessionState(str, Enum):
    OPEN = "open"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class ChannelClosed(Exception):
    """Raised when sending into a channel whose consumer is gone."""


_CLOSED = object()


class OutboundChannel:
    """Unbounded FIFO of outbound text with one producer and one consumer."""

    def __init__(self):
        self._queue: "asyncio.Queue[object]" = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return self._queue.qsize() - (1 if self._closed else 0)

    def send(self, item: str) -> None:
        if self._closed:
            raise ChannelClosed("outbound channel is closed")
        self._queue.put_nowait(item)

    async def recv(self) -> Optional[str]:
        """Next item in order, or ``None`` once the channel is closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any later receiver.
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)


class ChatSession:
    """Runs the send/receive task pair for one connection.

    Queries are handled strictly one at a time: the next frame is not read
    until the answer for the current one has been queued. Configuration and
    the gateway are rebuilt for every query. When either task ends the other
    is cancelled, and ``run`` returns only after both have finished.
    """

    def __init__(
        self,
        websocket: ServerSocket,
        settings_loader: Callable[[], Settings] = load_settings,
        gateway_factory: GatewayFactory = create_research_agent,
    ):
        self.websocket = websocket
        self.settings_loader = settings_loader
        self.gateway_factory = gateway_factory
        self.session_id = uuid.uuid4().hex[:12]
        self.channel = OutboundChannel()
        self.state = SessionState.OPEN
        self.send_task: Optional[asyncio.Task] = None
        self.recv_task: Optional[asyncio.Task] = None
        self._client_disconnected = False

    async def run(self) -> None:
        logger.info("WebSocket session started: session_id=%s", self.session_id)
        self.state = SessionState.ACTIVE
        self.send_task = asyncio.create_task(self._send_loop(), name=f"send-{self.session_id}")
        self.recv_task = asyncio.create_task(self._receive_loop(), name=f"recv-{self.session_id}")
        tasks = {self.send_task, self.recv_task}

        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    logger.error(
                        "Session task %s failed: session_id=%s",
                        task.get_name(),
                        self.session_id,
                        exc_info=task.exception(),
                    )
        finally:
            self.state = SessionState.CLOSING
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self.channel.close()
            await self._close_socket()
            self.state = SessionState.CLOSED
            logger.info("WebSocket session closed: session_id=%s", self.session_id)

    async def _send_loop(self) -> None:
        try:
            while True:
                text = await self.channel.recv()
                if text is None:
                    return
                try:
                    await self.websocket.send_text(text)
                except (WebSocketDisconnect, RuntimeError, OSError) as e:
                    logger.warning("Failed to write frame: session_id=%s, error=%s", self.session_id, e)
                    return
        finally:
            self.channel.close()

    async def _receive_loop(self) -> None:
        while True:
            message = await self.websocket.receive()
            if message["type"] == "websocket.disconnect":
                self._client_disconnected = True
                logger.info(
                    "Client disconnected: session_id=%s, code=%s",
                    self.session_id,
                    message.get("code"),
                )
                return

            query = message.get("text")
            if query is None:
                logger.info("Non-text frame received, ending session: session_id=%s", self.session_id)
                return

            logger.info("Received query: session_id=%s, query=%s", self.session_id, query)
            reply = await self.answer(query)

            try:
                self.channel.send(reply)
            except ChannelClosed:
                logger.error("Failed to send response to client: session_id=%s", self.session_id)
                return

    async def answer(self, query: str) -> str:
        """Run one query to completion; failures become an error frame."""
        try:
            settings = self.settings_loader()
        except ConfigError as e:
            logger.error("Failed to load config: %s", e)
            return ERROR_CONFIG_LOAD.format(error=e)

        try:
            settings.validate_config()
        except ConfigError as e:
            logger.error("Invalid config: %s", e)
            return ERROR_CONFIG_INVALID.format(error=e)

        try:
            gateway = self.gateway_factory(settings)
            result = await gateway.invoke(query)
        except GatewayError as e:
            logger.error("Research failed: %s", e)
            return ERROR_RESEARCH_FAILED.format(error=e)
        except Exception as e:
            logger.error("Research failed unexpectedly: %s", e, exc_info=True)
            return ERROR_RESEARCH_FAILED.format(error=e)

        return result.content

    async def _close_socket(self) -> None:
        if self._client_disconnected:
            return
        try:
            await self.websocket.close()
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.debug("Socket already closed: session_id=%s, error=%s", self.session_id, e)
