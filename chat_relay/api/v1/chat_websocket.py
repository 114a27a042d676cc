"""WebSocket endpoint for real-time chat."""

import logging
from typing import Callable

from fastapi import APIRouter, Depends, WebSocket

from chat_relay.api.dependencies import get_gateway_factory, get_settings_loader
from chat_relay.chat import ChatSession
from chat_relay.core.config import Settings
from chat_relay.services.ai_service import GatewayFactory


logger = logging.getLogger("chat_relay.chat.websocket")

router = APIRouter()


@router.websocket("/ws")
async def chat_websocket(
    websocket: WebSocket,
    settings_loader: Callable[[], Settings] = Depends(get_settings_loader),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
):
    """
    WebSocket endpoint for research chat.

    Connection URL: ws://{host}:3000/ws

    Client -> Server: one text frame per question, raw text.
    Server -> Client: one text frame per question, the full answer or a
    string starting with "Error: ".
    """
    await websocket.accept()
    logger.info("WebSocket connection established: client=%s", websocket.client)

    session = ChatSession(websocket, settings_loader=settings_loader, gateway_factory=gateway_factory)
    await session.run()
