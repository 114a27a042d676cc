"""Chat system module: client conversation engine and server sessions."""

from .models import ChatDisplayConfig, Message
from .store import ConversationStore
from .buffer import ChunkBuffer, accumulate
from .transport import ChatTransport, build_ws_url
from .session import ChatSession, OutboundChannel, SessionState

__all__ = [
    "ChatDisplayConfig",
    "Message",
    "ConversationStore",
    "ChunkBuffer",
    "accumulate",
    "ChatTransport",
    "build_ws_url",
    "ChatSession",
    "OutboundChannel",
    "SessionState",
]
