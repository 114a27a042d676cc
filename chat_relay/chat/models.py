"""Chat models for the client-side conversation."""

from dataclasses import dataclass

from chat_relay.core.messages import ASSISTANT_SENDER_NAME, USER_SENDER_NAME


@dataclass
class Message:
    """One entry in a conversation. Only the open assistant message is ever mutated."""

    text: str
    is_user: bool
    sender_name: str
    timestamp: str


@dataclass(frozen=True)
class ChatDisplayConfig:
    """Presentation settings handed explicitly to every chat component."""

    user_name: str = USER_SENDER_NAME
    assistant_name: str = ASSISTANT_SENDER_NAME
    dark_mode: bool = True
