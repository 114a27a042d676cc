"""Conversation store: ordered messages, append and mutate-last only."""

import logging
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Sequence

from .models import ChatDisplayConfig, Message


logger = logging.getLogger("chat_relay.chat.store")


def _now() -> str:
    return datetime.now().strftime("%H:%M")


class ConversationStore:
    """Owns the conversation.

    Every user message is immediately followed by an empty assistant
    placeholder, and only that placeholder (the last message, when it is not
    a user message) receives response text.
    """

    def __init__(
        self,
        display: Optional[ChatDisplayConfig] = None,
        on_change: Optional[Callable[["ConversationStore"], None]] = None,
        clock: Callable[[], str] = _now,
    ):
        self.display = display or ChatDisplayConfig()
        self.on_change = on_change
        self._clock = clock
        self._messages: List[Message] = []

    @property
    def messages(self) -> Sequence[Message]:
        return tuple(self._messages)

    @property
    def last_message(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def append_user_message(self, text: str) -> Message:
        """Append a user message and the assistant placeholder that answers it."""
        timestamp = self._clock()
        user_message = Message(
            text=text,
            is_user=True,
            sender_name=self.display.user_name,
            timestamp=timestamp,
        )
        self._messages.append(user_message)
        self._messages.append(
            Message(
                text="",
                is_user=False,
                sender_name=self.display.assistant_name,
                timestamp=timestamp,
            )
        )
        self._notify()
        return user_message

    def append_assistant_chunk(self, text: str) -> None:
        last = self.last_message
        if last is None or last.is_user:
            logger.debug("Dropping assistant chunk with no open assistant message")
            return
        last.text += text
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
