from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from chat_relay.core.config import Settings


@dataclass
class GatewayResult:
    content: str
    model: str


class AnswerGateway(Protocol):
    async def invoke(self, query: str) -> GatewayResult:  # pragma: no cover - interface
        ...


# Builds a fresh gateway from validated settings; called once per query.
GatewayFactory = Callable[[Settings], AnswerGateway]
