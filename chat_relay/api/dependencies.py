from __future__ import annotations

from typing import Callable

from chat_relay.core.config import Settings, load_settings
from chat_relay.services.ai_service import GatewayFactory
from chat_relay.services.research_agent import create_research_agent


def get_settings_loader() -> Callable[[], Settings]:
    return load_settings


def get_gateway_factory() -> GatewayFactory:
    return create_research_agent
