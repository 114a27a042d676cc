from __future__ import annotations

import logging
from typing import Any

from openai import APIConnectionError, AsyncOpenAI, OpenAIError, RateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from chat_relay.core.config import Settings
from chat_relay.core.errors import GatewayError
from chat_relay.services.ai_service import GatewayResult
from chat_relay.services.prompts import (
    RESEARCH_SYSTEM_PROMPT,
    build_quick_prompt,
    build_research_prompt,
)


logger = logging.getLogger("chat_relay.ai.research")


class ResearchAgent:
    """Answers research questions with a model served by Ollama.

    Holds no state between calls beyond the client built from ``settings``,
    so a new instance can be created for every query.
    """

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self.settings = settings
        self.model = settings.OLLAMA_MODEL
        self.client = client or AsyncOpenAI(
            base_url=settings.openai_base_url,
            api_key=settings.OLLAMA_API_KEY,
            timeout=settings.REQUEST_TIMEOUT_SECS,
            max_retries=0,
        )

    @retry(
        retry=retry_if_exception_type((RateLimitError, APIConnectionError)),
        wait=wait_exponential_jitter(initial=1, max=10),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _create_completion(self, **kwargs: Any):
        return await self.client.chat.completions.create(**kwargs)

    async def _complete(self, query: str, prompt: str, mode: str) -> GatewayResult:
        if not query.strip():
            raise GatewayError("query is empty")

        logger.info("research_request", extra={"model": self.model, "mode": mode, "query_chars": len(query)})

        try:
            completion = await self._create_completion(
                model=self.model,
                temperature=self.settings.TEMPERATURE,
                max_tokens=self.settings.MAX_TOKENS,
                messages=[
                    {"role": "system", "content": RESEARCH_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as e:
            raise GatewayError(str(e)) from e

        if not completion.choices:
            raise GatewayError(f"model '{self.model}' returned no choices")
        content = completion.choices[0].message.content or ""

        usage = completion.usage
        logger.info(
            "research_response",
            extra={
                "model": self.model,
                "mode": mode,
                "response_chars": len(content),
                "total_tokens": usage.total_tokens if usage is not None else None,
            },
        )
        return GatewayResult(content=content, model=self.model)

    async def invoke(self, query: str) -> GatewayResult:
        """Full research: structured synthesis of the topic."""
        return await self._complete(query, build_research_prompt(user_query=query), "research")

    async def quick_search(self, query: str) -> GatewayResult:
        """Short answer without the structured research template."""
        return await self._complete(query, build_quick_prompt(user_query=query), "quick")


def create_research_agent(settings: Settings) -> ResearchAgent:
    return ResearchAgent(settings)
