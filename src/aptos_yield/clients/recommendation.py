"""Text-completion client used to turn strategies into a recommendation."""

from __future__ import annotations

from typing import Protocol

from anthropic import AsyncAnthropic

from ..logger import get_logger
from ..settings import YieldSettings

logger = get_logger(__name__)


class RecommendationClient(Protocol):
    async def complete(self, prompt: str) -> str: ...


class AnthropicRecommendationClient:
    """Recommendation service backed by the Anthropic Messages API."""

    def __init__(self, settings: YieldSettings, client: AsyncAnthropic | None = None):
        self.model = settings.llm_model
        self.max_tokens = settings.llm_max_tokens
        if client is None:
            api_key = (
                settings.anthropic_api_key.get_secret_value()
                if settings.anthropic_api_key
                else None
            )
            client = AsyncAnthropic(api_key=api_key)
        self.client = client

    async def complete(self, prompt: str) -> str:
        """Send a single user prompt and return the text of the reply.

        Raises:
            ValueError: If the reply contains no text
            anthropic.APIError: If the request fails
        """
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise ValueError("Recommendation service returned an empty response")

        logger.debug("Received recommendation", extra={"chars": len(text)})
        return text
