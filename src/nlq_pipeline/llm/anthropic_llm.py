"""
Anthropic LLM
=============

Claude-backed provider using the async Anthropic SDK.
"""

import os

import anthropic

from nlq_pipeline.errors import LLMServiceError
from nlq_pipeline.llm.base import LLMInterface
from nlq_pipeline.models import LLMResponse

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicLLM(LLMInterface):
    """LLM provider that calls the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int = 1000,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            api_key: API key (default: ANTHROPIC_API_KEY env)
            model: Model name (default: ANTHROPIC_MODEL env or DEFAULT_MODEL)
            max_tokens: Response token budget per call
            client: Pre-built client, mainly for tests
        """
        self.model = model or os.getenv("ANTHROPIC_MODEL", DEFAULT_MODEL)
        self.max_tokens = max_tokens
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key or os.getenv("ANTHROPIC_API_KEY")
        )

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        if temperature is not None:
            kwargs["temperature"] = temperature

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIError as e:
            raise LLMServiceError(f"Anthropic request failed: {e}") from e

        text_blocks = [block.text for block in response.content if getattr(block, "text", None)]
        if not text_blocks:
            raise LLMServiceError("Invalid response format: missing text content")

        usage = getattr(response, "usage", None)
        tokens_used = (usage.input_tokens + usage.output_tokens) if usage else 0

        return LLMResponse(
            content="".join(text_blocks),
            model=response.model,
            tokens_used=tokens_used,
        )
