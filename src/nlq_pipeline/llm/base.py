"""
Base LLM Interface
==================

Abstract interface for LLM providers.
"""

from abc import ABC, abstractmethod

from nlq_pipeline.models import LLMResponse


class LLMInterface(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            prompt: The user prompt/question
            system_prompt: Optional system prompt for context
            temperature: Optional sampling temperature

        Returns:
            LLMResponse with generated content

        Raises:
            LLMServiceError: If the provider cannot be reached or returns no text
        """
        pass
