"""
Mock LLM
========

Mock LLM implementation for testing and demonstration.
"""

from nlq_pipeline.errors import LLMServiceError
from nlq_pipeline.llm.base import LLMInterface
from nlq_pipeline.models import LLMResponse


class MockLLM(LLMInterface):
    """
    Mock LLM for demonstration and testing purposes.

    In production, replace with AnthropicLLM or another provider.
    """

    def __init__(
        self,
        responses: dict[str, list[str]] | None = None,
        fail_on: list[str] | None = None,
    ) -> None:
        """
        Initialize with canned responses.

        Args:
            responses: Dict mapping prompt substrings to list of replies.
                       Each reply is returned in sequence (for testing correction).
            fail_on: Prompt substrings that make the call raise LLMServiceError,
                     simulating an unreachable provider.
        """
        self.responses = responses or {}
        self.fail_on = fail_on or []
        self.call_counts: dict[str, int] = {}
        self.calls: list[dict] = []

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """
        Generate a mock response.

        Matches the system prompt and prompt against configured responses and
        returns successive replies to simulate correction behavior.
        """
        self.calls.append(
            {"prompt": prompt, "system_prompt": system_prompt, "temperature": temperature}
        )
        haystack = f"{system_prompt or ''}\n{prompt}".lower()

        for key in self.fail_on:
            if key.lower() in haystack:
                raise LLMServiceError(f"Mock provider unavailable for '{key}'")

        for key, replies in self.responses.items():
            if key.lower() in haystack:
                count = self.call_counts.get(key, 0)
                self.call_counts[key] = count + 1

                # Successive replies, staying on the last one
                reply_idx = min(count, len(replies) - 1)
                return LLMResponse(content=replies[reply_idx], model="mock-llm-v1")

        # Default fallback is deliberately unparsable
        return LLMResponse(content="I am not sure.", model="mock-llm-v1")

    def reset(self) -> None:
        """Reset call counts and the call log for fresh test runs."""
        self.call_counts = {}
        self.calls = []
