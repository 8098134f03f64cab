"""
Unit Tests for LLM Providers
============================

Tests for the mock provider and the Anthropic adapter.
"""

from types import SimpleNamespace

import anthropic
import httpx
import pytest

from nlq_pipeline.errors import LLMServiceError, TranslationFailure
from nlq_pipeline.llm.anthropic_llm import AnthropicLLM
from nlq_pipeline.llm.mock import MockLLM


class FakeMessages:
    """Stands in for ``AsyncAnthropic.messages``."""

    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.kwargs: dict | None = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.response


def fake_client(messages: FakeMessages) -> SimpleNamespace:
    return SimpleNamespace(messages=messages)


def text_response(*texts: str) -> SimpleNamespace:
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=t) for t in texts],
        model="claude-test",
        usage=SimpleNamespace(input_tokens=12, output_tokens=30),
    )


class TestMockLLM:
    """Tests for the keyword-matched mock provider."""

    async def test_successive_replies(self) -> None:
        """Test that repeated matches walk the reply list and stay on the last one."""
        llm = MockLLM(responses={"revenue": ["first", "second"]})

        replies = [(await llm.generate("total revenue")).content for _ in range(3)]
        assert replies == ["first", "second", "second"]

    async def test_matches_system_prompt(self) -> None:
        """Test that keys are matched against the system prompt too."""
        llm = MockLLM(responses={"TASK: X": ["routed"]})
        response = await llm.generate("question", system_prompt="task: x\nrest")
        assert response.content == "routed"
        assert response.model == "mock-llm-v1"

    async def test_default_reply_is_unparsable(self) -> None:
        """Test that unmatched prompts get a non-JSON reply."""
        llm = MockLLM()
        response = await llm.generate("anything")
        assert "{" not in response.content

    async def test_fail_on_raises(self) -> None:
        """Test that fail_on keywords simulate an unreachable provider."""
        llm = MockLLM(responses={"eth": ["ok"]}, fail_on=["eth"])
        with pytest.raises(LLMServiceError):
            await llm.generate("show eth")

    async def test_calls_recorded_and_reset(self) -> None:
        """Test that every call is logged and reset clears state."""
        llm = MockLLM(responses={"q": ["a", "b"]})
        await llm.generate("q", system_prompt="sys", temperature=0.2)

        assert llm.calls == [{"prompt": "q", "system_prompt": "sys", "temperature": 0.2}]

        llm.reset()
        assert llm.calls == []
        assert (await llm.generate("q")).content == "a"


class TestAnthropicLLM:
    """Tests for the Anthropic adapter against a fake client."""

    async def test_generate_builds_request(self) -> None:
        """Test request arguments and response mapping."""
        messages = FakeMessages(response=text_response("SELECT ", "1"))
        llm = AnthropicLLM(model="claude-test", max_tokens=500, client=fake_client(messages))

        response = await llm.generate("fix it", system_prompt="You fix SQL", temperature=0.1)

        assert response.content == "SELECT 1"
        assert response.model == "claude-test"
        assert response.tokens_used == 42
        assert messages.kwargs == {
            "model": "claude-test",
            "max_tokens": 500,
            "messages": [{"role": "user", "content": "fix it"}],
            "system": "You fix SQL",
            "temperature": 0.1,
        }

    async def test_optional_arguments_omitted(self) -> None:
        """Test that unset system prompt and temperature are not sent."""
        messages = FakeMessages(response=text_response("ok"))
        llm = AnthropicLLM(model="claude-test", client=fake_client(messages))

        await llm.generate("hello")
        assert "system" not in messages.kwargs
        assert "temperature" not in messages.kwargs

    async def test_api_error_becomes_service_error(self) -> None:
        """Test that SDK errors surface as translation failures."""
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        error = anthropic.APIConnectionError(request=request)
        llm = AnthropicLLM(model="claude-test", client=fake_client(FakeMessages(error=error)))

        with pytest.raises(TranslationFailure):
            await llm.generate("hello")

    async def test_empty_content_is_error(self) -> None:
        """Test that a reply without text blocks is rejected."""
        response = SimpleNamespace(content=[], model="claude-test", usage=None)
        llm = AnthropicLLM(model="claude-test", client=fake_client(FakeMessages(response=response)))

        with pytest.raises(LLMServiceError):
            await llm.generate("hello")
