"""
LLM Module
==========

Pluggable LLM interfaces for query translation and SQL correction.
"""

from nlq_pipeline.llm.anthropic_llm import AnthropicLLM
from nlq_pipeline.llm.base import LLMInterface
from nlq_pipeline.llm.mock import MockLLM

__all__ = [
    "LLMInterface",
    "MockLLM",
    "AnthropicLLM",
]
