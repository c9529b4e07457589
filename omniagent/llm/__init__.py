"""LLM Provider abstraction layer.

This module provides a unified, tool-aware interface for multiple LLM providers
including Anthropic and OpenAI.
"""

from omniagent.llm.anthropic import AnthropicProvider
from omniagent.llm.base import BaseLLMProvider, LLMResponse, ToolCall, ToolSpec
from omniagent.llm.factory import LLMProviderFactory
from omniagent.llm.openai import OpenAIProvider

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "ToolCall",
    "ToolSpec",
    "AnthropicProvider",
    "OpenAIProvider",
    "LLMProviderFactory",
]
