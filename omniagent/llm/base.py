"""Base LLM Provider - Abstract interface for LLM providers.

This module defines the abstract base class that all LLM providers must implement,
together with the provider-neutral shapes used for tool-augmented chat.

Messages passed to ``chat`` are plain dicts:

- ``{"role": "user", "content": str}``
- ``{"role": "assistant", "content": str, "tool_calls": [{"id", "name", "arguments"}]}``
- ``{"role": "tool", "tool_call_id": str, "name": str, "content": str}``

Each provider translates these into its own wire format.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ToolSpec:
    """Tool definition advertised to the model."""

    name: str
    description: str
    parameters: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "arguments": self.arguments}


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    raw_response: Any = None


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers.

    All LLM providers (Anthropic, OpenAI, etc.) must implement
    this interface to be used interchangeably in the agent system.
    """

    def __init__(self, api_key: str, **kwargs: Any) -> None:
        """Initialize the LLM provider.

        Args:
            api_key: API key for authentication.
            **kwargs: Additional provider-specific configuration.
        """
        self._api_key = api_key
        self._config = kwargs

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'anthropic', 'openai')."""
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Return the default model for this provider."""
        pass

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        system_prompt: str | None = None,
        tools: list[ToolSpec] | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Send a chat completion request.

        Args:
            messages: Provider-neutral message dicts (see module docstring).
            model: Model to use. If None, uses default_model.
            max_tokens: Maximum tokens in the response.
            temperature: Sampling temperature (0.0 to 2.0).
            system_prompt: Optional system prompt.
            tools: Optional tools the model may call.
            **kwargs: Additional provider-specific parameters.

        Returns:
            LLMResponse containing the model's response and any tool calls.
        """
        pass

    def get_available_models(self) -> list[str]:
        """Return list of available models for this provider.

        Subclasses should override this to return their specific models.
        """
        return [self.default_model]

    async def close(self) -> None:
        """Release underlying HTTP clients."""
        return None
