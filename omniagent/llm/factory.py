"""LLM Provider Factory.

This module provides factory functions for creating LLM provider instances.
"""

from __future__ import annotations

import os
from typing import Any

from omniagent.llm.anthropic import AnthropicProvider
from omniagent.llm.base import BaseLLMProvider
from omniagent.llm.openai import OpenAIProvider


class LLMProviderFactory:
    """Factory for creating LLM provider instances.

    Supports creating providers by name with automatic configuration
    from environment variables.
    """

    _providers: dict[str, type[BaseLLMProvider]] = {
        "anthropic": AnthropicProvider,
        "openai": OpenAIProvider,
    }

    # Model name prefix to provider
    _model_prefixes: dict[str, str] = {
        "claude": "anthropic",
        "gpt": "openai",
        "o1": "openai",
        "o3": "openai",
        "o4": "openai",
    }

    _env_keys: dict[str, str] = {
        "anthropic": "ANTHROPIC_API_KEY",
        "openai": "OPENAI_API_KEY",
    }

    @classmethod
    def get_provider_for_model(cls, model: str) -> str | None:
        """Get the provider name for a given model, or None if unknown."""
        head = model.split("-")[0].lower()
        if head in cls._model_prefixes:
            return cls._model_prefixes[head]
        for prefix, provider in cls._model_prefixes.items():
            if model.lower().startswith(prefix):
                return provider
        return None

    @classmethod
    def create(
        cls,
        provider: str | None = None,
        model: str | None = None,
        api_key: str | None = None,
        **kwargs: Any,
    ) -> BaseLLMProvider:
        """Create an LLM provider instance.

        Args:
            provider: Provider name. If None, inferred from model.
            model: Model name (used to infer provider if not specified).
            api_key: API key. If None, reads from environment.
            **kwargs: Additional provider-specific configuration.

        Raises:
            ValueError: If the provider is unknown.
        """
        if provider is None and model:
            provider = cls.get_provider_for_model(model)

        if provider is None:
            provider = "openai"

        if provider not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(f"Unknown provider: {provider}. Available: {available}")

        if api_key is None:
            env_var = cls._env_keys.get(provider, f"{provider.upper()}_API_KEY")
            api_key = os.getenv(env_var)

        provider_class = cls._providers[provider]
        return provider_class(api_key=api_key, **kwargs)
