"""Anthropic LLM Provider implementation.

This module provides the Anthropic Claude API integration, including
translation between provider-neutral tool messages and Claude content blocks.
"""

from __future__ import annotations

import os
from typing import Any

import anthropic

from omniagent.llm.base import BaseLLMProvider, LLMResponse, ToolCall, ToolSpec
from omniagent.utils.exceptions import LLMAPIError, LLMRateLimitError, LLMTimeoutError


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude API provider."""

    AVAILABLE_MODELS = [
        "claude-opus-4-20250514",
        "claude-sonnet-4-20250514",
        "claude-haiku-4-5-20251001",
        "claude-3-5-sonnet-20241022",
        "claude-3-5-haiku-20241022",
    ]

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the Anthropic provider.

        Args:
            api_key: Anthropic API key. If None, reads from ANTHROPIC_API_KEY env var.
            base_url: Optional custom base URL for the API.
            **kwargs: Additional configuration.
        """
        resolved_api_key = api_key or os.getenv("ANTHROPIC_API_KEY", "")
        super().__init__(api_key=resolved_api_key, **kwargs)

        self._async_client = anthropic.AsyncAnthropic(
            api_key=resolved_api_key,
            base_url=base_url,
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "anthropic"

    @property
    def default_model(self) -> str:
        """Return the default model."""
        return "claude-haiku-4-5-20251001"

    def get_available_models(self) -> list[str]:
        """Return list of available Anthropic models."""
        return self.AVAILABLE_MODELS.copy()

    @staticmethod
    def format_tools(tools: list[ToolSpec]) -> list[dict[str, Any]]:
        """Convert tool specs to Anthropic tool definitions."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }
            for tool in tools
        ]

    @staticmethod
    def format_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Convert provider-neutral messages to Anthropic content blocks.

        Consecutive tool results are merged into one user turn, which is
        what the Messages API expects after a multi-tool assistant turn.
        """
        formatted: list[dict[str, Any]] = []
        for message in messages:
            role = message["role"]
            if role == "system":
                continue

            if role == "tool":
                block = {
                    "type": "tool_result",
                    "tool_use_id": message["tool_call_id"],
                    "content": message.get("content", ""),
                }
                previous = formatted[-1] if formatted else None
                if (
                    previous
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                    and all(b.get("type") == "tool_result" for b in previous["content"])
                ):
                    previous["content"].append(block)
                else:
                    formatted.append({"role": "user", "content": [block]})
                continue

            if role == "assistant" and message.get("tool_calls"):
                blocks: list[dict[str, Any]] = []
                if message.get("content"):
                    blocks.append({"type": "text", "text": message["content"]})
                for call in message["tool_calls"]:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": call["id"],
                            "name": call["name"],
                            "input": call.get("arguments", {}),
                        }
                    )
                formatted.append({"role": "assistant", "content": blocks})
                continue

            formatted.append({"role": role, "content": message.get("content", "")})
        return formatted

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
        """Send a chat completion request to Anthropic.

        Raises:
            LLMRateLimitError: If the API rate limit is exceeded.
            LLMTimeoutError: If the request times out.
            LLMAPIError: For any other API failure.
        """
        used_model = model or self.default_model

        request_params: dict[str, Any] = {
            "model": used_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": self.format_messages(messages),
        }

        if system_prompt:
            request_params["system"] = system_prompt
        if tools:
            request_params["tools"] = self.format_tools(tools)

        request_params.update(kwargs)

        try:
            response = await self._async_client.messages.create(**request_params)
        except anthropic.RateLimitError as e:
            raise LLMRateLimitError(provider=self.provider_name, cause=e) from e
        except anthropic.APITimeoutError as e:
            raise LLMTimeoutError(
                timeout_seconds=_timeout_seconds(self._async_client.timeout),
                provider=self.provider_name,
                cause=e,
            ) from e
        except anthropic.APIError as e:
            raise LLMAPIError(
                f"Anthropic API error: {e}",
                provider=self.provider_name,
                model=used_model,
                cause=e,
            ) from e

        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCall(id=block.id, name=block.name, arguments=dict(block.input))
                )

        return LLMResponse(
            content="".join(text_parts),
            model=response.model,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
            finish_reason=response.stop_reason,
            tool_calls=tool_calls,
            raw_response=response,
        )

    async def close(self) -> None:
        await self._async_client.close()


def _timeout_seconds(timeout: Any) -> float:
    """Best-effort seconds value for an SDK timeout setting."""
    if isinstance(timeout, (int, float)):
        return float(timeout)
    return float(getattr(timeout, "read", None) or 0.0)
