"""OpenAI LLM Provider implementation.

This module provides the OpenAI chat completions integration. Any
OpenAI-compatible endpoint can be used by passing ``base_url``.
"""

from __future__ import annotations

import json
import os
from typing import Any

import openai
from openai import AsyncOpenAI

from omniagent.llm.base import BaseLLMProvider, LLMResponse, ToolCall, ToolSpec
from omniagent.utils.exceptions import LLMAPIError, LLMRateLimitError, LLMTimeoutError
from omniagent.utils.logging import get_logger

logger = get_logger(__name__)


class OpenAIProvider(BaseLLMProvider):
    """OpenAI chat completions provider."""

    AVAILABLE_MODELS = [
        "gpt-4o",
        "gpt-4o-mini",
        "gpt-4.1",
        "gpt-4.1-mini",
    ]

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the OpenAI provider.

        Args:
            api_key: OpenAI API key. If None, reads from OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
            **kwargs: Additional configuration.
        """
        resolved_api_key = api_key or os.getenv("OPENAI_API_KEY", "")
        super().__init__(api_key=resolved_api_key, **kwargs)

        self._base_url = base_url or os.getenv("OPENAI_BASE_URL") or None
        self._async_client = AsyncOpenAI(
            api_key=resolved_api_key,
            base_url=self._base_url,
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "openai"

    @property
    def default_model(self) -> str:
        """Return the default model."""
        return "gpt-4o-mini"

    def get_available_models(self) -> list[str]:
        """Return list of available OpenAI models."""
        return self.AVAILABLE_MODELS.copy()

    @staticmethod
    def format_tools(tools: list[ToolSpec]) -> list[dict[str, Any]]:
        """Convert tool specs to OpenAI function definitions."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in tools
        ]

    @staticmethod
    def format_messages(
        messages: list[dict[str, Any]], system_prompt: str | None = None
    ) -> list[dict[str, Any]]:
        """Convert provider-neutral messages to chat completion messages."""
        formatted: list[dict[str, Any]] = []
        if system_prompt:
            formatted.append({"role": "system", "content": system_prompt})

        for message in messages:
            role = message["role"]
            if role == "tool":
                formatted.append(
                    {
                        "role": "tool",
                        "tool_call_id": message["tool_call_id"],
                        "content": message.get("content", ""),
                    }
                )
            elif role == "assistant" and message.get("tool_calls"):
                formatted.append(
                    {
                        "role": "assistant",
                        "content": message.get("content") or None,
                        "tool_calls": [
                            {
                                "id": call["id"],
                                "type": "function",
                                "function": {
                                    "name": call["name"],
                                    "arguments": json.dumps(call.get("arguments", {})),
                                },
                            }
                            for call in message["tool_calls"]
                        ],
                    }
                )
            else:
                formatted.append({"role": role, "content": message.get("content", "")})
        return formatted

    @staticmethod
    def _parse_arguments(raw: str | None) -> dict[str, Any]:
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Model returned malformed tool arguments", raw=raw[:200])
            return {"_raw": raw}
        return parsed if isinstance(parsed, dict) else {"value": parsed}

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

        Raises:
            LLMRateLimitError: If the API rate limit is exceeded.
            LLMTimeoutError: If the request times out.
            LLMAPIError: For any other API failure.
        """
        used_model = model or self.default_model

        request_params: dict[str, Any] = {
            "model": used_model,
            "messages": self.format_messages(messages, system_prompt),
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": False,
        }
        if tools:
            request_params["tools"] = self.format_tools(tools)
        request_params.update(kwargs)

        try:
            response = await self._async_client.chat.completions.create(
                **request_params
            )
        except openai.RateLimitError as e:
            raise LLMRateLimitError(provider=self.provider_name, cause=e) from e
        except openai.APITimeoutError as e:
            raise LLMTimeoutError(
                timeout_seconds=0.0, provider=self.provider_name, cause=e
            ) from e
        except openai.APIError as e:
            raise LLMAPIError(
                f"OpenAI API error: {e}",
                provider=self.provider_name,
                model=used_model,
                cause=e,
            ) from e

        content = ""
        tool_calls: list[ToolCall] = []
        finish_reason = None
        if response.choices:
            choice = response.choices[0]
            finish_reason = choice.finish_reason
            content = choice.message.content or ""
            for call in choice.message.tool_calls or []:
                tool_calls.append(
                    ToolCall(
                        id=call.id,
                        name=call.function.name,
                        arguments=self._parse_arguments(call.function.arguments),
                    )
                )

        usage = {}
        if response.usage:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }

        return LLMResponse(
            content=content,
            model=response.model,
            usage=usage,
            finish_reason=finish_reason,
            tool_calls=tool_calls,
            raw_response=response,
        )

    async def close(self) -> None:
        await self._async_client.close()
