"""Tests for LLM provider abstraction layer."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from omniagent.llm import (
    AnthropicProvider,
    LLMProviderFactory,
    LLMResponse,
    OpenAIProvider,
    ToolCall,
    ToolSpec,
)

CONVERSATION = [
    {"role": "system", "content": "ignored by anthropic"},
    {"role": "user", "content": "Weather in Seoul and Busan?"},
    {
        "role": "assistant",
        "content": "Checking.",
        "tool_calls": [
            {"id": "c1", "name": "get_forecast", "arguments": {"city": "Seoul"}},
            {"id": "c2", "name": "get_forecast", "arguments": {"city": "Busan"}},
        ],
    },
    {"role": "tool", "tool_call_id": "c1", "name": "get_forecast", "content": "sunny"},
    {"role": "tool", "tool_call_id": "c2", "name": "get_forecast", "content": "rain"},
]

FORECAST = ToolSpec(
    name="get_forecast",
    description="Weather forecast",
    parameters={"type": "object", "properties": {"city": {"type": "string"}}},
)


class TestLLMResponse:
    """Tests for LLMResponse dataclass."""

    def test_response_with_defaults(self):
        """Test response with default values."""
        response = LLMResponse(content="test", model="model")
        assert response.usage == {}
        assert response.finish_reason is None
        assert response.tool_calls == []
        assert response.raw_response is None

    def test_tool_call_to_dict(self):
        call = ToolCall(id="c1", name="echo", arguments={"text": "hi"})
        assert call.to_dict() == {"id": "c1", "name": "echo", "arguments": {"text": "hi"}}


class TestAnthropicProvider:
    """Tests for AnthropicProvider."""

    def test_provider_name(self):
        """Test provider name property."""
        with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key"}):
            provider = AnthropicProvider()
            assert provider.provider_name == "anthropic"
            assert "claude-sonnet-4-20250514" in provider.get_available_models()

    def test_format_tools(self):
        assert AnthropicProvider.format_tools([FORECAST]) == [
            {
                "name": "get_forecast",
                "description": "Weather forecast",
                "input_schema": FORECAST.parameters,
            }
        ]

    def test_format_messages_merges_tool_results(self):
        formatted = AnthropicProvider.format_messages(CONVERSATION)

        assert formatted == [
            {"role": "user", "content": "Weather in Seoul and Busan?"},
            {
                "role": "assistant",
                "content": [
                    {"type": "text", "text": "Checking."},
                    {"type": "tool_use", "id": "c1", "name": "get_forecast",
                     "input": {"city": "Seoul"}},
                    {"type": "tool_use", "id": "c2", "name": "get_forecast",
                     "input": {"city": "Busan"}},
                ],
            },
            {
                "role": "user",
                "content": [
                    {"type": "tool_result", "tool_use_id": "c1", "content": "sunny"},
                    {"type": "tool_result", "tool_use_id": "c2", "content": "rain"},
                ],
            },
        ]

    @pytest.mark.asyncio
    async def test_chat_parses_tool_use(self):
        """Test chat completion call with a tool use block."""
        provider = AnthropicProvider(api_key="test-key")
        response = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Let me check."),
                SimpleNamespace(
                    type="tool_use", id="tu_1", name="get_forecast", input={"city": "Seoul"}
                ),
            ],
            model="claude-haiku-4-5-20251001",
            usage=SimpleNamespace(input_tokens=5, output_tokens=3),
            stop_reason="tool_use",
        )
        provider._async_client.messages.create = AsyncMock(return_value=response)

        result = await provider.chat(
            messages=[{"role": "user", "content": "Hi"}],
            system_prompt="Be brief.",
            tools=[FORECAST],
        )

        kwargs = provider._async_client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Be brief."
        assert kwargs["tools"][0]["name"] == "get_forecast"
        assert result.content == "Let me check."
        assert result.tool_calls == [
            ToolCall(id="tu_1", name="get_forecast", arguments={"city": "Seoul"})
        ]
        assert result.usage == {"input_tokens": 5, "output_tokens": 3}
        assert result.finish_reason == "tool_use"


class TestOpenAIProvider:
    """Tests for OpenAIProvider."""

    def test_provider_name(self):
        with patch.dict("os.environ", {"OPENAI_API_KEY": "test-key"}):
            provider = OpenAIProvider()
            assert provider.provider_name == "openai"
            assert provider.default_model == "gpt-4o-mini"

    def test_format_tools(self):
        assert OpenAIProvider.format_tools([FORECAST]) == [
            {
                "type": "function",
                "function": {
                    "name": "get_forecast",
                    "description": "Weather forecast",
                    "parameters": FORECAST.parameters,
                },
            }
        ]

    def test_format_messages(self):
        formatted = OpenAIProvider.format_messages(CONVERSATION[1:], system_prompt="Be brief.")

        assert formatted[0] == {"role": "system", "content": "Be brief."}
        assert formatted[2]["tool_calls"][0] == {
            "id": "c1",
            "type": "function",
            "function": {"name": "get_forecast", "arguments": '{"city": "Seoul"}'},
        }
        assert formatted[3] == {"role": "tool", "tool_call_id": "c1", "content": "sunny"}
        assert len(formatted) == 5

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (None, {}),
            ("", {}),
            ('{"city": "Seoul"}', {"city": "Seoul"}),
            ("[1, 2]", {"value": [1, 2]}),
            ("{not json", {"_raw": "{not json"}),
        ],
    )
    def test_parse_arguments(self, raw, expected):
        assert OpenAIProvider._parse_arguments(raw) == expected

    @pytest.mark.asyncio
    async def test_chat_parses_tool_calls(self):
        provider = OpenAIProvider(api_key="test-key")
        response = SimpleNamespace(
            choices=[
                SimpleNamespace(
                    finish_reason="tool_calls",
                    message=SimpleNamespace(
                        content=None,
                        tool_calls=[
                            SimpleNamespace(
                                id="call_1",
                                function=SimpleNamespace(
                                    name="get_forecast", arguments='{"city": "Busan"}'
                                ),
                            )
                        ],
                    ),
                )
            ],
            model="gpt-4o-mini",
            usage=SimpleNamespace(prompt_tokens=7, completion_tokens=2),
        )
        provider._async_client.chat.completions.create = AsyncMock(return_value=response)

        result = await provider.chat(messages=[{"role": "user", "content": "Hi"}])

        assert result.content == ""
        assert result.tool_calls[0].arguments == {"city": "Busan"}
        assert result.usage == {"input_tokens": 7, "output_tokens": 2}


class TestLLMProviderFactory:
    """Tests for LLMProviderFactory."""

    @pytest.mark.parametrize(
        ("model", "provider"),
        [
            ("claude-sonnet-4-20250514", "anthropic"),
            ("gpt-4o", "openai"),
            ("o3-mini", "openai"),
            ("llama-3", None),
        ],
    )
    def test_provider_for_model(self, model, provider):
        assert LLMProviderFactory.get_provider_for_model(model) == provider

    def test_create_infers_provider(self):
        provider = LLMProviderFactory.create(model="claude-haiku-4-5-20251001", api_key="k")

        assert isinstance(provider, AnthropicProvider)

    def test_create_defaults_to_openai(self):
        provider = LLMProviderFactory.create(api_key="k")

        assert isinstance(provider, OpenAIProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            LLMProviderFactory.create(provider="upstage", api_key="k")
