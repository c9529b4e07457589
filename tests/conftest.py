"""테스트 공통 설정 및 fixtures.

실제 LLM 호출 없이 동작하도록 ScriptedLLMProvider를 사용합니다.
"""

import copy
import inspect
import itertools
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from omniagent.agents import Agent
from omniagent.core import CapabilityRegistry, DelegationRouter
from omniagent.core.registry import AgentRegistry
from omniagent.llm import BaseLLMProvider, LLMResponse, ToolCall, ToolSpec
from omniagent.memory import InMemoryMemoryStore
from omniagent.models import AgentConfig
from omniagent.providers import (
    StaticCapabilityProvider,
    StaticPrompt,
    StaticResource,
    StaticTool,
)
from omniagent.utils.observability import reset_observability

PROJECT_ROOT = Path(__file__).parent.parent
AGENTS_DIR = PROJECT_ROOT / "configs" / "agents"

_call_ids = itertools.count(1)


def text_response(content: str, model: str = "scripted-model") -> LLMResponse:
    """도구 호출 없는 최종 응답."""
    return LLMResponse(
        content=content,
        model=model,
        usage={"input_tokens": 10, "output_tokens": 5},
        finish_reason="end_turn",
    )


def tool_response(*calls: tuple[str, dict[str, Any]], content: str = "") -> LLMResponse:
    """도구 호출을 요청하는 응답."""
    return LLMResponse(
        content=content,
        model="scripted-model",
        usage={"input_tokens": 10, "output_tokens": 5},
        finish_reason="tool_use",
        tool_calls=[
            ToolCall(id=f"call_{next(_call_ids)}", name=name, arguments=arguments)
            for name, arguments in calls
        ],
    )


class ScriptedLLMProvider(BaseLLMProvider):
    """미리 정한 응답을 순서대로 돌려주는 LLM Provider.

    ``handler``가 있으면 호출 정보를 받아 응답을 만들고, 없으면 ``responses``
    큐에서 꺼냅니다. 응답 자리에 예외를 넣으면 그 예외를 발생시킵니다.
    """

    def __init__(
        self,
        responses: list[LLMResponse | Exception] | None = None,
        handler: Callable[[dict[str, Any]], Any] | None = None,
    ) -> None:
        super().__init__(api_key="test-key")
        self.responses = list(responses or [])
        self.handler = handler
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    @property
    def provider_name(self) -> str:
        return "scripted"

    @property
    def default_model(self) -> str:
        return "scripted-model"

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
        call = {
            "messages": copy.deepcopy(messages),
            "model": model,
            "temperature": temperature,
            "system_prompt": system_prompt or "",
            "tools": [tool.name for tool in tools or []],
        }
        self.calls.append(call)

        if self.handler is not None:
            response = self.handler(call)
            if inspect.isawaitable(response):
                response = await response
        elif self.responses:
            response = self.responses.pop(0)
        else:
            response = text_response("done")

        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


def make_agent_config(agent_id: str, **overrides: Any) -> AgentConfig:
    """테스트용 AgentConfig 생성 helper."""
    data: dict[str, Any] = {
        "agent_id": agent_id,
        "name": agent_id.replace("_", " ").title(),
        "model": "scripted-model",
        "system_prompt": f"You are {agent_id}.",
    }
    data.update(overrides)
    return AgentConfig(**data)


def build_docs_provider() -> StaticCapabilityProvider:
    """문서 리소스와 프롬프트를 노출하는 Provider."""
    return StaticCapabilityProvider(
        "docs",
        resources=[
            StaticResource(
                uri="file:///docs/slack-guide.md",
                name="slack-guide",
                text="# Slack guide\nConnect a workspace first.",
                mime_type="text/markdown",
                description="How to use the Slack integration",
            ),
            StaticResource(
                uri="file:///config/settings.json",
                name="settings",
                text='{"theme": "dark"}',
                mime_type="application/json",
            ),
            StaticResource(
                uri="file:///assets/logo.png",
                name="logo",
                data=b"\x89PNG\r\n\x1a\n" + b"\x00" * 24,
                mime_type="image/png",
            ),
        ],
        prompts=[
            StaticPrompt(
                name="slack-digest",
                description="Summarize Slack activity",
                messages=[("user", "Summarize activity in #{channel} for {period}.")],
                arguments=["channel", "period"],
                required=["channel"],
            ),
            StaticPrompt(
                name="github-pr-review",
                description="Review GitHub pull requests",
                messages=[("user", "Review pull request {number}.")],
                arguments=["number"],
            ),
            StaticPrompt(
                name="status-report",
                description="Weekly status report",
                version="1",
                messages=[("user", "Write a status report (v1) for {team}.")],
                arguments=["team"],
            ),
            StaticPrompt(
                name="status-report",
                description="Weekly status report",
                version="2",
                messages=[
                    ("system", "You write concise reports."),
                    ("user", "Write a status report (v2) for {team}."),
                ],
                arguments=["team"],
            ),
        ],
    )


def build_tools_provider() -> StaticCapabilityProvider:
    """원격 도구를 노출하는 Provider."""

    async def get_forecast(city: str, days: int = 1) -> dict[str, Any]:
        return {"city": city, "days": days, "forecast": "sunny"}

    def send_email(to: str, subject: str) -> str:
        return f"sent '{subject}' to {to}"

    def create_event(title: str) -> str:
        raise RuntimeError("calendar backend offline")

    return StaticCapabilityProvider(
        "workspace",
        tools=[
            StaticTool(
                name="get_forecast",
                handler=get_forecast,
                description="Weather forecast for a city",
                input_schema={
                    "type": "object",
                    "properties": {
                        "city": {"type": "string"},
                        "days": {"type": "integer"},
                    },
                    "required": ["city"],
                },
            ),
            StaticTool(
                name="send_email",
                handler=send_email,
                description="Send an email message",
            ),
            StaticTool(
                name="create_event",
                handler=create_event,
                description="Create a calendar event",
            ),
        ],
    )


@pytest.fixture(autouse=True)
def _reset_observability():
    """전역 observability 클라이언트 초기화."""
    reset_observability()
    yield
    reset_observability()


@pytest.fixture
def scripted_llm() -> ScriptedLLMProvider:
    """응답 큐가 비어 있는 ScriptedLLMProvider fixture."""
    return ScriptedLLMProvider()


@pytest.fixture
def memory() -> InMemoryMemoryStore:
    """InMemoryMemoryStore fixture."""
    return InMemoryMemoryStore()


@pytest.fixture
def docs_provider() -> StaticCapabilityProvider:
    return build_docs_provider()


@pytest.fixture
def tools_provider() -> StaticCapabilityProvider:
    return build_tools_provider()


@pytest_asyncio.fixture
async def capability_registry(
    docs_provider: StaticCapabilityProvider,
    tools_provider: StaticCapabilityProvider,
) -> AsyncGenerator[CapabilityRegistry, None]:
    """refresh까지 마친 CapabilityRegistry fixture."""
    registry = CapabilityRegistry([docs_provider, tools_provider])
    await registry.refresh()
    yield registry
    await registry.close_all()


@pytest.fixture
def agent_registry() -> AgentRegistry:
    return AgentRegistry()


@pytest.fixture
def router(agent_registry: AgentRegistry) -> DelegationRouter:
    return DelegationRouter(agent_registry)


@pytest_asyncio.fixture
async def calendar_agent(
    agent_registry: AgentRegistry,
    scripted_llm: ScriptedLLMProvider,
    memory: InMemoryMemoryStore,
) -> AsyncGenerator[Agent, None]:
    """등록된 calendar_agent fixture."""
    agent = Agent(
        make_agent_config("calendar_agent", temperature=0.4, max_steps=4),
        llm_provider=scripted_llm,
        memory=memory,
    )
    await agent_registry.register(agent)
    yield agent
