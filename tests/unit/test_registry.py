"""Agent registry unit tests."""

import pytest

from omniagent.agents import Agent
from omniagent.core.registry import (
    AgentAlreadyExistsError,
    AgentNotFoundError,
    AgentRegistry,
)
from omniagent.models import AgentStatus
from tests.conftest import make_agent_config


def make_agent(agent_id: str, scripted_llm) -> Agent:
    return Agent(make_agent_config(agent_id), llm_provider=scripted_llm)


class TestAgentRegistry:
    """Test AgentRegistry class."""

    @pytest.mark.asyncio
    async def test_register_and_get(self, agent_registry, scripted_llm):
        agent = make_agent("email_agent", scripted_llm)

        info = await agent_registry.register(agent)

        assert info.agent_id == "email_agent"
        assert info.status == AgentStatus.ACTIVE
        assert await agent_registry.get("email_agent") is agent
        assert "email_agent" in agent_registry
        assert len(agent_registry) == 1

    @pytest.mark.asyncio
    async def test_register_duplicate(self, agent_registry, scripted_llm):
        await agent_registry.register(make_agent("email_agent", scripted_llm))

        with pytest.raises(AgentAlreadyExistsError):
            await agent_registry.register(make_agent("email_agent", scripted_llm))

    @pytest.mark.asyncio
    async def test_get_unknown(self, agent_registry):
        with pytest.raises(AgentNotFoundError) as exc_info:
            await agent_registry.get("ghost")

        assert exc_info.value.agent_id == "ghost"

    @pytest.mark.asyncio
    async def test_unregister(self, agent_registry, scripted_llm):
        await agent_registry.register(make_agent("email_agent", scripted_llm))

        assert await agent_registry.unregister("email_agent") is True
        assert await agent_registry.unregister("email_agent") is False
        assert "email_agent" not in agent_registry

    @pytest.mark.asyncio
    async def test_list_all_and_health(self, agent_registry, scripted_llm):
        healthy = make_agent("email_agent", scripted_llm)
        sleeping = make_agent("weather_agent", scripted_llm)
        sleeping.deactivate()
        await agent_registry.register(healthy)
        await agent_registry.register(sleeping)

        infos = await agent_registry.list_all()
        health = await agent_registry.health_check_all()

        assert [info.agent_id for info in infos] == ["email_agent", "weather_agent"]
        assert health["email_agent"]["status"] == "healthy"
        assert health["weather_agent"]["status"] == "unhealthy"
        assert (await agent_registry.get_info("weather_agent")).status == AgentStatus.INACTIVE
