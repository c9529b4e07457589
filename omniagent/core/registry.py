"""Agent Registry - Sub-agent registration and lookup.

Agents are constructed up front and registered here; the delegation router
and coordinator resolve them by id at call time. This is the explicit
dependency graph that replaces lazy imports between the orchestrator and its
sub-agents.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from omniagent.models import AgentInfo

if TYPE_CHECKING:
    from omniagent.agents.base import Agent


class AgentNotFoundError(Exception):
    """Raised when an agent is not found in the registry."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"Agent not found: {agent_id}")


class AgentAlreadyExistsError(Exception):
    """Raised when trying to register an agent that already exists."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"Agent already exists: {agent_id}")


class AgentRegistry:
    """Registry for managing agents.

    Safe for concurrent access from multiple requests.
    """

    def __init__(self) -> None:
        self._agents: dict[str, Agent] = {}
        self._lock = asyncio.Lock()

    async def register(self, agent: Agent) -> AgentInfo:
        """Register an agent.

        Raises:
            AgentAlreadyExistsError: If an agent with the same ID already exists.
        """
        async with self._lock:
            agent_id = agent.config.agent_id
            if agent_id in self._agents:
                raise AgentAlreadyExistsError(agent_id)
            self._agents[agent_id] = agent
            return agent.info()

    async def unregister(self, agent_id: str) -> bool:
        """Unregister an agent. Returns False if it was not registered."""
        async with self._lock:
            return self._agents.pop(agent_id, None) is not None

    async def get(self, agent_id: str) -> Agent:
        """Get an agent by ID.

        Raises:
            AgentNotFoundError: If the agent is not found.
        """
        async with self._lock:
            if agent_id not in self._agents:
                raise AgentNotFoundError(agent_id)
            return self._agents[agent_id]

    async def get_info(self, agent_id: str) -> AgentInfo:
        """Get agent info by ID.

        Raises:
            AgentNotFoundError: If the agent is not found.
        """
        agent = await self.get(agent_id)
        return agent.info()

    async def list_all(self) -> list[AgentInfo]:
        """List all registered agents."""
        async with self._lock:
            return [agent.info() for agent in self._agents.values()]

    async def health_check_all(self) -> dict[str, dict[str, Any]]:
        """Health of every registered agent, keyed by agent id."""
        async with self._lock:
            agents = dict(self._agents)
        return {agent_id: agent.health_check() for agent_id, agent in agents.items()}

    def __len__(self) -> int:
        """Return the number of registered agents."""
        return len(self._agents)

    def __contains__(self, agent_id: str) -> bool:
        """Check if an agent is registered."""
        return agent_id in self._agents
