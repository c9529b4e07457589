"""Delegation Router - Run one task against a named sub-agent.

Every delegation produces exactly one ``DelegationResult``. Failures are
returned as data, never raised, so the calling agent can decide whether to
retry, pick another agent, or apologize. The router itself never retries.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import Mapping, Sequence

from omniagent.agents.base import GenerationOptions
from omniagent.core.registry import AgentNotFoundError, AgentRegistry
from omniagent.models import DelegationRequest, DelegationResult
from omniagent.tools.base import RunContext
from omniagent.utils.logging import get_logger
from omniagent.utils.observability import LangfuseClient, get_observability_client

logger = get_logger(__name__)

DEFAULT_AGENT_MAP: dict[str, str] = {
    "email": "email_agent",
    "calendar": "calendar_agent",
    "web_search": "web_search_agent",
    "weather": "weather_agent",
    "project": "project_agent",
    "analytics": "analytics_agent",
}


def build_delegation_message(request: DelegationRequest) -> str:
    """Task text, followed by the serialized context when one is given."""
    if request.context is None:
        return request.task
    context = request.context.model_dump(mode="json", exclude_none=True)
    return f"{request.task}\n\nAdditional Context: {json.dumps(context, ensure_ascii=False)}"


class DelegationRouter:
    """Routes delegation requests to sub-agents in the agent registry.

    Attributes:
        agent_map: Delegation key (as the model names it) to agent id.
        temperature: Sampling temperature for every delegated call.
        max_steps: Step ceiling for every delegated call.
    """

    def __init__(
        self,
        agents: AgentRegistry,
        agent_map: Mapping[str, str] | None = None,
        temperature: float = 0.7,
        max_steps: int = 3,
        observability: LangfuseClient | None = None,
    ) -> None:
        self._agents = agents
        self.agent_map = dict(agent_map if agent_map is not None else DEFAULT_AGENT_MAP)
        self.temperature = temperature
        self.max_steps = max_steps
        self._observability = observability

    @property
    def agent_keys(self) -> list[str]:
        return list(self.agent_map)

    def resolve(self, agent_key: str) -> str | None:
        """Map a delegation key to an agent id, or None when unknown."""
        return self.agent_map.get(agent_key)

    def _options(self, run_context: RunContext) -> GenerationOptions:
        return GenerationOptions(
            thread_id=run_context.thread_id,
            resource_id=run_context.resource_id,
            max_steps=self.max_steps,
            temperature=self.temperature,
            run_context=run_context,
        )

    async def delegate(
        self, request: DelegationRequest, run_context: RunContext | None = None
    ) -> DelegationResult:
        """Execute one delegation. Never raises for delegation failures."""
        run_context = run_context or RunContext()
        key = request.target_agent
        agent_id = self.resolve(key)

        if agent_id is None:
            logger.warning("Delegation to unknown agent type", agent=key)
            result = DelegationResult.failed(key, f"unknown agent type: {key}")
            run_context.record_delegation(key, request, result)
            return result

        obs = self._observability or get_observability_client()
        span_id = str(uuid.uuid4())
        if run_context.correlation_id:
            obs.start_span(
                span_id,
                run_context.correlation_id,
                name=f"delegate:{key}",
                input_data={"task": request.task},
                metadata={"agent_id": agent_id},
            )

        logger.info(
            "Delegating task",
            agent=key,
            agent_id=agent_id,
            thread_id=run_context.thread_id,
            max_steps=self.max_steps,
        )

        try:
            agent = await self._agents.get(agent_id)
        except AgentNotFoundError:
            result = DelegationResult.failed(
                agent_id, f"agent {agent_id} not found or not initialized"
            )
        else:
            try:
                generation = await agent.generate(
                    build_delegation_message(request), self._options(run_context)
                )
                result = DelegationResult.succeeded(
                    agent_id,
                    generation.text,
                    tools_used=[call.name for call in generation.tool_calls],
                )
            except Exception as e:
                result = DelegationResult.failed(agent_id, str(e) or type(e).__name__)

        if result.success:
            logger.info(
                "Delegation completed",
                agent_id=agent_id,
                tools_used=result.metadata.tools_used,
            )
            obs.end_span(span_id, output=result.result)
        else:
            logger.warning("Delegation failed", agent_id=agent_id, error=result.error)
            obs.end_span(
                span_id, output={"error": result.error}, status="error", level="ERROR"
            )

        run_context.record_delegation(key, request, result)
        return result

    async def delegate_many(
        self,
        requests: Sequence[DelegationRequest],
        run_context: RunContext | None = None,
    ) -> list[DelegationResult]:
        """Run independent delegations concurrently. Results keep request order."""
        run_context = run_context or RunContext()
        return list(
            await asyncio.gather(*(self.delegate(request, run_context) for request in requests))
        )
