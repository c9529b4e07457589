"""delegate_task - Hand a task to a specialized sub-agent."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from omniagent.llm.base import ToolSpec
from omniagent.models import DelegationContext, DelegationRequest
from omniagent.tools.base import Capability, CapabilityType, RunContext

if TYPE_CHECKING:
    from omniagent.core.delegation import DelegationRouter


class DelegateTaskArgs(BaseModel):
    agent: str = Field(..., min_length=1, description="The specialized agent to delegate to")
    task: str = Field(
        ..., min_length=1, description="Clear description of the task to be performed"
    )
    context: DelegationContext | None = Field(
        default=None, description="Additional context for the task"
    )

    model_config = {"extra": "forbid"}


class DelegateTaskCapability(Capability):
    """Delegates through the router. Failures come back as data."""

    name = "delegate_task"
    description = "Delegate a task to a specialized sub-agent for execution"
    kind = CapabilityType.AGENT
    args_model = DelegateTaskArgs

    def __init__(self, router: DelegationRouter) -> None:
        self._router = router

    def spec(self) -> ToolSpec:
        spec = super().spec()
        parameters = dict(spec.parameters)
        properties = dict(parameters.get("properties", {}))
        properties["agent"] = {**properties.get("agent", {}), "enum": self._router.agent_keys}
        parameters["properties"] = properties
        return ToolSpec(name=spec.name, description=spec.description, parameters=parameters)

    async def run(self, args: DelegateTaskArgs, run_context: RunContext) -> dict[str, Any]:
        request = DelegationRequest(target_agent=args.agent, task=args.task, context=args.context)
        result = await self._router.delegate(request, run_context)
        return result.model_dump(mode="json", exclude_none=True)
