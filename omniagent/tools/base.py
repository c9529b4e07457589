"""Capability - Uniform interface for everything an agent can invoke.

Tools and sub-agents are both capabilities: each has a name, a description,
a pydantic argument model and an ``invoke`` method. Arguments are validated
before any I/O takes place.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from omniagent.llm.base import ToolSpec
from omniagent.models import DelegationRequest, DelegationResult, Priority
from omniagent.utils.exceptions import ValidationError

_UNSAFE_NAME = re.compile(r"[^a-zA-Z0-9_-]")


def safe_tool_name(name: str) -> str:
    """Make a name acceptable to LLM tool-calling APIs."""
    return _UNSAFE_NAME.sub("_", name)[:64]


class CapabilityType(str, Enum):
    """What kind of callee stands behind a capability."""

    TOOL = "tool"
    AGENT = "agent"


@dataclass
class DelegationRecord:
    """One completed delegation within a request."""

    agent_key: str
    request: DelegationRequest
    result: DelegationResult


@dataclass
class RunContext:
    """Ambient context shared by every capability invoked for one request.

    The same thread and resource ids flow through the whole delegation chain
    so sub-agents see the parent conversation.
    """

    user_id: str | None = None
    thread_id: str | None = None
    resource_id: str | None = None
    priority: Priority | None = None
    timeout: float | None = None
    correlation_id: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)
    delegations: list[DelegationRecord] = field(default_factory=list)

    def record_delegation(
        self, agent_key: str, request: DelegationRequest, result: DelegationResult
    ) -> None:
        self.delegations.append(DelegationRecord(agent_key, request, result))

    def successful_delegations(self) -> list[DelegationRecord]:
        return [record for record in self.delegations if record.result.success]


class Capability(ABC):
    """Abstract base class for invocable capabilities."""

    name: str = ""
    description: str = ""
    kind: CapabilityType = CapabilityType.TOOL
    args_model: type[BaseModel]

    def spec(self) -> ToolSpec:
        """Tool definition advertised to the model."""
        return ToolSpec(
            name=self.name,
            description=self.description,
            parameters=self.args_model.model_json_schema(),
        )

    def parse_args(self, args: dict[str, Any] | None) -> BaseModel:
        """Validate raw arguments against ``args_model``.

        Raises:
            ValidationError: If the arguments do not match.
        """
        try:
            return self.args_model.model_validate(args or {})
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid arguments for {self.name}",
                errors=e.errors(include_url=False, include_context=False),
            ) from e

    async def invoke(self, args: dict[str, Any] | None, run_context: RunContext) -> Any:
        """Validate arguments, then run the capability."""
        parsed = self.parse_args(args)
        return await self.run(parsed, run_context)

    @abstractmethod
    async def run(self, args: Any, run_context: RunContext) -> Any:
        """Execute with validated arguments. Result must be JSON-serializable."""
