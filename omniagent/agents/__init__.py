"""Agents: tool-augmented generation and YAML-driven construction."""

from omniagent.agents.base import (
    Agent,
    ExecutedToolCall,
    GenerationOptions,
    GenerationResult,
)
from omniagent.agents.loader import (
    AgentConfigError,
    AgentLoader,
    AgentLoadError,
    validate_yaml_schema,
)

__all__ = [
    "Agent",
    "GenerationOptions",
    "GenerationResult",
    "ExecutedToolCall",
    "AgentLoader",
    "AgentLoadError",
    "AgentConfigError",
    "validate_yaml_schema",
]
