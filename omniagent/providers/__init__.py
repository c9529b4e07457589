"""Capability providers: servers exposing tools, resources and prompts."""

from omniagent.providers.base import CapabilityProvider
from omniagent.providers.mcp import (
    MCPCapabilityProvider,
    MCPServerConfig,
    load_provider_configs,
    resolve_env,
)
from omniagent.providers.static import (
    StaticCapabilityProvider,
    StaticPrompt,
    StaticResource,
    StaticTool,
)

__all__ = [
    "CapabilityProvider",
    "StaticCapabilityProvider",
    "StaticTool",
    "StaticResource",
    "StaticPrompt",
    "MCPCapabilityProvider",
    "MCPServerConfig",
    "load_provider_configs",
    "resolve_env",
]
