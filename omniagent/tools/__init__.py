"""Capabilities agents can invoke: built-in tools, delegation and remote tools."""

from omniagent.tools.base import (
    Capability,
    CapabilityType,
    DelegationRecord,
    RunContext,
    safe_tool_name,
)
from omniagent.tools.delegation import DelegateTaskArgs, DelegateTaskCapability
from omniagent.tools.discovery import FindRelevantArgs, FindRelevantCapability
from omniagent.tools.memory import (
    SearchMemoryArgs,
    SearchMemoryCapability,
    UpdateWorkingMemoryArgs,
    UpdateWorkingMemoryCapability,
)
from omniagent.tools.planner import PlanTaskArgs, PlanTaskCapability
from omniagent.tools.prompts import (
    GetPromptArgs,
    GetPromptCapability,
    ListPromptsArgs,
    ListPromptsCapability,
)
from omniagent.tools.remote import (
    DOMAIN_KEYWORDS,
    ListToolsCapability,
    RemoteToolCapability,
    matches_domain,
    remote_tools_for_domain,
)
from omniagent.tools.resources import (
    ListResourcesArgs,
    ListResourcesCapability,
    ReadResourceArgs,
    ReadResourceCapability,
)
from omniagent.tools.toolkit import build_toolkit

__all__ = [
    "Capability",
    "CapabilityType",
    "DelegationRecord",
    "RunContext",
    "safe_tool_name",
    "DelegateTaskArgs",
    "DelegateTaskCapability",
    "FindRelevantArgs",
    "FindRelevantCapability",
    "ListResourcesArgs",
    "ListResourcesCapability",
    "ReadResourceArgs",
    "ReadResourceCapability",
    "ListPromptsArgs",
    "ListPromptsCapability",
    "GetPromptArgs",
    "GetPromptCapability",
    "SearchMemoryArgs",
    "SearchMemoryCapability",
    "UpdateWorkingMemoryArgs",
    "UpdateWorkingMemoryCapability",
    "PlanTaskArgs",
    "PlanTaskCapability",
    "ListToolsCapability",
    "RemoteToolCapability",
    "DOMAIN_KEYWORDS",
    "matches_domain",
    "remote_tools_for_domain",
    "build_toolkit",
]
