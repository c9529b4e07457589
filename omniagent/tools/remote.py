"""Remote tools - Provider tools exposed to agents as capabilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from omniagent.llm.base import ToolSpec
from omniagent.models import CapabilityEntry
from omniagent.tools.base import Capability, RunContext, safe_tool_name

if TYPE_CHECKING:
    from omniagent.core.capabilities import CapabilityRegistry

DOMAIN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "email": ("email", "mail", "message", "inbox", "compose", "send"),
    "calendar": ("calendar", "event", "meeting", "schedule", "appointment"),
    "web": ("web", "search", "browse", "scrape", "fetch", "http"),
    "weather": ("weather", "forecast", "temperature", "climate"),
}

ALL_DOMAINS = "*"


class RemoteToolArgs(BaseModel):
    """Arguments are validated by the provider against its own schema."""

    model_config = {"extra": "allow"}


class RemoteToolCapability(Capability):
    """One provider tool, invoked through the capability registry."""

    args_model = RemoteToolArgs

    def __init__(self, registry: CapabilityRegistry, entry: CapabilityEntry) -> None:
        self._registry = registry
        self.entry = entry
        self.name = safe_tool_name(f"{entry.provider_id}_{entry.name}")
        self.description = entry.description or f"{entry.name} tool from {entry.provider_id}"

    def spec(self) -> ToolSpec:
        parameters = self.entry.arguments_schema or {"type": "object", "properties": {}}
        return ToolSpec(name=self.name, description=self.description, parameters=parameters)

    async def run(self, args: RemoteToolArgs, run_context: RunContext) -> Any:
        result = await self._registry.call_tool(
            self.entry.provider_id, self.entry.name, args.model_dump()
        )
        if result.data is not None:
            return {"content": result.content, "data": result.data}
        return result.content


def matches_domain(entry: CapabilityEntry, domain: str) -> bool:
    """Whether a tool's name or description mentions one of the domain keywords."""
    if domain == ALL_DOMAINS:
        return True
    keywords = DOMAIN_KEYWORDS.get(domain, (domain,))
    name = entry.name.lower()
    description = (entry.description or "").lower()
    return any(keyword in name or keyword in description for keyword in keywords)


def remote_tools_for_domain(
    registry: CapabilityRegistry, domain: str
) -> list[RemoteToolCapability]:
    """Wrap the registry's current tools that belong to a domain."""
    return [
        RemoteToolCapability(registry, entry)
        for entry in registry.list_tools()
        if matches_domain(entry, domain)
    ]


class ListToolsArgs(BaseModel):
    server: str | None = Field(default=None, description="Only list tools of this server")

    model_config = {"extra": "forbid"}


class ListToolsCapability(Capability):
    name = "list_tools"
    description = "List the tools available from connected capability servers"
    args_model = ListToolsArgs

    def __init__(self, registry: CapabilityRegistry) -> None:
        self._registry = registry

    async def run(self, args: ListToolsArgs, run_context: RunContext) -> dict[str, Any]:
        entries = self._registry.list_tools(provider_id=args.server)
        return {"tools": [entry.to_summary() for entry in entries], "count": len(entries)}
