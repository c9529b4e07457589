"""list_resources / read_resource - Browse provider resources."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from omniagent.tools.base import Capability, RunContext

if TYPE_CHECKING:
    from omniagent.core.capabilities import CapabilityRegistry


class ListResourcesArgs(BaseModel):
    server: str | None = Field(default=None, description="Only list resources of this server")
    mime_type: str | None = Field(default=None, description="Only list this MIME type")

    model_config = {"extra": "forbid"}


class ReadResourceArgs(BaseModel):
    server: str = Field(..., min_length=1, description="The server exposing the resource")
    uri: str = Field(..., min_length=1, description="The resource URI")

    model_config = {"extra": "forbid"}


class ListResourcesCapability(Capability):
    name = "list_resources"
    description = "List the resources available from connected capability servers"
    args_model = ListResourcesArgs

    def __init__(self, registry: CapabilityRegistry) -> None:
        self._registry = registry

    async def run(self, args: ListResourcesArgs, run_context: RunContext) -> dict[str, Any]:
        entries = self._registry.list_resources(provider_id=args.server, mime_type=args.mime_type)
        return {"resources": [entry.to_summary() for entry in entries], "count": len(entries)}


class ReadResourceCapability(Capability):
    name = "read_resource"
    description = "Read the content of a resource from a capability server"
    args_model = ReadResourceArgs

    def __init__(self, registry: CapabilityRegistry) -> None:
        self._registry = registry

    async def run(self, args: ReadResourceArgs, run_context: RunContext) -> dict[str, Any]:
        contents = await self._registry.read_resource(args.server, args.uri)
        return {
            "server": contents.provider_id,
            "uri": contents.uri,
            "mime_type": contents.mime_type,
            "content": contents.content,
        }
