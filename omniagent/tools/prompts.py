"""list_prompts / get_prompt - Discover and expand provider prompts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from omniagent.tools.base import Capability, RunContext

if TYPE_CHECKING:
    from omniagent.core.capabilities import CapabilityRegistry


class ListPromptsArgs(BaseModel):
    server: str | None = Field(default=None, description="Only list prompts of this server")
    name_filter: str | None = Field(
        default=None, description="Case-insensitive substring of the prompt name"
    )

    model_config = {"extra": "forbid"}


class GetPromptArgs(BaseModel):
    server: str = Field(..., min_length=1, description="The server exposing the prompt")
    name: str = Field(..., min_length=1, description="The prompt name")
    arguments: dict[str, Any] | None = Field(
        default=None, description="Arguments to pass to the prompt"
    )
    version: str | None = Field(default=None, description="Specific version of the prompt")

    model_config = {"extra": "forbid"}


class ListPromptsCapability(Capability):
    name = "list_prompts"
    description = "List the prompts available from connected capability servers"
    args_model = ListPromptsArgs

    def __init__(self, registry: CapabilityRegistry) -> None:
        self._registry = registry

    async def run(self, args: ListPromptsArgs, run_context: RunContext) -> dict[str, Any]:
        entries = self._registry.list_prompts(
            provider_id=args.server, name_contains=args.name_filter
        )
        prompts = []
        for entry in entries:
            summary = entry.to_summary()
            if entry.arguments_schema:
                summary["arguments"] = entry.arguments_schema
            prompts.append(summary)
        return {"prompts": prompts, "count": len(prompts)}


class GetPromptCapability(Capability):
    name = "get_prompt"
    description = (
        "Get a prompt from a capability server, expanded with the given arguments"
    )
    args_model = GetPromptArgs

    def __init__(self, registry: CapabilityRegistry) -> None:
        self._registry = registry

    async def run(self, args: GetPromptArgs, run_context: RunContext) -> dict[str, Any]:
        prompt = await self._registry.get_prompt(
            args.server, args.name, args.arguments, args.version
        )
        return {
            "server": prompt.provider_id,
            "name": prompt.name,
            "description": prompt.description,
            "version": prompt.version,
            "messages": [message.model_dump() for message in prompt.messages],
            "formatted": prompt.format_transcript(),
        }
