"""In-process capability provider built from Python definitions.

Useful for local tools that do not warrant a separate server, and for tests.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from omniagent.models import (
    CapabilityEntry,
    CapabilityKind,
    PromptMessage,
    PromptResult,
    ResourceContent,
    ResourceContents,
    ToolCallResult,
)
from omniagent.providers.base import CapabilityProvider


@dataclass
class StaticTool:
    """A local callable exposed as a tool. Sync and async handlers both work."""

    name: str
    handler: Callable[..., Any]
    description: str = ""
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


@dataclass
class StaticResource:
    """Fixed resource content. Set ``data`` for binary content."""

    uri: str
    name: str
    text: str | None = None
    data: bytes | None = None
    mime_type: str | None = None
    description: str | None = None


@dataclass
class StaticPrompt:
    """A prompt template expanded with ``str.format`` style arguments."""

    name: str
    messages: list[tuple[str, str]]
    description: str | None = None
    version: str | None = None
    arguments: list[str] = field(default_factory=list)
    required: list[str] = field(default_factory=list)


class StaticCapabilityProvider(CapabilityProvider):
    """Capability provider backed by in-process definitions."""

    def __init__(
        self,
        provider_id: str,
        tools: list[StaticTool] | None = None,
        resources: list[StaticResource] | None = None,
        prompts: list[StaticPrompt] | None = None,
    ) -> None:
        super().__init__(provider_id)
        self._tools = {tool.name: tool for tool in tools or []}
        self._resources = {resource.uri: resource for resource in resources or []}
        self._prompts = list(prompts or [])

    async def list_tools(self) -> list[CapabilityEntry]:
        return [
            CapabilityEntry(
                kind=CapabilityKind.TOOL,
                provider_id=self.provider_id,
                name=tool.name,
                description=tool.description or None,
                arguments_schema=tool.input_schema,
            )
            for tool in self._tools.values()
        ]

    async def list_resources(self) -> list[CapabilityEntry]:
        return [
            CapabilityEntry(
                kind=CapabilityKind.RESOURCE,
                provider_id=self.provider_id,
                name=resource.name,
                uri=resource.uri,
                mime_type=resource.mime_type,
                description=resource.description,
            )
            for resource in self._resources.values()
        ]

    async def list_prompts(self) -> list[CapabilityEntry]:
        entries = []
        for prompt in self._prompts:
            schema = {
                "type": "object",
                "properties": {arg: {"type": "string"} for arg in prompt.arguments},
                "required": list(prompt.required),
            }
            entries.append(
                CapabilityEntry(
                    kind=CapabilityKind.PROMPT,
                    provider_id=self.provider_id,
                    name=prompt.name,
                    description=prompt.description,
                    version=prompt.version,
                    arguments_schema=schema,
                )
            )
        return entries

    async def read_resource(self, uri: str) -> ResourceContents:
        resource = self._resources.get(uri)
        if resource is None:
            raise LookupError(f"resource not found: {uri}")

        if resource.data is not None:
            part = ResourceContent.binary_placeholder(
                uri, resource.mime_type, size=len(resource.data)
            )
        else:
            part = ResourceContent(
                uri=uri, mime_type=resource.mime_type, text=resource.text or ""
            )
        return ResourceContents(provider_id=self.provider_id, uri=uri, contents=[part])

    def _find_prompt(self, name: str, version: str | None) -> StaticPrompt:
        candidates = [p for p in self._prompts if p.name == name]
        if version is not None:
            candidates = [p for p in candidates if p.version == version]
        if not candidates:
            suffix = f" (version {version})" if version else ""
            raise LookupError(f"prompt not found: {name}{suffix}")
        # Later registrations win when no version is requested.
        return candidates[-1]

    async def get_prompt(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        version: str | None = None,
    ) -> PromptResult:
        prompt = self._find_prompt(name, version)
        args = arguments or {}
        missing = [arg for arg in prompt.required if arg not in args]
        if missing:
            raise ValueError(f"missing prompt arguments: {', '.join(missing)}")

        values = {arg: "" for arg in prompt.arguments}
        values.update({key: str(value) for key, value in args.items()})
        try:
            messages = [
                PromptMessage(role=role, content=template.format_map(values))
                for role, template in prompt.messages
            ]
        except KeyError as e:
            raise ValueError(f"missing prompt argument: {e.args[0]}") from e

        return PromptResult(
            provider_id=self.provider_id,
            name=prompt.name,
            description=prompt.description,
            version=prompt.version,
            messages=messages,
        )

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> ToolCallResult:
        tool = self._tools.get(name)
        if tool is None:
            raise LookupError(f"tool not found: {name}")

        result = tool.handler(**(arguments or {}))
        if inspect.isawaitable(result):
            result = await result

        if isinstance(result, str):
            return ToolCallResult(provider_id=self.provider_id, name=name, content=result)
        return ToolCallResult(
            provider_id=self.provider_id,
            name=name,
            content=json.dumps(result, default=str),
            data=result,
        )
