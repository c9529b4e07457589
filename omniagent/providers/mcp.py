"""Model Context Protocol capability provider.

Connects to one MCP server over stdio, SSE or streamable HTTP using the
official ``mcp`` SDK and maps its tools, resources and prompts onto
``omniagent.models`` types.
"""

from __future__ import annotations

import os
import re
from contextlib import AsyncExitStack
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

import yaml
from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client
from pydantic import AnyUrl, BaseModel, Field, model_validator

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
from omniagent.utils.exceptions import ConfigurationError
from omniagent.utils.logging import get_provider_logger

_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def resolve_env(value: Any) -> Any:
    """Replace ``${VAR}`` references in strings, lists and dicts."""
    if isinstance(value, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, list):
        return [resolve_env(item) for item in value]
    if isinstance(value, dict):
        return {key: resolve_env(item) for key, item in value.items()}
    return value


class MCPServerConfig(BaseModel):
    """Connection settings for one MCP server."""

    name: str = Field(..., min_length=1, description="Provider id")
    transport: Literal["stdio", "sse", "streamable_http"] = Field(default="stdio")
    command: str | None = Field(default=None, description="Executable (stdio)")
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    url: str | None = Field(default=None, description="Endpoint (sse, streamable_http)")
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout (s)")
    enabled: bool = Field(default=True)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def check_transport(self) -> MCPServerConfig:
        if self.transport == "stdio" and not self.command:
            raise ValueError(f"server {self.name}: stdio transport needs 'command'")
        if self.transport != "stdio" and not self.url:
            raise ValueError(f"server {self.name}: {self.transport} transport needs 'url'")
        return self


def load_provider_configs(path: str | Path) -> list[MCPServerConfig]:
    """Load enabled MCP server configs from a YAML file.

    The file has a top-level ``servers`` mapping keyed by provider id.
    ``${VAR}`` references are resolved from the environment.

    Raises:
        ConfigurationError: If the file is malformed.
    """
    config_path = Path(path)
    if not config_path.exists():
        return []

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Provider config must be a mapping: {path}")

    configs = []
    for name, raw in (data.get("servers") or {}).items():
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Server '{name}' config must be a mapping")
        if not raw.get("enabled", True):
            continue
        try:
            configs.append(MCPServerConfig(name=name, **resolve_env(raw)))
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid configuration for server '{name}'", cause=e
            ) from e
    return configs


class MCPCapabilityProvider(CapabilityProvider):
    """Capability provider backed by an MCP client session."""

    def __init__(self, config: MCPServerConfig) -> None:
        super().__init__(config.name)
        self.config = config
        self._stack: AsyncExitStack | None = None
        self._session: ClientSession | None = None
        self._capabilities: Any = None
        self._logger = get_provider_logger(config.name)

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    async def _open_transport(self, stack: AsyncExitStack) -> tuple[Any, Any]:
        cfg = self.config
        if cfg.transport == "stdio":
            params = StdioServerParameters(
                command=cfg.command or "",
                args=cfg.args,
                env={**os.environ, **cfg.env},
            )
            return await stack.enter_async_context(stdio_client(params))
        if cfg.transport == "sse":
            return await stack.enter_async_context(
                sse_client(cfg.url or "", headers=cfg.headers or None, timeout=cfg.timeout)
            )
        read, write, _session_id = await stack.enter_async_context(
            streamablehttp_client(
                cfg.url or "",
                headers=cfg.headers or None,
                timeout=timedelta(seconds=cfg.timeout),
            )
        )
        return read, write

    async def connect(self) -> None:
        if self._session is not None:
            return

        stack = AsyncExitStack()
        try:
            read, write = await self._open_transport(stack)
            session = await stack.enter_async_context(
                ClientSession(
                    read, write, read_timeout_seconds=timedelta(seconds=self.config.timeout)
                )
            )
            init = await session.initialize()
        except BaseException:
            await stack.aclose()
            raise

        self._stack = stack
        self._session = session
        self._capabilities = init.capabilities
        self._logger.info(
            "MCP server connected",
            transport=self.config.transport,
            server=getattr(init.serverInfo, "name", None),
        )

    async def close(self) -> None:
        stack, self._stack = self._stack, None
        self._session = None
        self._capabilities = None
        if stack is not None:
            await stack.aclose()
            self._logger.info("MCP server disconnected")

    async def _require_session(self) -> ClientSession:
        if self._session is None:
            await self.connect()
        assert self._session is not None
        return self._session

    def _supports(self, feature: str) -> bool:
        if self._capabilities is None:
            return True
        return getattr(self._capabilities, feature, None) is not None

    async def list_tools(self) -> list[CapabilityEntry]:
        session = await self._require_session()
        if not self._supports("tools"):
            return []
        result = await session.list_tools()
        return [
            CapabilityEntry(
                kind=CapabilityKind.TOOL,
                provider_id=self.provider_id,
                name=tool.name,
                description=tool.description,
                arguments_schema=tool.inputSchema,
            )
            for tool in result.tools
        ]

    async def list_resources(self) -> list[CapabilityEntry]:
        session = await self._require_session()
        if not self._supports("resources"):
            return []
        result = await session.list_resources()
        return [
            CapabilityEntry(
                kind=CapabilityKind.RESOURCE,
                provider_id=self.provider_id,
                name=resource.name or str(resource.uri),
                uri=str(resource.uri),
                mime_type=resource.mimeType,
                description=resource.description,
            )
            for resource in result.resources
        ]

    async def list_prompts(self) -> list[CapabilityEntry]:
        session = await self._require_session()
        if not self._supports("prompts"):
            return []
        result = await session.list_prompts()
        entries = []
        for prompt in result.prompts:
            arguments = prompt.arguments or []
            schema = {
                "type": "object",
                "properties": {
                    arg.name: {"type": "string", "description": arg.description or ""}
                    for arg in arguments
                },
                "required": [arg.name for arg in arguments if arg.required],
            }
            entries.append(
                CapabilityEntry(
                    kind=CapabilityKind.PROMPT,
                    provider_id=self.provider_id,
                    name=prompt.name,
                    description=prompt.description,
                    arguments_schema=schema,
                )
            )
        return entries

    async def read_resource(self, uri: str) -> ResourceContents:
        session = await self._require_session()
        result = await session.read_resource(AnyUrl(uri))
        parts = []
        for item in result.contents:
            text = getattr(item, "text", None)
            if text is not None:
                parts.append(
                    ResourceContent(uri=str(item.uri), mime_type=item.mimeType, text=text)
                )
            else:
                blob = getattr(item, "blob", "") or ""
                # base64 length is roughly 4/3 of the decoded size
                parts.append(
                    ResourceContent.binary_placeholder(
                        str(item.uri), item.mimeType, size=len(blob) * 3 // 4
                    )
                )
        return ResourceContents(provider_id=self.provider_id, uri=uri, contents=parts)

    async def get_prompt(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        version: str | None = None,
    ) -> PromptResult:
        # MCP prompts are unversioned; the requested version is only echoed back.
        session = await self._require_session()
        args = {key: str(value) for key, value in (arguments or {}).items()}
        result = await session.get_prompt(name, arguments=args)
        messages = [
            PromptMessage(role=str(message.role), content=_content_text(message.content))
            for message in result.messages
        ]
        return PromptResult(
            provider_id=self.provider_id,
            name=name,
            description=result.description,
            version=version,
            messages=messages,
        )

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> ToolCallResult:
        session = await self._require_session()
        result = await session.call_tool(name, arguments or {})
        text = "\n".join(_content_text(item) for item in result.content)
        if result.isError:
            raise RuntimeError(text or f"tool {name} reported an error")
        return ToolCallResult(
            provider_id=self.provider_id,
            name=name,
            content=text,
            data=getattr(result, "structuredContent", None),
        )


def _content_text(content: Any) -> str:
    """Flatten an MCP content block to text. Binary blocks become placeholders."""
    kind = getattr(content, "type", None)
    if kind == "text":
        return content.text
    if kind in ("image", "audio"):
        return f"[Binary content: {content.mimeType}]"
    if kind == "resource":
        inner = content.resource
        text = getattr(inner, "text", None)
        if text is not None:
            return text
        return f"[Binary content: {inner.mimeType or 'application/octet-stream'}]"
    return str(content)
