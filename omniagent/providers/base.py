"""Capability Provider - Abstract interface for tool/resource/prompt servers.

A provider is one server exposing tools, resources and prompts through a
uniform discovery/invocation surface. Providers raise freely on failure;
the capability registry is responsible for turning failures into the
documented error contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from omniagent.models import (
    CapabilityEntry,
    PromptResult,
    ResourceContents,
    ToolCallResult,
)


class CapabilityProvider(ABC):
    """Abstract base class for capability providers."""

    def __init__(self, provider_id: str) -> None:
        if not provider_id:
            raise ValueError("provider_id must not be empty")
        self._provider_id = provider_id

    @property
    def provider_id(self) -> str:
        """Return the provider (server) name."""
        return self._provider_id

    async def connect(self) -> None:
        """Open the underlying connection. Default is a no-op."""
        return None

    async def close(self) -> None:
        """Close the underlying connection. Default is a no-op."""
        return None

    async def __aenter__(self) -> CapabilityProvider:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @abstractmethod
    async def list_tools(self) -> list[CapabilityEntry]:
        """List the tools this provider exposes."""

    @abstractmethod
    async def list_resources(self) -> list[CapabilityEntry]:
        """List the resources this provider exposes."""

    @abstractmethod
    async def list_prompts(self) -> list[CapabilityEntry]:
        """List the prompts this provider exposes."""

    @abstractmethod
    async def read_resource(self, uri: str) -> ResourceContents:
        """Read one resource by URI."""

    @abstractmethod
    async def get_prompt(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        version: str | None = None,
    ) -> PromptResult:
        """Expand a prompt into its message sequence."""

    @abstractmethod
    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> ToolCallResult:
        """Invoke a tool.

        Raises:
            Exception: Any failure, including a tool-reported error.
        """
