"""Capability Registry - Uniform view over every capability provider.

The registry keeps one immutable snapshot per provider. A refresh builds the
new snapshot completely before publishing it, so readers never observe a
half-updated provider. Listing operations are synchronous reads of the
published snapshots; only refresh, read_resource, get_prompt and call_tool
perform I/O.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from omniagent.models import (
    CapabilityEntry,
    PromptResult,
    ResourceContents,
    ToolCallResult,
)
from omniagent.providers.base import CapabilityProvider
from omniagent.utils.exceptions import (
    PromptUnavailableError,
    ResourceUnavailableError,
    ToolExecutionError,
    ValidationError,
)
from omniagent.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProviderSnapshot:
    """Everything one provider exposed at its last successful refresh."""

    provider_id: str
    tools: tuple[CapabilityEntry, ...] = ()
    resources: tuple[CapabilityEntry, ...] = ()
    prompts: tuple[CapabilityEntry, ...] = ()
    refreshed_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def _dedupe(provider_id: str, entries: Iterable[CapabilityEntry]) -> tuple[CapabilityEntry, ...]:
    seen: set[tuple[str, str, str, str | None]] = set()
    unique = []
    for entry in entries:
        if entry.provider_id != provider_id:
            entry = entry.model_copy(update={"provider_id": provider_id})
        if entry.key in seen:
            logger.warning(
                "Duplicate capability entry dropped",
                provider_id=provider_id,
                kind=entry.kind.value,
                name=entry.name,
                version=entry.version,
            )
            continue
        seen.add(entry.key)
        unique.append(entry)
    return tuple(unique)


class CapabilityRegistry:
    """Registry of capability providers and their published snapshots."""

    def __init__(self, providers: Iterable[CapabilityProvider] | None = None) -> None:
        self._providers: dict[str, CapabilityProvider] = {}
        self._snapshots: Mapping[str, ProviderSnapshot] = MappingProxyType({})
        self._lock = asyncio.Lock()
        for provider in providers or []:
            self.add_provider(provider)

    # ------------------------------------------------------------------
    # Provider management
    # ------------------------------------------------------------------

    def add_provider(self, provider: CapabilityProvider) -> None:
        """Register a provider. Its listings stay empty until refreshed.

        Raises:
            ValidationError: If a provider with the same id is registered.
        """
        if provider.provider_id in self._providers:
            raise ValidationError(f"Provider already registered: {provider.provider_id}")
        self._providers[provider.provider_id] = provider

    async def remove_provider(self, provider_id: str) -> bool:
        """Unregister a provider and drop its snapshot."""
        async with self._lock:
            provider = self._providers.pop(provider_id, None)
            if provider is None:
                return False
            snapshots = dict(self._snapshots)
            snapshots.pop(provider_id, None)
            self._snapshots = MappingProxyType(snapshots)
        return True

    @property
    def provider_ids(self) -> list[str]:
        return list(self._providers)

    def get_provider(self, provider_id: str) -> CapabilityProvider | None:
        return self._providers.get(provider_id)

    def get_snapshot(self, provider_id: str) -> ProviderSnapshot | None:
        return self._snapshots.get(provider_id)

    async def connect_all(self) -> dict[str, bool]:
        """Connect every provider concurrently. Failures are logged, not raised."""
        providers = list(self._providers.values())
        results = await asyncio.gather(
            *(provider.connect() for provider in providers), return_exceptions=True
        )
        status = {}
        for provider, result in zip(providers, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(
                    "Capability provider failed to connect",
                    provider_id=provider.provider_id,
                    error=str(result),
                )
                status[provider.provider_id] = False
            elif isinstance(result, BaseException):
                raise result
            else:
                status[provider.provider_id] = True
        return status

    async def close_all(self) -> None:
        """Close every provider. Errors are logged."""
        for provider in self._providers.values():
            try:
                await provider.close()
            except Exception as e:
                logger.warning(
                    "Error closing capability provider",
                    provider_id=provider.provider_id,
                    error=str(e),
                )

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def _pull(self, provider: CapabilityProvider) -> ProviderSnapshot:
        tools, resources, prompts = await asyncio.gather(
            provider.list_tools(),
            provider.list_resources(),
            provider.list_prompts(),
        )
        pid = provider.provider_id
        return ProviderSnapshot(
            provider_id=pid,
            tools=_dedupe(pid, tools),
            resources=_dedupe(pid, resources),
            prompts=_dedupe(pid, prompts),
        )

    async def refresh(self, provider_id: str | None = None) -> None:
        """Pull listings from one or all providers.

        Unreachable providers are skipped with a warning and contribute
        empty listings; refresh never fails because of a single provider.

        Raises:
            ValidationError: If ``provider_id`` names an unknown provider.
        """
        if provider_id is not None:
            if provider_id not in self._providers:
                raise ValidationError(f"Unknown capability provider: {provider_id}")
            targets = [self._providers[provider_id]]
        else:
            targets = list(self._providers.values())

        results = await asyncio.gather(
            *(self._pull(provider) for provider in targets), return_exceptions=True
        )

        async with self._lock:
            snapshots = dict(self._snapshots)
            for provider, result in zip(targets, results, strict=True):
                pid = provider.provider_id
                if isinstance(result, ProviderSnapshot):
                    snapshots[pid] = result
                    logger.info(
                        "Capability provider refreshed",
                        provider_id=pid,
                        tools=len(result.tools),
                        resources=len(result.resources),
                        prompts=len(result.prompts),
                    )
                elif isinstance(result, Exception):
                    snapshots.pop(pid, None)
                    logger.warning(
                        "Capability provider unavailable during refresh",
                        provider_id=pid,
                        error=str(result),
                    )
                else:
                    raise result
            self._snapshots = MappingProxyType(snapshots)

    # ------------------------------------------------------------------
    # Listings (local reads)
    # ------------------------------------------------------------------

    def _ordered_snapshots(self, provider_id: str | None) -> list[ProviderSnapshot]:
        snapshots = self._snapshots
        if provider_id is not None:
            snapshot = snapshots.get(provider_id)
            return [snapshot] if snapshot else []
        return [snapshots[pid] for pid in self._providers if pid in snapshots]

    def list_resources(
        self, provider_id: str | None = None, mime_type: str | None = None
    ) -> list[CapabilityEntry]:
        return [
            entry
            for snapshot in self._ordered_snapshots(provider_id)
            for entry in snapshot.resources
            if mime_type is None or entry.mime_type == mime_type
        ]

    def list_prompts(
        self, provider_id: str | None = None, name_contains: str | None = None
    ) -> list[CapabilityEntry]:
        needle = name_contains.lower() if name_contains else None
        return [
            entry
            for snapshot in self._ordered_snapshots(provider_id)
            for entry in snapshot.prompts
            if needle is None or needle in entry.name.lower()
        ]

    def list_tools(self, provider_id: str | None = None) -> list[CapabilityEntry]:
        return [
            entry
            for snapshot in self._ordered_snapshots(provider_id)
            for entry in snapshot.tools
        ]

    # ------------------------------------------------------------------
    # Proxied operations (network I/O)
    # ------------------------------------------------------------------

    @staticmethod
    def _require(value: str, name: str) -> None:
        if not value or not value.strip():
            raise ValidationError(f"{name} must not be empty")

    async def read_resource(self, provider_id: str, uri: str) -> ResourceContents:
        """Read a resource through its provider.

        Raises:
            ValidationError: If the arguments are malformed.
            ResourceUnavailableError: If the provider is unknown or unreachable,
                or the URI does not exist.
        """
        self._require(provider_id, "provider_id")
        self._require(uri, "uri")
        if ":" not in uri or any(ch.isspace() for ch in uri):
            raise ValidationError(f"Invalid resource URI: {uri}")

        provider = self._providers.get(provider_id)
        if provider is None:
            raise ResourceUnavailableError(provider_id, uri, reason="unknown provider")

        try:
            return await provider.read_resource(uri)
        except Exception as e:
            logger.warning(
                "Resource read failed", provider_id=provider_id, uri=uri, error=str(e)
            )
            raise ResourceUnavailableError(provider_id, uri, reason=str(e), cause=e) from e

    async def get_prompt(
        self,
        provider_id: str,
        name: str,
        arguments: dict[str, Any] | None = None,
        version: str | None = None,
    ) -> PromptResult:
        """Expand a prompt through its provider.

        Raises:
            ValidationError: If the arguments are malformed.
            PromptUnavailableError: If the provider is unknown or unreachable,
                or the prompt does not exist.
        """
        self._require(provider_id, "provider_id")
        self._require(name, "name")

        provider = self._providers.get(provider_id)
        if provider is None:
            raise PromptUnavailableError(provider_id, name, reason="unknown provider")

        try:
            return await provider.get_prompt(name, arguments or {}, version)
        except Exception as e:
            logger.warning(
                "Prompt expansion failed", provider_id=provider_id, name=name, error=str(e)
            )
            raise PromptUnavailableError(provider_id, name, reason=str(e), cause=e) from e

    async def call_tool(
        self, provider_id: str, name: str, arguments: dict[str, Any] | None = None
    ) -> ToolCallResult:
        """Invoke a tool through its provider.

        Raises:
            ValidationError: If the arguments are malformed.
            ToolExecutionError: If the provider or tool is unknown, or the call fails.
        """
        self._require(provider_id, "provider_id")
        self._require(name, "name")

        provider = self._providers.get(provider_id)
        if provider is None:
            raise ToolExecutionError(provider_id, name, reason="unknown provider")

        snapshot = self._snapshots.get(provider_id)
        if snapshot is not None and not any(t.name == name for t in snapshot.tools):
            raise ToolExecutionError(provider_id, name, reason="unknown tool")

        try:
            return await provider.call_tool(name, arguments or {})
        except Exception as e:
            logger.warning(
                "Tool call failed", provider_id=provider_id, name=name, error=str(e)
            )
            raise ToolExecutionError(provider_id, name, reason=str(e), cause=e) from e

    def __len__(self) -> int:
        """Return the number of registered providers."""
        return len(self._providers)

    def __contains__(self, provider_id: str) -> bool:
        """Check if a provider is registered."""
        return provider_id in self._providers
