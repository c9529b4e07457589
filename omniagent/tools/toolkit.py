"""Built-in toolkit keyed by the names agent configs refer to."""

from __future__ import annotations

from typing import TYPE_CHECKING

from omniagent.tools.base import Capability
from omniagent.tools.delegation import DelegateTaskCapability
from omniagent.tools.discovery import FindRelevantCapability
from omniagent.tools.memory import SearchMemoryCapability, UpdateWorkingMemoryCapability
from omniagent.tools.planner import PlanTaskCapability
from omniagent.tools.prompts import GetPromptCapability, ListPromptsCapability
from omniagent.tools.remote import ListToolsCapability
from omniagent.tools.resources import ListResourcesCapability, ReadResourceCapability

if TYPE_CHECKING:
    from omniagent.core.analyzer import TaskAnalyzer
    from omniagent.core.capabilities import CapabilityRegistry
    from omniagent.core.delegation import DelegationRouter
    from omniagent.core.relevance import RelevanceScorer
    from omniagent.memory import MemoryStore


def build_toolkit(
    registry: CapabilityRegistry,
    scorer: RelevanceScorer,
    router: DelegationRouter | None = None,
    top_k: int = 5,
    memory: MemoryStore | None = None,
    analyzer: TaskAnalyzer | None = None,
) -> dict[str, Capability]:
    """Instantiate every built-in capability.

    ``delegate_task`` is only available when a router is given, the memory
    capabilities only with a memory store and ``plan_task`` only with an
    analyzer.
    """
    capabilities: list[Capability] = [
        FindRelevantCapability(registry, scorer, top_k=top_k),
        ListResourcesCapability(registry),
        ReadResourceCapability(registry),
        ListPromptsCapability(registry),
        GetPromptCapability(registry),
        ListToolsCapability(registry),
    ]
    if router is not None:
        capabilities.insert(0, DelegateTaskCapability(router))
    if memory is not None:
        capabilities.append(SearchMemoryCapability(memory))
        capabilities.append(UpdateWorkingMemoryCapability(memory))
    if analyzer is not None:
        capabilities.append(PlanTaskCapability(analyzer))
    return {capability.name: capability for capability in capabilities}
