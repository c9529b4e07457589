"""Core orchestration: capability registry, relevance, analysis, delegation, coordination."""

from omniagent.core.analyzer import DEFAULT_DOMAINS, Domain, TaskAnalyzer
from omniagent.core.capabilities import CapabilityRegistry, ProviderSnapshot
from omniagent.core.coordinator import Coordinator
from omniagent.core.delegation import (
    DEFAULT_AGENT_MAP,
    DelegationRouter,
    build_delegation_message,
)
from omniagent.core.registry import (
    AgentAlreadyExistsError,
    AgentNotFoundError,
    AgentRegistry,
)
from omniagent.core.relevance import (
    KeywordRelevanceScorer,
    RelevanceReport,
    RelevanceScorer,
    suggestions_for,
)

__all__ = [
    "CapabilityRegistry",
    "ProviderSnapshot",
    "RelevanceScorer",
    "KeywordRelevanceScorer",
    "RelevanceReport",
    "suggestions_for",
    "TaskAnalyzer",
    "Domain",
    "DEFAULT_DOMAINS",
    "AgentRegistry",
    "AgentNotFoundError",
    "AgentAlreadyExistsError",
    "DelegationRouter",
    "DEFAULT_AGENT_MAP",
    "build_delegation_message",
    "Coordinator",
]
