"""Data models package.

This module defines all data models used in the OmniAgent system.
"""

from .agent import (
    AgentConfig,
    AgentInfo,
    AgentStatus,
)
from .capability import (
    CapabilityEntry,
    CapabilityKind,
    PromptMessage,
    PromptResult,
    QueryType,
    RankedCapability,
    RelevanceScore,
    ResourceContent,
    ResourceContents,
    ToolCallResult,
)
from .conversation import (
    ConversationThread,
    MessageRole,
    ThreadMessage,
)
from .coordination import (
    CoordinationContext,
    CoordinationRequest,
    CoordinationResult,
)
from .task import (
    Complexity,
    DelegationContext,
    DelegationMetadata,
    DelegationRequest,
    DelegationResult,
    Priority,
    TaskAnalysis,
)

__all__ = [
    # Agent models
    "AgentConfig",
    "AgentInfo",
    "AgentStatus",
    # Capability models
    "CapabilityEntry",
    "CapabilityKind",
    "QueryType",
    "RelevanceScore",
    "RankedCapability",
    "ResourceContent",
    "ResourceContents",
    "PromptMessage",
    "PromptResult",
    "ToolCallResult",
    # Conversation models
    "ConversationThread",
    "ThreadMessage",
    "MessageRole",
    # Task models
    "Complexity",
    "Priority",
    "TaskAnalysis",
    "DelegationContext",
    "DelegationRequest",
    "DelegationMetadata",
    "DelegationResult",
    # Coordination models
    "CoordinationContext",
    "CoordinationRequest",
    "CoordinationResult",
]
