"""Conversation memory: thread storage, working memory and history processors."""

from omniagent.memory.base import WORKING_MEMORY_TEMPLATE, MemoryStore, ThreadNotFoundError
from omniagent.memory.in_memory import InMemoryMemoryStore
from omniagent.memory.processors import (
    MemoryProcessor,
    MessageSummarizer,
    RoleFilter,
    TokenLimiter,
    ToolCallFilter,
    apply_processors,
    default_processors,
)

__all__ = [
    "MemoryStore",
    "InMemoryMemoryStore",
    "ThreadNotFoundError",
    "WORKING_MEMORY_TEMPLATE",
    "MemoryProcessor",
    "RoleFilter",
    "ToolCallFilter",
    "MessageSummarizer",
    "TokenLimiter",
    "apply_processors",
    "default_processors",
]
