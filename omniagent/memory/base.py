"""Memory Store - Conversation thread storage interface.

Threads are append-only message logs keyed by (resource_id, thread_id).
Working memory is a mutable markdown document scoped to a user or a thread.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from omniagent.models import ConversationThread, ThreadMessage


class ThreadNotFoundError(Exception):
    """Raised when a thread is not found in the store."""

    def __init__(self, thread_id: str):
        self.thread_id = thread_id
        super().__init__(f"Thread not found: {thread_id}")


WORKING_MEMORY_TEMPLATE = """# User Profile

## Personal Information
- **Name**:
- **Location**:
- **Timezone**:
- **Primary Language**:
- **Communication Style**: [Formal/Casual/Professional]

## Preferences
- **Email Management**: [Priority levels, filtering preferences]
- **Calendar Preferences**: [Meeting duration preferences, buffer times]
- **Project Management Style**: [Tools used, organization methods]
- **Work Hours**:
- **Notification Preferences**:

## Current Context
- **Active Projects**:
- **Key Deadlines**:
- **Important Contacts**:

## Learned Patterns
- **Common Tasks**: [Frequently requested actions]
- **Communication Patterns**: [Email response patterns, meeting scheduling habits]
- **Tool Usage**: [Preferred applications and workflows]

## Session State
- **Last Task**:
- **Pending Actions**:
"""


class MemoryStore(ABC):
    """Abstract conversation memory.

    Implementations own message ordering: messages saved to a thread are
    returned by ``query`` in the order they were saved.
    """

    @abstractmethod
    async def create_thread(
        self,
        resource_id: str,
        thread_id: str | None = None,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ConversationThread:
        """Create a thread, or return the existing one with the same id."""

    @abstractmethod
    async def get_thread(self, thread_id: str) -> ConversationThread | None:
        """Return a thread by id, or None."""

    @abstractmethod
    async def get_threads_by_resource_id(
        self, resource_id: str
    ) -> list[ConversationThread]:
        """Return the user's threads, most recently updated first."""

    @abstractmethod
    async def save_messages(self, messages: list[ThreadMessage]) -> None:
        """Append messages, creating their threads when missing.

        A message whose resource does not own its thread is rejected with
        ``ValidationError``.
        """

    @abstractmethod
    async def query(
        self,
        thread_id: str,
        resource_id: str | None = None,
        last: int | None = None,
    ) -> list[ThreadMessage]:
        """Return a thread's messages in order, optionally only the last N."""

    @abstractmethod
    async def delete_messages(self, message_ids: list[str]) -> int:
        """Delete messages by id and return how many were removed."""

    @abstractmethod
    async def get_working_memory(
        self, resource_id: str, thread_id: str | None = None
    ) -> str:
        """Return the working-memory document for the configured scope."""

    @abstractmethod
    async def update_working_memory(
        self, resource_id: str, content: str, thread_id: str | None = None
    ) -> None:
        """Replace the working-memory document for the configured scope."""

    async def close(self) -> None:
        """Release backend resources."""
        return None
