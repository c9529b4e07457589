"""In-process memory store.

Suitable for tests, the interactive CLI and single-process deployments.
"""

from __future__ import annotations

import asyncio
from typing import Any

from omniagent.memory.base import WORKING_MEMORY_TEMPLATE, MemoryStore
from omniagent.models import ConversationThread, ThreadMessage
from omniagent.utils.exceptions import ValidationError
from omniagent.utils.logging import get_logger

logger = get_logger(__name__)


class InMemoryMemoryStore(MemoryStore):
    """Dict-backed memory store guarded by a single asyncio lock."""

    def __init__(
        self,
        working_memory_scope: str = "resource",
        working_memory_template: str = WORKING_MEMORY_TEMPLATE,
    ) -> None:
        if working_memory_scope not in {"resource", "thread"}:
            raise ValidationError(
                f"Unknown working memory scope: {working_memory_scope}"
            )
        self._scope = working_memory_scope
        self._template = working_memory_template
        self._threads: dict[str, ConversationThread] = {}
        self._messages: dict[str, list[ThreadMessage]] = {}
        self._working_memory: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def create_thread(
        self,
        resource_id: str,
        thread_id: str | None = None,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ConversationThread:
        if not resource_id:
            raise ValidationError("resource_id must not be empty")

        async with self._lock:
            if thread_id and thread_id in self._threads:
                return self._threads[thread_id]
            return self._create_locked(resource_id, thread_id, title, metadata)

    def _create_locked(
        self,
        resource_id: str,
        thread_id: str | None,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ConversationThread:
        fields: dict[str, Any] = {
            "resource_id": resource_id,
            "title": title,
            "metadata": metadata or {},
        }
        if thread_id:
            fields["thread_id"] = thread_id
        thread = ConversationThread(**fields)
        self._threads[thread.thread_id] = thread
        self._messages[thread.thread_id] = []
        logger.debug(
            "Thread created", thread_id=thread.thread_id, resource_id=resource_id
        )
        return thread

    async def get_thread(self, thread_id: str) -> ConversationThread | None:
        async with self._lock:
            return self._threads.get(thread_id)

    async def get_threads_by_resource_id(
        self, resource_id: str
    ) -> list[ConversationThread]:
        async with self._lock:
            threads = [
                t for t in self._threads.values() if t.resource_id == resource_id
            ]
        return sorted(threads, key=lambda t: t.updated_at, reverse=True)

    async def save_messages(self, messages: list[ThreadMessage]) -> None:
        """Append messages to their threads.

        Raises:
            ValidationError: If a message targets a thread owned by another
                resource. Nothing from the batch is saved in that case.
        """
        async with self._lock:
            owners = {tid: t.resource_id for tid, t in self._threads.items()}
            for message in messages:
                owner = owners.setdefault(message.thread_id, message.resource_id)
                if owner != message.resource_id:
                    raise ValidationError(
                        f"Thread {message.thread_id} does not belong to "
                        f"resource {message.resource_id}"
                    )
            for message in messages:
                thread = self._threads.get(message.thread_id)
                if thread is None:
                    thread = self._create_locked(message.resource_id, message.thread_id)
                self._messages[thread.thread_id].append(message)
                thread.touch()

    async def query(
        self,
        thread_id: str,
        resource_id: str | None = None,
        last: int | None = None,
    ) -> list[ThreadMessage]:
        async with self._lock:
            thread = self._threads.get(thread_id)
            if thread is None:
                return []
            if resource_id and thread.resource_id != resource_id:
                return []
            messages = list(self._messages[thread_id])
        if last is not None and last >= 0:
            messages = messages[-last:] if last else []
        return messages

    async def delete_messages(self, message_ids: list[str]) -> int:
        targets = set(message_ids)
        removed = 0
        async with self._lock:
            for thread_id, messages in self._messages.items():
                kept = [m for m in messages if m.id not in targets]
                removed += len(messages) - len(kept)
                self._messages[thread_id] = kept
        return removed

    def _working_memory_key(self, resource_id: str, thread_id: str | None) -> str:
        if self._scope == "thread" and thread_id:
            return f"thread:{thread_id}"
        return f"resource:{resource_id}"

    async def get_working_memory(
        self, resource_id: str, thread_id: str | None = None
    ) -> str:
        key = self._working_memory_key(resource_id, thread_id)
        async with self._lock:
            return self._working_memory.get(key, self._template)

    async def update_working_memory(
        self, resource_id: str, content: str, thread_id: str | None = None
    ) -> None:
        key = self._working_memory_key(resource_id, thread_id)
        async with self._lock:
            self._working_memory[key] = content
