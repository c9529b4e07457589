"""Memory capabilities - Let an agent read and maintain what it remembers.

Both capabilities are scoped by the resource and thread of the current
request; an agent can never reach another user's memory through them.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field

from omniagent.tools.base import Capability, RunContext
from omniagent.utils.exceptions import ValidationError

if TYPE_CHECKING:
    from omniagent.memory import MemoryStore
    from omniagent.models import ThreadMessage

MAX_CONTENT_CHARS = 500
SUMMARY_THRESHOLD = 5

_WORD = re.compile(r"[a-z0-9]{3,}")


def _require_scope(run_context: RunContext) -> tuple[str, str | None]:
    if not run_context.resource_id:
        raise ValidationError("Memory context not available for this request")
    return run_context.resource_id, run_context.thread_id


class UpdateWorkingMemoryArgs(BaseModel):
    content: str = Field(
        ...,
        min_length=1,
        description="The complete, updated working memory document in markdown",
    )

    model_config = {"extra": "forbid"}


class UpdateWorkingMemoryCapability(Capability):
    """Replaces the working-memory document shown in every system prompt."""

    name = "update_working_memory"
    description = (
        "Replace the user's working memory with an updated version. Pass the whole "
        "document, keeping its sections, whenever you learn a lasting fact or "
        "preference about the user."
    )
    args_model = UpdateWorkingMemoryArgs

    def __init__(self, memory: MemoryStore) -> None:
        self._memory = memory

    async def run(
        self, args: UpdateWorkingMemoryArgs, run_context: RunContext
    ) -> dict[str, Any]:
        resource_id, thread_id = _require_scope(run_context)
        await self._memory.update_working_memory(resource_id, args.content, thread_id)
        return {"updated": True, "characters": len(args.content)}


class SearchMemoryArgs(BaseModel):
    query: str = Field(..., min_length=1, description="What to search for in memory")
    search_type: Literal["recent", "pattern"] = Field(
        default="recent",
        description="'recent' returns the latest messages, 'pattern' those mentioning the query",
    )
    limit: int = Field(default=10, ge=1, le=50, description="Maximum number of results")
    include_working_memory: bool = Field(
        default=True, description="Whether to include the working memory document"
    )

    model_config = {"extra": "forbid"}


def _matches(message: ThreadMessage, terms: list[str], query: str) -> bool:
    content = message.content.lower()
    if not terms:
        return query in content
    return any(term in content for term in terms)


class SearchMemoryCapability(Capability):
    """Searches the current thread's history and the working memory."""

    name = "search_memory"
    description = (
        "Search through conversation history and remembered information to find "
        "relevant context"
    )
    args_model = SearchMemoryArgs

    def __init__(self, memory: MemoryStore) -> None:
        self._memory = memory

    async def run(self, args: SearchMemoryArgs, run_context: RunContext) -> dict[str, Any]:
        resource_id, thread_id = _require_scope(run_context)
        results: list[dict[str, Any]] = []

        if thread_id:
            if args.search_type == "recent":
                messages = await self._memory.query(thread_id, resource_id, last=args.limit)
            else:
                query = args.query.lower()
                terms = _WORD.findall(query)
                history = await self._memory.query(thread_id, resource_id)
                messages = [m for m in history if _matches(m, terms, query)][-args.limit:]
            results.extend(
                {
                    "type": "message",
                    "content": message.content[:MAX_CONTENT_CHARS],
                    "timestamp": message.created_at.isoformat(),
                    "metadata": {"role": message.role.value, "id": message.id},
                }
                for message in messages
            )

        if args.include_working_memory:
            working_memory = await self._memory.get_working_memory(resource_id, thread_id)
            if working_memory:
                results.append({
                    "type": "context",
                    "content": working_memory,
                    "metadata": {"source": "working_memory"},
                })

        summary = None
        if len(results) > SUMMARY_THRESHOLD:
            summary = f'Found {len(results)} relevant items for "{args.query}".'
        return {"results": results, "summary": summary}
