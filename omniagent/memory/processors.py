"""Memory processors applied to recalled thread history.

Processors run in order before history is handed to the model. They never
touch stored messages; they only shape what a single generation sees.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from omniagent.models import MessageRole, ThreadMessage


class MemoryProcessor(ABC):
    """Transforms a recalled message list."""

    name: str = "processor"

    @abstractmethod
    def process(self, messages: list[ThreadMessage]) -> list[ThreadMessage]:
        """Return the processed message list."""


class RoleFilter(MemoryProcessor):
    """Keeps user and assistant turns, plus tool results with real content."""

    name = "role_filter"

    def __init__(self, min_tool_content: int = 100) -> None:
        self.min_tool_content = min_tool_content

    def process(self, messages: list[ThreadMessage]) -> list[ThreadMessage]:
        kept = []
        for message in messages:
            if message.role in (MessageRole.USER, MessageRole.ASSISTANT):
                kept.append(message)
            elif (
                message.role == MessageRole.TOOL
                and len(message.content) > self.min_tool_content
            ):
                kept.append(message)
        return kept


class ToolCallFilter(MemoryProcessor):
    """Drops results (and the matching calls) of noisy tools."""

    name = "tool_call_filter"

    def __init__(self, exclude: list[str] | None = None) -> None:
        self.exclude = set(exclude or [])

    def process(self, messages: list[ThreadMessage]) -> list[ThreadMessage]:
        if not self.exclude:
            return messages

        result = []
        for message in messages:
            if message.role == MessageRole.TOOL and message.tool_name in self.exclude:
                continue
            if message.tool_calls:
                calls = [c for c in message.tool_calls if c.get("name") not in self.exclude]
                if not calls and not message.content:
                    continue
                if len(calls) != len(message.tool_calls):
                    message = message.model_copy(update={"tool_calls": calls})
            result.append(message)
        return result


class MessageSummarizer(MemoryProcessor):
    """Collapses messages older than the newest ``threshold`` into one summary.

    The summary is emitted as a system message so the agent can fold it into
    its system prompt instead of replaying it as a conversational turn.
    """

    name = "message_summarizer"

    TOPICS: list[tuple[str, tuple[str, ...]]] = [
        ("email management", ("email",)),
        ("calendar/scheduling", ("calendar", "meeting")),
        ("project management", ("project",)),
        ("information retrieval", ("search", "find")),
    ]

    def __init__(self, threshold: int = 30) -> None:
        self.threshold = threshold

    def summarize(self, messages: list[ThreadMessage]) -> str:
        topics: list[str] = []
        for message in messages:
            if message.role not in (MessageRole.USER, MessageRole.ASSISTANT):
                continue
            for topic, markers in self.TOPICS:
                if topic not in topics and any(m in message.content for m in markers):
                    topics.append(topic)
        if not topics:
            return ""
        return (
            f"Discussed topics: {', '.join(topics)}. "
            f"{len(messages)} messages exchanged."
        )

    def process(self, messages: list[ThreadMessage]) -> list[ThreadMessage]:
        if len(messages) <= self.threshold:
            return messages

        old = messages[: -self.threshold] if self.threshold else messages
        recent = messages[-self.threshold :] if self.threshold else []
        summary = self.summarize(old)
        if not summary:
            return recent

        anchor = old[-1]
        summary_message = ThreadMessage(
            thread_id=anchor.thread_id,
            resource_id=anchor.resource_id,
            role=MessageRole.SYSTEM,
            content=f"[Summary of previous conversation: {summary}]",
            created_at=anchor.created_at,
        )
        return [summary_message, *recent]


class TokenLimiter(MemoryProcessor):
    """Keeps the newest messages that fit inside an approximate token budget."""

    name = "token_limiter"

    def __init__(self, limit: int = 100000) -> None:
        self.limit = limit

    def process(self, messages: list[ThreadMessage]) -> list[ThreadMessage]:
        kept: list[ThreadMessage] = []
        total = 0
        for message in reversed(messages):
            total += message.estimate_tokens()
            if total > self.limit:
                break
            kept.append(message)
        kept.reverse()
        return kept


def apply_processors(
    messages: list[ThreadMessage], processors: list[MemoryProcessor]
) -> list[ThreadMessage]:
    """Run processors in order."""
    for processor in processors:
        messages = processor.process(messages)
    return messages


def default_processors(
    summarize_threshold: int = 30,
    token_limit: int = 100000,
    filtered_tools: list[str] | None = None,
) -> list[MemoryProcessor]:
    """The standard processor chain. Token limiting must stay last."""
    return [
        RoleFilter(),
        ToolCallFilter(exclude=filtered_tools),
        MessageSummarizer(summarize_threshold),
        TokenLimiter(token_limit),
    ]
