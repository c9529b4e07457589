"""Coordinator unit tests."""

import asyncio

import pytest
import pytest_asyncio

from omniagent.agents import Agent
from omniagent.core import Coordinator
from omniagent.models import (
    CoordinationContext,
    CoordinationRequest,
    MessageRole,
    Priority,
)
from omniagent.tools import DelegateTaskCapability
from omniagent.utils.exceptions import ValidationError
from tests.conftest import make_agent_config, text_response, tool_response


def is_sub_agent(call) -> bool:
    return call["system_prompt"].startswith("You are calendar_agent.")


def delegating_handler(call):
    """Main agent delegates once to calendar, then answers."""
    if is_sub_agent(call):
        return text_response("Booked for 2 PM.")
    if call["messages"][-1]["role"] == "tool":
        return text_response("Your meeting is booked for 2 PM.")
    return tool_response(("delegate_task", {"agent": "calendar", "task": "Book 2 PM"}))


@pytest_asyncio.fixture
async def main_agent(agent_registry, router, scripted_llm, memory) -> Agent:
    agent = Agent(
        make_agent_config("main_agent"),
        llm_provider=scripted_llm,
        memory=memory,
        capabilities=[DelegateTaskCapability(router)],
    )
    await agent_registry.register(agent)
    return agent


@pytest.fixture
def coordinator(agent_registry, memory, router) -> Coordinator:
    return Coordinator(agent_registry, memory, router)


class TestProcessRequest:
    """Test Coordinator.process_request."""

    @pytest.mark.asyncio
    async def test_simple_request(self, coordinator, main_agent, scripted_llm):
        scripted_llm.responses = [text_response("Hello!")]

        result = await coordinator.process_request(user_id="u1", message="Hello")

        assert result.success is True
        assert result.response == "Hello!"
        assert result.thread
        assert result.agents_used == ["main_agent"]
        assert result.execution_time >= 0
        assert result.metadata["analysis"]["complexity"] == "simple"
        assert result.metadata["steps"] == 1

    @pytest.mark.asyncio
    async def test_empty_answer_gets_default_response(self, coordinator, main_agent, scripted_llm):
        scripted_llm.responses = [text_response("")]

        result = await coordinator.process_request(user_id="u1", message="Hello")

        assert result.response == "Task completed successfully"

    @pytest.mark.asyncio
    async def test_step_budget_follows_analysis(self, coordinator, main_agent, scripted_llm):
        scripted_llm.handler = lambda call: tool_response(
            ("delegate_task", {"agent": "nobody", "task": "x"})
        )

        result = await coordinator.process_request(user_id="u1", message="Hello")

        # Simple request: three estimated steps plus the default buffer of two.
        assert result.metadata["steps"] == 5
        assert len(scripted_llm.calls) == 5

    @pytest.mark.asyncio
    async def test_delegation_recorded_in_agents_used(
        self, coordinator, main_agent, calendar_agent, scripted_llm
    ):
        scripted_llm.handler = delegating_handler

        result = await coordinator.process_request(
            user_id="u1", message="Schedule a meeting at 2 PM"
        )

        assert result.success is True
        assert result.response == "Your meeting is booked for 2 PM."
        assert result.agents_used == ["main_agent", "calendar_agent"]
        assert result.metadata["tool_calls"] == 1

    @pytest.mark.asyncio
    async def test_accepts_request_object(self, coordinator, main_agent, scripted_llm):
        request = CoordinationRequest(
            user_id="u1",
            message="Hello",
            context=CoordinationContext(priority=Priority.HIGH),
        )

        await coordinator.process_request(request)

        assert scripted_llm.calls[0]["system_prompt"].endswith("Request priority: high")

    @pytest.mark.asyncio
    async def test_default_priority_is_medium(self, coordinator, main_agent, scripted_llm):
        await coordinator.process_request(user_id="u1", message="Hello")

        assert scripted_llm.calls[0]["system_prompt"].endswith("Request priority: medium")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("user_id", "message"), [("u1", ""), ("u1", "   "), ("", "Hi")])
    async def test_malformed_request_raises(self, coordinator, user_id, message):
        with pytest.raises(ValidationError):
            await coordinator.process_request(user_id=user_id, message=message)

    @pytest.mark.asyncio
    async def test_missing_main_agent_is_reported(self, coordinator):
        result = await coordinator.process_request(user_id="u1", message="Hello")

        assert result.success is False
        assert result.response.startswith(
            "I encountered an error while processing your request: Agent not found: main_agent"
        )
        assert result.agents_used == []
        assert "Traceback" in result.metadata["error"]
        assert result.metadata["error_type"] == "AgentNotFoundError"

    @pytest.mark.asyncio
    async def test_llm_failure_is_reported(self, coordinator, main_agent, scripted_llm):
        scripted_llm.responses = [RuntimeError("rate limited")]

        result = await coordinator.process_request(user_id="u1", message="Hello")

        assert result.success is False
        assert result.response == (
            "I encountered an error while processing your request: rate limited"
        )
        assert result.metadata["error_type"] == "GenerationError"


class TestThreads:
    """Test thread resolution and serialization."""

    @pytest.mark.asyncio
    async def test_thread_continuity(self, coordinator, main_agent, scripted_llm, memory):
        scripted_llm.responses = [text_response("Noted."), text_response("Blue.")]

        first = await coordinator.process_request(user_id="u1", message="I like blue")
        second = await coordinator.process_request(
            user_id="u1", message="What do I like?", thread=first.thread
        )

        assert second.thread == first.thread
        assert scripted_llm.calls[1]["messages"][:2] == [
            {"role": "user", "content": "I like blue"},
            {"role": "assistant", "content": "Noted."},
        ]
        thread = await memory.get_thread(first.thread)
        assert thread.title == "Unified Assistant Conversation"

    @pytest.mark.asyncio
    async def test_foreign_thread_is_rejected(self, coordinator, main_agent, scripted_llm, memory):
        scripted_llm.responses = [text_response("hi u1")]
        first = await coordinator.process_request(user_id="u1", message="Hello from u1")

        second = await coordinator.process_request(
            user_id="u2", message="Hello from u2", thread=first.thread
        )

        assert second.success is False
        assert second.metadata["error_type"] == "ValidationError"
        assert len(scripted_llm.calls) == 1
        stored = await memory.query(first.thread, "u1")
        assert [(m.resource_id, m.content) for m in stored] == [
            ("u1", "Hello from u1"),
            ("u1", "hi u1"),
        ]

    @pytest.mark.asyncio
    async def test_unknown_thread_id_is_created_for_user(
        self, coordinator, main_agent, scripted_llm, memory
    ):
        result = await coordinator.process_request(
            user_id="u1", message="Hello", thread="my-thread"
        )

        assert result.success is True
        assert result.thread == "my-thread"
        thread = await memory.get_thread("my-thread")
        assert thread.resource_id == "u1"
        assert thread.title == "Unified Assistant Conversation"

    @pytest.mark.asyncio
    async def test_sub_agent_turns_share_the_thread(
        self, coordinator, main_agent, calendar_agent, scripted_llm, memory
    ):
        scripted_llm.handler = delegating_handler

        result = await coordinator.process_request(user_id="u1", message="Book a meeting")

        stored = await memory.query(result.thread, "u1")
        assert [(m.role, m.content) for m in stored] == [
            (MessageRole.USER, "Book a meeting"),
            (MessageRole.USER, "Book 2 PM"),
            (MessageRole.ASSISTANT, "Booked for 2 PM."),
            (MessageRole.ASSISTANT, "Your meeting is booked for 2 PM."),
        ]

    @pytest.mark.asyncio
    async def test_same_thread_requests_are_serialized(self, coordinator, main_agent, scripted_llm):
        active = 0
        peak = 0

        async def handler(call):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            return text_response("ok")

        scripted_llm.handler = handler
        thread = await coordinator.create_thread("u1")

        results = await asyncio.gather(*(
            coordinator.process_request(user_id="u1", message=f"msg {i}", thread=thread)
            for i in range(3)
        ))

        assert all(r.success for r in results)
        assert peak == 1

    @pytest.mark.asyncio
    async def test_different_threads_run_concurrently(self, coordinator, main_agent, scripted_llm):
        active = 0
        peak = 0

        async def handler(call):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            return text_response("ok")

        scripted_llm.handler = handler

        await asyncio.gather(
            coordinator.process_request(user_id="u1", message="one"),
            coordinator.process_request(user_id="u2", message="two"),
        )

        assert peak == 2


class TestTimeout:
    """Test request timeouts."""

    @pytest.mark.asyncio
    async def test_timeout_keeps_partial_results(
        self, coordinator, main_agent, calendar_agent, scripted_llm
    ):
        async def handler(call):
            if is_sub_agent(call):
                return text_response("Booked for 2 PM.")
            if call["messages"][-1]["role"] == "tool":
                await asyncio.sleep(5)
            return tool_response(("delegate_task", {"agent": "calendar", "task": "Book 2 PM"}))

        scripted_llm.handler = handler

        result = await coordinator.process_request(
            user_id="u1", message="Book a meeting", timeout=0.2
        )

        assert result.success is False
        assert result.response.startswith("I couldn't finish your request within 0.2 seconds.")
        assert "- calendar_agent: Booked for 2 PM." in result.response
        assert result.agents_used == ["main_agent", "calendar_agent"]
        assert result.metadata["partial_results"] == [
            {"agent": "calendar_agent", "task": "Book 2 PM", "result": "Booked for 2 PM."}
        ]
        assert result.metadata["error_type"] == "CoordinationTimeoutError"
        assert main_agent.status.value == "active"

    @pytest.mark.asyncio
    async def test_time_queued_on_thread_counts(self, coordinator, main_agent, scripted_llm):
        async def handler(call):
            await asyncio.sleep(0.3)
            return text_response("ok")

        scripted_llm.handler = handler
        thread = await coordinator.create_thread("u1")

        first, second = await asyncio.gather(
            coordinator.process_request(user_id="u1", message="first", thread=thread),
            coordinator.process_request(
                user_id="u1", message="second", thread=thread, timeout=0.2
            ),
        )

        assert first.success is True
        assert second.success is False
        assert second.metadata["error_type"] == "CoordinationTimeoutError"
        assert second.execution_time < 0.3
        assert len(scripted_llm.calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_without_progress(self, coordinator, main_agent, scripted_llm):
        async def handler(call):
            await asyncio.sleep(5)

        scripted_llm.handler = handler

        result = await coordinator.process_request(user_id="u1", message="Hello", timeout=0.1)

        assert result.success is False
        assert result.agents_used == []
        assert result.metadata["partial_results"] == []


class TestHistory:
    """Test history helpers."""

    @pytest.mark.asyncio
    async def test_get_history_of_newest_thread(self, coordinator, main_agent, scripted_llm):
        scripted_llm.responses = [text_response("A1"), text_response("A2")]
        await coordinator.process_request(user_id="u1", message="Q1")
        await asyncio.sleep(0.001)
        await coordinator.process_request(user_id="u1", message="Q2")

        history = await coordinator.get_conversation_history("u1")

        assert [m.content for m in history] == ["Q2", "A2"]

    @pytest.mark.asyncio
    async def test_history_limit(self, coordinator, main_agent, scripted_llm):
        result = await coordinator.process_request(user_id="u1", message="Q1")

        history = await coordinator.get_conversation_history("u1", result.thread, limit=1)

        assert [m.role for m in history] == [MessageRole.ASSISTANT]

    @pytest.mark.asyncio
    async def test_history_for_unknown_user(self, coordinator):
        assert await coordinator.get_conversation_history("nobody") == []

    @pytest.mark.asyncio
    async def test_clear_history(self, coordinator, main_agent, scripted_llm):
        result = await coordinator.process_request(user_id="u1", message="Q1")

        assert await coordinator.clear_conversation_history("u1") is True

        assert await coordinator.get_conversation_history("u1", result.thread) == []
