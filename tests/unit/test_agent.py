"""Agent generation loop unit tests."""

import asyncio

import pytest
from pydantic import BaseModel

from omniagent.agents import Agent, GenerationOptions
from omniagent.memory import WORKING_MEMORY_TEMPLATE
from omniagent.models import AgentStatus, MessageRole, Priority, ThreadMessage
from omniagent.tools import Capability, RunContext
from omniagent.utils.exceptions import GenerationError
from tests.conftest import make_agent_config, text_response, tool_response


class EchoArgs(BaseModel):
    text: str
    delay: float = 0.0

    model_config = {"extra": "forbid"}


class EchoCapability(Capability):
    name = "echo"
    description = "Echo text back"
    args_model = EchoArgs

    async def run(self, args: EchoArgs, run_context: RunContext) -> str:
        if args.delay:
            await asyncio.sleep(args.delay)
        return args.text


class BrokenCapability(Capability):
    name = "broken"
    description = "Always fails"
    args_model = EchoArgs

    async def run(self, args: EchoArgs, run_context: RunContext) -> str:
        raise RuntimeError("disk full")


@pytest.fixture
def agent(scripted_llm, memory) -> Agent:
    return Agent(
        make_agent_config("calendar_agent", temperature=0.4, max_steps=4),
        llm_provider=scripted_llm,
        memory=memory,
        capabilities=[EchoCapability(), BrokenCapability()],
    )


def threaded(**kwargs) -> GenerationOptions:
    return GenerationOptions(thread_id="t1", resource_id="u1", **kwargs)


class TestGenerate:
    """Test Agent.generate."""

    @pytest.mark.asyncio
    async def test_plain_answer(self, agent, scripted_llm):
        scripted_llm.responses = [text_response("Hello!")]

        result = await agent.generate("Hi")

        assert result.text == "Hello!"
        assert result.steps == 1
        assert result.tool_calls == []
        assert result.usage == {"input_tokens": 10, "output_tokens": 5}
        assert scripted_llm.calls[0]["temperature"] == 0.4
        assert scripted_llm.calls[0]["tools"] == ["echo", "broken"]
        assert agent.status == AgentStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_agent_without_tools_sends_none(self, scripted_llm):
        bare = Agent(make_agent_config("bare"), llm_provider=scripted_llm)

        await bare.generate("Hi")

        assert scripted_llm.calls[0]["tools"] == []

    @pytest.mark.asyncio
    async def test_tool_result_fed_back(self, agent, scripted_llm):
        first = tool_response(("echo", {"text": "ping"}))
        scripted_llm.responses = [first, text_response("Got ping.")]

        result = await agent.generate("Say ping")

        call_id = first.tool_calls[0].id
        assert scripted_llm.calls[1]["messages"] == [
            {"role": "user", "content": "Say ping"},
            {
                "role": "assistant",
                "content": "",
                "tool_calls": [{"id": call_id, "name": "echo", "arguments": {"text": "ping"}}],
            },
            {"role": "tool", "tool_call_id": call_id, "name": "echo", "content": "ping"},
        ]
        assert result.text == "Got ping."
        assert result.steps == 2
        assert [(c.name, c.result) for c in result.tool_calls] == [("echo", "ping")]

    @pytest.mark.asyncio
    async def test_tool_errors_are_reported_to_model(self, agent, scripted_llm):
        scripted_llm.responses = [
            tool_response(("missing_tool", {}), ("broken", {"text": "x"}), ("echo", {})),
            text_response("Sorry, tools failed."),
        ]

        result = await agent.generate("Do things")

        assert [c.result for c in result.tool_calls] == [
            "Error: Unknown tool: missing_tool",
            "Error: disk full",
            "Error: Invalid arguments for echo",
        ]
        assert all(c.error for c in result.tool_calls)
        assert result.text == "Sorry, tools failed."

    @pytest.mark.asyncio
    async def test_parallel_tool_calls_keep_order(self, agent, scripted_llm):
        scripted_llm.responses = [
            tool_response(("echo", {"text": "slow", "delay": 0.05}), ("echo", {"text": "fast"})),
            text_response("ok"),
        ]

        result = await agent.generate("Both")

        assert [c.result for c in result.tool_calls] == ["slow", "fast"]

    @pytest.mark.asyncio
    async def test_step_budget(self, agent, scripted_llm):
        scripted_llm.handler = lambda call: tool_response(("echo", {"text": "again"}))

        result = await agent.generate("Loop", GenerationOptions(max_steps=2))

        assert result.steps == 2
        assert len(scripted_llm.calls) == 2
        assert len(result.tool_calls) == 2

    @pytest.mark.asyncio
    async def test_option_overrides(self, agent, scripted_llm):
        await agent.generate("Hi", GenerationOptions(temperature=0.0))

        assert scripted_llm.calls[0]["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_llm_failure_raises_generation_error(self, agent, scripted_llm):
        scripted_llm.responses = [RuntimeError("upstream 503")]

        with pytest.raises(GenerationError) as exc_info:
            await agent.generate("Hi")

        assert str(exc_info.value) == "upstream 503"
        assert exc_info.value.agent_id == "calendar_agent"
        assert agent.status == AgentStatus.ERROR


class TestMemoryIntegration:
    """Test thread history and working memory."""

    @pytest.mark.asyncio
    async def test_turns_are_saved_in_order(self, agent, scripted_llm, memory):
        scripted_llm.responses = [
            tool_response(("echo", {"text": "x"})),
            text_response("First answer"),
        ]

        await agent.generate("First question", threaded())

        stored = await memory.query("t1", "u1")
        assert [(m.role, m.content) for m in stored] == [
            (MessageRole.USER, "First question"),
            (MessageRole.ASSISTANT, "First answer"),
        ]

    @pytest.mark.asyncio
    async def test_history_is_replayed(self, agent, scripted_llm):
        scripted_llm.responses = [text_response("Noted."), text_response("Blue.")]

        await agent.generate("My favorite color is blue", threaded())
        await agent.generate("What is my favorite color?", threaded())

        assert scripted_llm.calls[1]["messages"] == [
            {"role": "user", "content": "My favorite color is blue"},
            {"role": "assistant", "content": "Noted."},
            {"role": "user", "content": "What is my favorite color?"},
        ]

    @pytest.mark.asyncio
    async def test_stateless_without_thread(self, agent, memory):
        await agent.generate("Hi")

        assert await memory.get_threads_by_resource_id("u1") == []

    @pytest.mark.asyncio
    async def test_system_prompt_sections(self, agent, scripted_llm, memory):
        await memory.update_working_memory("u1", "- Name: Ann")
        await memory.save_messages([
            ThreadMessage(
                thread_id="t1",
                resource_id="u1",
                role=MessageRole.SYSTEM,
                content="[Summary of previous conversation: Discussed topics: email management.]",
            )
        ])
        options = threaded(run_context=RunContext(priority=Priority.HIGH))

        await agent.generate("Hi", options)

        assert scripted_llm.calls[0]["system_prompt"] == (
            "You are calendar_agent.\n\n"
            "## Working Memory\n- Name: Ann\n\n"
            "[Summary of previous conversation: Discussed topics: email management.]\n\n"
            "Request priority: high"
        )
        assert scripted_llm.calls[0]["messages"] == [{"role": "user", "content": "Hi"}]

    @pytest.mark.asyncio
    async def test_default_working_memory_template(self, agent, scripted_llm):
        await agent.generate("Hi", threaded())

        assert WORKING_MEMORY_TEMPLATE in scripted_llm.calls[0]["system_prompt"]

    @pytest.mark.asyncio
    async def test_tool_results_replay_as_assistant_text(self, agent, scripted_llm, memory):
        await memory.save_messages([
            ThreadMessage(thread_id="t1", resource_id="u1", role=MessageRole.ASSISTANT,
                          content="orphan reply"),
            ThreadMessage(thread_id="t1", resource_id="u1", role=MessageRole.USER,
                          content="Weather?"),
            ThreadMessage(thread_id="t1", resource_id="u1", role=MessageRole.TOOL,
                          content="sunny", tool_name="get_forecast", tool_call_id="c1"),
            ThreadMessage(thread_id="t1", resource_id="u1", role=MessageRole.ASSISTANT,
                          content="It is sunny."),
        ])

        await agent.generate("Thanks", threaded())

        assert scripted_llm.calls[0]["messages"] == [
            {"role": "user", "content": "Weather?"},
            {"role": "assistant", "content": "[get_forecast result] sunny\n\nIt is sunny."},
            {"role": "user", "content": "Thanks"},
        ]


class TestAgentState:
    """Test agent metadata helpers."""

    def test_info_and_health(self, agent):
        info = agent.info()
        health = agent.health_check()

        assert info.tools == ["echo", "broken"]
        assert health["status"] == "healthy"
        assert health["model"] == "scripted-model"

    def test_deactivate(self, agent):
        agent.deactivate()

        assert agent.is_active is False
        assert agent.health_check()["status"] == "unhealthy"

        agent.activate()
        assert agent.status == AgentStatus.ACTIVE
