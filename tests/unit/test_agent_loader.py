"""Unit tests for AgentLoader."""

from pathlib import Path

import pytest

from omniagent.agents import (
    AgentConfigError,
    AgentLoader,
    AgentLoadError,
    validate_yaml_schema,
)
from omniagent.core import KeywordRelevanceScorer, TaskAnalyzer
from omniagent.tools import build_toolkit
from omniagent.utils.config import AgentDefaults
from tests.conftest import AGENTS_DIR


@pytest.fixture
def toolkit(capability_registry, router, memory):
    """Built-in toolkit wired to the test registry."""
    return build_toolkit(
        capability_registry,
        KeywordRelevanceScorer(),
        router=router,
        memory=memory,
        analyzer=TaskAnalyzer(),
    )


@pytest.fixture
def loader(toolkit, scripted_llm, memory) -> AgentLoader:
    """Create an AgentLoader instance."""
    return AgentLoader(toolkit=toolkit, memory=memory, llm_provider=scripted_llm)


@pytest.fixture
def minimal_yaml_content() -> str:
    """Minimal valid YAML configuration."""
    return """
agent_id: "minimal_agent"
name: "Minimal Agent"
"""


def write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


class TestAgentLoaderLoadFromYaml:
    """Test AgentLoader.load_from_yaml method."""

    @pytest.mark.asyncio
    async def test_load_minimal_applies_defaults(self, loader, tmp_path, minimal_yaml_content):
        agent = loader.load_from_yaml(write(tmp_path, "minimal.yaml", minimal_yaml_content))

        assert agent.agent_id == "minimal_agent"
        assert agent.config.model == AgentDefaults().model
        assert agent.config.max_steps == 5
        assert agent.tool_names == []
        assert loader.get_loaded_agent("minimal_agent") is agent

    @pytest.mark.asyncio
    async def test_load_with_tools(self, loader, tmp_path):
        path = write(
            tmp_path,
            "research.yaml",
            """
agent_id: research_agent
name: Research Agent
temperature: 0.2
tools: [find_relevant_capabilities, read_resource]
""",
        )

        agent = loader.load_from_yaml(path)

        assert agent.tool_names == ["find_relevant_capabilities", "read_resource"]
        assert agent.config.temperature == 0.2

    @pytest.mark.asyncio
    async def test_unknown_tool(self, loader, tmp_path):
        path = write(
            tmp_path, "bad.yaml", "agent_id: bad\nname: Bad\ntools: [launch_rocket]\n"
        )

        with pytest.raises(AgentConfigError) as exc_info:
            loader.load_from_yaml(path)

        assert "launch_rocket" in str(exc_info.value)
        assert exc_info.value.path == str(path)

    @pytest.mark.asyncio
    async def test_missing_file(self, loader, tmp_path):
        with pytest.raises(AgentLoadError):
            loader.load_from_yaml(tmp_path / "nope.yaml")

    @pytest.mark.asyncio
    async def test_invalid_yaml(self, loader, tmp_path):
        with pytest.raises(AgentLoadError) as exc_info:
            loader.load_from_yaml(write(tmp_path, "broken.yaml", "agent_id: [unclosed\n"))

        assert "Invalid YAML" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "- just\n- a list\n"])
    async def test_empty_or_non_mapping(self, loader, tmp_path, content):
        with pytest.raises(AgentConfigError):
            loader.load_from_yaml(write(tmp_path, "odd.yaml", content))

    @pytest.mark.asyncio
    async def test_provider_factory_used_without_shared_provider(
        self, toolkit, tmp_path, minimal_yaml_content, scripted_llm
    ):
        requested = []

        def factory(config):
            requested.append(config.agent_id)
            return scripted_llm

        loader = AgentLoader(toolkit=toolkit, provider_factory=factory)

        agent = loader.load_from_yaml(write(tmp_path, "minimal.yaml", minimal_yaml_content))
        await agent.generate("Hi")

        assert requested == ["minimal_agent"]
        assert len(scripted_llm.calls) == 1


class TestAgentLoaderDirectory:
    """Test AgentLoader.load_all_from_directory method."""

    @pytest.mark.asyncio
    async def test_loads_bundled_agents(self, loader):
        agents = loader.load_all_from_directory(AGENTS_DIR)

        by_id = {agent.agent_id: agent for agent in agents}
        assert set(by_id) == {
            "main_agent",
            "email_agent",
            "calendar_agent",
            "web_search_agent",
            "weather_agent",
        }
        assert "delegate_task" in by_id["main_agent"].tool_names
        assert {"search_memory", "update_working_memory", "plan_task"} <= set(
            by_id["main_agent"].tool_names
        )
        assert by_id["calendar_agent"].config.remote_tool_domain == "calendar"
        assert by_id["calendar_agent"].config.temperature == 0.4

    @pytest.mark.asyncio
    async def test_bad_files_are_skipped(self, loader, tmp_path, minimal_yaml_content):
        write(tmp_path, "a.yaml", minimal_yaml_content)
        write(tmp_path, "b.yml", "name: no id\n")

        agents = loader.load_all_from_directory(tmp_path)

        assert [agent.agent_id for agent in agents] == ["minimal_agent"]

    @pytest.mark.asyncio
    async def test_nothing_loads(self, loader, tmp_path):
        write(tmp_path, "b.yaml", "name: no id\n")

        with pytest.raises(AgentLoadError) as exc_info:
            loader.load_all_from_directory(tmp_path)

        assert "Failed to load any agents" in str(exc_info.value)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(AgentLoadError):
            AgentLoader().load_all_from_directory(tmp_path / "missing")


class TestValidateYamlSchema:
    """Test validate_yaml_schema function."""

    def test_valid(self):
        assert validate_yaml_schema({"agent_id": "a", "name": "A", "tools": ["x"]}) == []

    def test_collects_every_error(self):
        errors = validate_yaml_schema({
            "tools": "delegate_task",
            "max_steps": 0,
            "temperature": 3,
            "remote_tool_domain": 5,
        })

        assert errors == [
            "Missing required field: agent_id",
            "Missing required field: name",
            "tools must be a list",
            "remote_tool_domain must be a string",
            "max_steps must be a positive integer",
            "temperature must be a number between 0 and 2",
        ]

    def test_tool_entries_must_be_strings(self):
        errors = validate_yaml_schema({"agent_id": "a", "name": "A", "tools": ["ok", 3]})

        assert errors == ["tools[1] must be a string"]

    def test_boolean_is_not_an_integer(self):
        errors = validate_yaml_schema({"agent_id": "a", "name": "A", "max_tokens": True})

        assert errors == ["max_tokens must be a positive integer"]
