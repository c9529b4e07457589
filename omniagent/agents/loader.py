"""Agent Loader - Build agents from YAML configuration.

Each file under ``configs/agents`` describes one agent. Tool names refer to
the built-in toolkit; remote provider tools are attached later, once the
capability registry has been refreshed.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from omniagent.agents.base import Agent
from omniagent.llm import BaseLLMProvider
from omniagent.memory import MemoryProcessor, MemoryStore
from omniagent.models import AgentConfig
from omniagent.tools.base import Capability
from omniagent.utils.config import AgentDefaults
from omniagent.utils.observability import LangfuseClient


class AgentLoadError(Exception):
    """Raised when agent loading fails."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(f"{message}" + (f" (path: {path})" if path else ""))


class AgentConfigError(AgentLoadError):
    """Raised when agent configuration is invalid."""


class AgentLoader:
    """Creates ``Agent`` instances wired with shared services.

    Args:
        toolkit: Built-in capabilities by name.
        memory: Shared memory store.
        llm_provider: Provider shared by every agent.
        provider_factory: Builds a provider per agent config when no shared
            provider is given. When both are None, each agent creates one
            from its model name.
        processors: Memory processors applied to recalled history.
        history_limit: Messages recalled per generation.
        defaults: Fallback model settings for fields a file leaves out.
    """

    def __init__(
        self,
        toolkit: Mapping[str, Capability] | None = None,
        memory: MemoryStore | None = None,
        llm_provider: BaseLLMProvider | None = None,
        provider_factory: Callable[[AgentConfig], BaseLLMProvider] | None = None,
        processors: list[MemoryProcessor] | None = None,
        history_limit: int = 20,
        defaults: AgentDefaults | None = None,
        observability: LangfuseClient | None = None,
    ) -> None:
        self._toolkit = dict(toolkit or {})
        self._memory = memory
        self._llm_provider = llm_provider
        self._provider_factory = provider_factory
        self._processors = processors
        self._history_limit = history_limit
        self._defaults = defaults or AgentDefaults()
        self._observability = observability
        self._loaded_agents: dict[str, Agent] = {}

    def load_from_yaml(self, path: str | Path) -> Agent:
        """Load an agent from a YAML configuration file.

        Raises:
            AgentLoadError: If the file cannot be read.
            AgentConfigError: If the configuration is invalid.
        """
        path = Path(path)

        if not path.exists():
            raise AgentLoadError("Configuration file not found", str(path))

        if not path.is_file():
            raise AgentLoadError("Path is not a file", str(path))

        try:
            with open(path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise AgentLoadError(f"Invalid YAML: {e}", str(path)) from e
        except OSError as e:
            raise AgentLoadError(f"Cannot read file: {e}", str(path)) from e

        if not config_data:
            raise AgentConfigError("Empty configuration file", str(path))

        if not isinstance(config_data, dict):
            raise AgentConfigError("Configuration must be a mapping", str(path))

        return self.create_agent(config_data, source_path=str(path))

    def load_all_from_directory(self, dir_path: str | Path) -> list[Agent]:
        """Load every ``*.yaml`` / ``*.yml`` agent in a directory.

        Files that fail to load are skipped unless none load at all.

        Raises:
            AgentLoadError: If the directory cannot be read or nothing loads.
        """
        dir_path = Path(dir_path)

        if not dir_path.exists():
            raise AgentLoadError("Directory not found", str(dir_path))

        if not dir_path.is_dir():
            raise AgentLoadError("Path is not a directory", str(dir_path))

        agents: list[Agent] = []
        errors: list[str] = []
        files = sorted([*dir_path.glob("*.yaml"), *dir_path.glob("*.yml")])

        for config_file in files:
            try:
                agent = self.load_from_yaml(config_file)
            except AgentLoadError as e:
                errors.append(str(e))
                continue
            agents.append(agent)

        if errors and not agents:
            raise AgentLoadError(
                f"Failed to load any agents. Errors: {'; '.join(errors)}",
                str(dir_path),
            )

        return agents

    def create_agent(
        self,
        config_data: dict[str, Any],
        source_path: str | None = None,
    ) -> Agent:
        """Create an agent from a configuration dictionary.

        Raises:
            AgentConfigError: If the configuration is invalid or names an
                unknown tool.
        """
        errors = validate_yaml_schema(config_data)
        if errors:
            raise AgentConfigError(
                f"Invalid agent configuration: {'; '.join(errors)}", source_path
            )

        merged = {
            "model": self._defaults.model,
            "max_tokens": self._defaults.max_tokens,
            "temperature": self._defaults.temperature,
            "max_steps": self._defaults.max_steps,
            **config_data,
        }
        try:
            config = AgentConfig.model_validate(merged)
        except ValidationError as e:
            raise AgentConfigError(
                f"Invalid agent configuration: {e}", source_path
            ) from e

        unknown = [name for name in config.tools if name not in self._toolkit]
        if unknown:
            raise AgentConfigError(
                f"Unknown tools: {', '.join(unknown)}. "
                f"Available tools: {sorted(self._toolkit)}",
                source_path,
            )

        llm_provider = self._llm_provider
        if llm_provider is None and self._provider_factory is not None:
            llm_provider = self._provider_factory(config)

        agent = Agent(
            config,
            llm_provider=llm_provider,
            memory=self._memory,
            capabilities=[self._toolkit[name] for name in config.tools],
            processors=self._processors,
            history_limit=self._history_limit,
            observability=self._observability,
        )
        self._loaded_agents[config.agent_id] = agent
        return agent

    def get_loaded_agent(self, agent_id: str) -> Agent | None:
        return self._loaded_agents.get(agent_id)


def validate_yaml_schema(config_data: dict[str, Any]) -> list[str]:
    """Validate an agent configuration dictionary.

    Returns:
        List of validation error messages (empty if valid).
    """
    errors: list[str] = []

    for field in ("agent_id", "name"):
        if field not in config_data:
            errors.append(f"Missing required field: {field}")

    agent_id = config_data.get("agent_id", "")
    if agent_id and not isinstance(agent_id, str):
        errors.append("agent_id must be a string")

    tools = config_data.get("tools", [])
    if not isinstance(tools, list):
        errors.append("tools must be a list")
    else:
        for i, tool in enumerate(tools):
            if not isinstance(tool, str):
                errors.append(f"tools[{i}] must be a string")

    domain = config_data.get("remote_tool_domain")
    if domain is not None and not isinstance(domain, str):
        errors.append("remote_tool_domain must be a string")

    for field in ("max_tokens", "max_steps"):
        if field in config_data:
            value = config_data[field]
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                errors.append(f"{field} must be a positive integer")

    if "temperature" in config_data:
        temperature = config_data["temperature"]
        if (
            not isinstance(temperature, (int, float))
            or temperature < 0
            or temperature > 2
        ):
            errors.append("temperature must be a number between 0 and 2")

    return errors
