"""OmniAgent - Application assembly and lifecycle.

``build_application`` wires the object graph explicitly. Nothing here is a
module-level singleton: the returned ``Application`` owns every service and
is started and shut down by its caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from omniagent.agents import Agent, AgentLoader, AgentLoadError
from omniagent.core import (
    CapabilityRegistry,
    Coordinator,
    DelegationRouter,
    KeywordRelevanceScorer,
    TaskAnalyzer,
)
from omniagent.core.registry import AgentRegistry
from omniagent.llm import BaseLLMProvider, LLMProviderFactory
from omniagent.memory import InMemoryMemoryStore, MemoryStore, default_processors
from omniagent.models import AgentConfig, CoordinationResult
from omniagent.providers import (
    CapabilityProvider,
    MCPCapabilityProvider,
    load_provider_configs,
)
from omniagent.tools import Capability, build_toolkit, remote_tools_for_domain
from omniagent.utils.config import AppConfig, LogFormat
from omniagent.utils.logging import get_logger, setup_logging
from omniagent.utils.observability import init_observability, shutdown_observability

logger = get_logger(__name__)


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def _resolve_path(path: str | Path) -> Path:
    resolved = Path(path)
    if not resolved.is_absolute():
        resolved = get_project_root() / resolved
    return resolved


def configure_runtime(config: AppConfig) -> None:
    """Set up process-wide logging and observability from config."""
    setup_logging(
        level=config.logging.level,
        json_format=config.logging.format == LogFormat.JSON,
        log_file=config.logging.file,
    )
    if config.langfuse.enabled:
        init_observability(
            public_key=config.langfuse.public_key,
            secret_key=config.langfuse.secret_key,
            host=config.langfuse.host,
            enabled=True,
        )


class LLMProviderPool:
    """One LLM client per provider name, built with configured credentials."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._providers: dict[str, BaseLLMProvider] = {}

    def for_agent(self, agent_config: AgentConfig) -> BaseLLMProvider:
        name = (
            agent_config.provider
            or LLMProviderFactory.get_provider_for_model(agent_config.model)
            or "openai"
        )
        if name not in self._providers:
            kwargs: dict[str, Any] = {}
            if name == "anthropic":
                kwargs["api_key"] = self._config.anthropic.api_key or None
            elif name == "openai":
                kwargs["api_key"] = self._config.openai.api_key or None
                kwargs["base_url"] = self._config.openai.base_url
            self._providers[name] = LLMProviderFactory.create(provider=name, **kwargs)
        return self._providers[name]

    async def close(self) -> None:
        for name, provider in self._providers.items():
            try:
                await provider.close()
            except Exception as e:
                logger.warning("Failed to close LLM provider", provider=name, error=str(e))
        self._providers.clear()


@dataclass
class Application:
    """The assembled service graph."""

    config: AppConfig
    memory: MemoryStore
    capabilities: CapabilityRegistry
    scorer: KeywordRelevanceScorer
    analyzer: TaskAnalyzer
    agent_registry: AgentRegistry
    router: DelegationRouter
    toolkit: dict[str, Capability]
    agents: list[Agent]
    coordinator: Coordinator
    llm_pool: LLMProviderPool | None = None
    started: bool = field(default=False, init=False)

    async def startup(self) -> None:
        """Connect providers, take the first snapshot and register agents.

        Remote tools are attached after the refresh, so agents see the tools
        that were available at startup.
        """
        if self.started:
            return

        logger.info(
            "Starting OmniAgent",
            app_name=self.config.app.name,
            version=self.config.app.version,
            environment=self.config.app.env.value,
        )

        if len(self.capabilities):
            status = await self.capabilities.connect_all()
            logger.info("Capability providers connected", status=status)
            if self.config.providers.refresh_on_startup:
                await self.capabilities.refresh()

        for agent in self.agents:
            domain = agent.config.remote_tool_domain
            if domain:
                remote = remote_tools_for_domain(self.capabilities, domain)
                for capability in remote:
                    agent.add_capability(capability)
                logger.info(
                    "Remote tools attached",
                    agent_id=agent.agent_id,
                    domain=domain,
                    count=len(remote),
                )
            await self.agent_registry.register(agent)

        self.started = True
        logger.info("OmniAgent started", agents=len(self.agent_registry))

    async def shutdown(self) -> None:
        """Close providers and LLM clients, then flush observability."""
        logger.info("Shutting down OmniAgent")
        await self.capabilities.close_all()
        if self.llm_pool is not None:
            await self.llm_pool.close()
        await self.memory.close()
        shutdown_observability()
        self.started = False

    async def __aenter__(self) -> Application:
        await self.startup()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    async def chat(
        self, user_id: str, message: str, thread: str | None = None
    ) -> CoordinationResult:
        """Send one message through the coordinator."""
        return await self.coordinator.process_request(
            user_id=user_id, message=message, thread=thread
        )


def _configured_providers(config: AppConfig) -> list[CapabilityProvider]:
    if not config.providers.enabled or not config.app.providers_file:
        return []
    path = _resolve_path(config.app.providers_file)
    return [MCPCapabilityProvider(server) for server in load_provider_configs(path)]


def build_application(
    config: AppConfig | None = None,
    llm_provider: BaseLLMProvider | None = None,
    providers: Iterable[CapabilityProvider] | None = None,
    agents_dir: str | Path | None = None,
    memory: MemoryStore | None = None,
) -> Application:
    """Assemble the application.

    Args:
        config: Application config. Defaults to ``AppConfig()``.
        llm_provider: Provider shared by every agent. When None, clients are
            created per provider name from the configured credentials.
        providers: Capability providers. When None, MCP servers are loaded
            from ``config.app.providers_file``.
        agents_dir: Directory of agent YAML files. Defaults to
            ``config.app.agents_dir``.
        memory: Memory store. Defaults to an in-process store.
    """
    config = config or AppConfig()

    if memory is None:
        memory = InMemoryMemoryStore(
            working_memory_scope=config.memory.working_memory_scope
        )
    capabilities = CapabilityRegistry(
        providers if providers is not None else _configured_providers(config)
    )
    scorer = KeywordRelevanceScorer(threshold=config.relevance.threshold)
    analyzer = TaskAnalyzer(main_agent_id=config.coordination.main_agent_id)
    agent_registry = AgentRegistry()
    router = DelegationRouter(
        agent_registry,
        agent_map=config.delegation.agent_map,
        temperature=config.delegation.temperature,
        max_steps=config.delegation.max_steps,
    )
    toolkit = build_toolkit(
        capabilities,
        scorer,
        router=router,
        top_k=config.relevance.top_k,
        memory=memory,
        analyzer=analyzer,
    )

    llm_pool = None if llm_provider is not None else LLMProviderPool(config)
    loader = AgentLoader(
        toolkit=toolkit,
        memory=memory,
        llm_provider=llm_provider,
        provider_factory=llm_pool.for_agent if llm_pool is not None else None,
        processors=default_processors(
            summarize_threshold=config.memory.summarize_threshold,
            token_limit=config.memory.token_limit,
            filtered_tools=config.memory.filtered_tools,
        ),
        history_limit=config.memory.last_messages,
        defaults=config.agent_defaults,
    )

    agents: list[Agent] = []
    directory = _resolve_path(agents_dir or config.app.agents_dir)
    if directory.is_dir():
        try:
            agents = loader.load_all_from_directory(directory)
        except AgentLoadError as e:
            logger.warning(
                "Failed to load agents from directory",
                path=str(directory),
                error=str(e),
            )
    else:
        logger.info(
            "Agents configuration directory not found, skipping auto-load",
            path=str(directory),
        )

    coordinator = Coordinator(
        agent_registry,
        memory,
        router,
        analyzer=analyzer,
        main_agent_id=config.coordination.main_agent_id,
        temperature=config.coordination.temperature,
        step_buffer=config.coordination.step_buffer,
        default_timeout=config.coordination.timeout,
    )

    return Application(
        config=config,
        memory=memory,
        capabilities=capabilities,
        scorer=scorer,
        analyzer=analyzer,
        agent_registry=agent_registry,
        router=router,
        toolkit=toolkit,
        agents=agents,
        coordinator=coordinator,
        llm_pool=llm_pool,
    )
