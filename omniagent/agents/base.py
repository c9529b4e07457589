"""Agent - Tool-augmented, memory-aware generation.

An agent wraps one LLM configuration, a set of capabilities it may call and
an optional memory store. ``generate`` runs a bounded multi-step loop: the
model either answers or requests tool calls, whose results are fed back until
it answers or the step budget runs out.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from omniagent.llm import BaseLLMProvider, LLMProviderFactory, ToolCall
from omniagent.memory import MemoryProcessor, MemoryStore, apply_processors
from omniagent.models import (
    AgentConfig,
    AgentInfo,
    AgentStatus,
    MessageRole,
    ThreadMessage,
)
from omniagent.tools.base import Capability, RunContext
from omniagent.utils.exceptions import GenerationError
from omniagent.utils.logging import get_agent_logger
from omniagent.utils.observability import LangfuseClient, get_observability_client


@dataclass
class GenerationOptions:
    """Per-call overrides for ``Agent.generate``."""

    thread_id: str | None = None
    resource_id: str | None = None
    max_steps: int | None = None
    temperature: float | None = None
    run_context: RunContext | None = None


@dataclass
class ExecutedToolCall:
    """A tool call made during generation, with its outcome."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    result: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "arguments": self.arguments,
            "error": self.error,
        }


@dataclass
class GenerationResult:
    """Outcome of one ``generate`` call."""

    text: str
    tool_calls: list[ExecutedToolCall] = field(default_factory=list)
    steps: int = 0
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: str | None = None


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    return json.dumps(value, ensure_ascii=False, default=str)


def _flatten_history(messages: list[ThreadMessage]) -> tuple[list[str], list[dict[str, Any]]]:
    """Split recalled history into system notes and plain chat turns.

    Tool calls are not replayed; tool results become assistant text. Adjacent
    turns with the same role are merged and the history always starts with
    a user turn.
    """
    notes: list[str] = []
    turns: list[dict[str, Any]] = []
    for message in messages:
        if message.role == MessageRole.SYSTEM:
            notes.append(message.content)
            continue
        if message.role == MessageRole.TOOL:
            role, content = "assistant", f"[{message.tool_name} result] {message.content}"
        else:
            role, content = message.role.value, message.content
        if not content:
            continue
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"] += f"\n\n{content}"
        elif turns or role == "user":
            turns.append({"role": role, "content": content})
    return notes, turns


class Agent:
    """A configured, tool-using LLM agent.

    Attributes:
        config: Agent configuration.
        memory: Shared memory store, or None for stateless generation.
    """

    def __init__(
        self,
        config: AgentConfig,
        llm_provider: BaseLLMProvider | None = None,
        memory: MemoryStore | None = None,
        capabilities: Sequence[Capability] = (),
        processors: list[MemoryProcessor] | None = None,
        history_limit: int = 20,
        observability: LangfuseClient | None = None,
    ) -> None:
        self._config = config
        self._llm_provider = llm_provider
        self.memory = memory
        self._capabilities: dict[str, Capability] = {}
        self._processors = processors or []
        self._history_limit = history_limit
        self._observability = observability
        self._is_active = True
        self._status = AgentStatus.ACTIVE
        self._logger = get_agent_logger(config.agent_id, config.name)
        for capability in capabilities:
            self.add_capability(capability)

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def agent_id(self) -> str:
        return self._config.agent_id

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def status(self) -> AgentStatus:
        return self._status

    @property
    def tool_names(self) -> list[str]:
        return list(self._capabilities)

    def activate(self) -> None:
        self._is_active = True
        self._status = AgentStatus.ACTIVE

    def deactivate(self) -> None:
        self._is_active = False
        self._status = AgentStatus.INACTIVE

    def add_capability(self, capability: Capability) -> None:
        """Attach a capability. A later capability with the same name replaces it."""
        self._capabilities[capability.name] = capability

    def info(self) -> AgentInfo:
        info = AgentInfo.from_config(self._config, status=self._status)
        return info.model_copy(update={"tools": self.tool_names})

    def health_check(self) -> dict[str, Any]:
        return {
            "agent_id": self._config.agent_id,
            "name": self._config.name,
            "status": "healthy" if self._is_active else "unhealthy",
            "tools": self.tool_names,
            "model": self._config.model,
        }

    def _get_llm_provider(self) -> BaseLLMProvider:
        """Get or create the LLM provider.

        Raises:
            GenerationError: If the provider cannot be created.
        """
        if self._llm_provider is None:
            try:
                self._llm_provider = LLMProviderFactory.create(
                    provider=self._config.provider, model=self._config.model
                )
            except Exception as e:
                raise GenerationError(
                    self.agent_id, f"Failed to create LLM provider: {e}", cause=e
                ) from e
        return self._llm_provider

    async def _recall(self, options: GenerationOptions) -> tuple[list[str], list[dict[str, Any]]]:
        if self.memory is None or not options.thread_id:
            return [], []
        history = await self.memory.query(
            options.thread_id, options.resource_id, last=self._history_limit
        )
        return _flatten_history(apply_processors(history, self._processors))

    async def _system_prompt(
        self, notes: list[str], options: GenerationOptions, run_context: RunContext
    ) -> str:
        parts = [self._config.system_prompt or ""]
        if self.memory is not None and options.resource_id:
            working_memory = await self.memory.get_working_memory(
                options.resource_id, options.thread_id
            )
            if working_memory:
                parts.append(f"## Working Memory\n{working_memory}")
        parts.extend(notes)
        if run_context.priority is not None:
            parts.append(f"Request priority: {run_context.priority.value}")
        return "\n\n".join(part for part in parts if part)

    async def _remember(self, options: GenerationOptions, role: MessageRole, content: str) -> None:
        if self.memory is None or not options.thread_id or not options.resource_id:
            return
        await self.memory.save_messages([
            ThreadMessage(
                thread_id=options.thread_id,
                resource_id=options.resource_id,
                role=role,
                content=content,
            )
        ])

    async def _execute_tool(self, call: ToolCall, run_context: RunContext) -> ExecutedToolCall:
        executed = ExecutedToolCall(id=call.id, name=call.name, arguments=call.arguments)
        capability = self._capabilities.get(call.name)
        if capability is None:
            executed.error = f"Unknown tool: {call.name}"
        else:
            try:
                executed.result = _to_text(await capability.invoke(call.arguments, run_context))
            except Exception as e:
                executed.error = str(e) or type(e).__name__
                self._logger.warning("Tool call failed", tool=call.name, error=executed.error)
        if executed.error is not None:
            executed.result = f"Error: {executed.error}"
        return executed

    async def generate(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> GenerationResult:
        """Run the multi-step tool loop for one prompt.

        Tool failures are reported back to the model as tool results. Only
        failures of the model call itself are raised.

        Raises:
            GenerationError: If the LLM call fails.
        """
        options = options or GenerationOptions()
        run_context = options.run_context or RunContext(
            thread_id=options.thread_id, resource_id=options.resource_id
        )
        max_steps = options.max_steps or self._config.max_steps
        temperature = (
            options.temperature if options.temperature is not None else self._config.temperature
        )
        provider = self._get_llm_provider()
        obs = self._observability or get_observability_client()
        specs = [capability.spec() for capability in self._capabilities.values()]

        notes, messages = await self._recall(options)
        system_prompt = await self._system_prompt(notes, options, run_context)
        await self._remember(options, MessageRole.USER, prompt)
        if messages and messages[-1]["role"] == "user":
            messages[-1]["content"] += f"\n\n{prompt}"
        else:
            messages.append({"role": "user", "content": prompt})

        self._status = AgentStatus.BUSY
        self._logger.info(
            "Generation started",
            thread_id=options.thread_id,
            max_steps=max_steps,
            tools=len(specs),
        )

        result = GenerationResult(text="")
        try:
            while result.steps < max_steps:
                result.steps += 1
                response = await provider.chat(
                    messages=messages,
                    model=self._config.model,
                    max_tokens=self._config.max_tokens,
                    temperature=temperature,
                    system_prompt=system_prompt,
                    tools=specs or None,
                )
                for key, value in response.usage.items():
                    result.usage[key] = result.usage.get(key, 0) + value
                result.text = response.content
                result.finish_reason = response.finish_reason
                if run_context.correlation_id:
                    obs.log_generation(
                        run_context.correlation_id,
                        name=f"{self.agent_id}:step{result.steps}",
                        model=response.model,
                        input_messages=messages,
                        output=response.content,
                        model_parameters={"temperature": temperature},
                        usage=response.usage,
                    )

                if not response.tool_calls:
                    break

                messages.append({
                    "role": "assistant",
                    "content": response.content,
                    "tool_calls": [call.to_dict() for call in response.tool_calls],
                })
                executed = await asyncio.gather(
                    *(self._execute_tool(call, run_context) for call in response.tool_calls)
                )
                for call in executed:
                    result.tool_calls.append(call)
                    messages.append({
                        "role": "tool",
                        "tool_call_id": call.id,
                        "name": call.name,
                        "content": call.result,
                    })
        except asyncio.CancelledError:
            self._status = AgentStatus.ACTIVE
            raise
        except GenerationError:
            self._status = AgentStatus.ERROR
            raise
        except Exception as e:
            self._status = AgentStatus.ERROR
            self._logger.error("Generation failed", error=str(e))
            raise GenerationError(self.agent_id, str(e) or type(e).__name__, cause=e) from e

        self._status = AgentStatus.ACTIVE
        if result.text:
            await self._remember(options, MessageRole.ASSISTANT, result.text)

        self._logger.info(
            "Generation completed",
            steps=result.steps,
            tool_calls=len(result.tool_calls),
        )
        return result
