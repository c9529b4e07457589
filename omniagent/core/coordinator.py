"""Coordinator - Single entry point for user requests.

``process_request`` resolves the conversation thread, sizes the step budget
with the task analyzer, runs the orchestrator agent and assembles a
``CoordinationResult``. It never raises for processing failures: errors and
timeouts come back as ``success=False`` results.
"""

from __future__ import annotations

import asyncio
import time
import traceback
import weakref
from datetime import UTC, datetime

from pydantic import ValidationError as PydanticValidationError

from omniagent.agents.base import GenerationOptions, GenerationResult
from omniagent.core.analyzer import TaskAnalyzer
from omniagent.core.delegation import DelegationRouter
from omniagent.core.registry import AgentRegistry
from omniagent.memory import MemoryStore
from omniagent.models import (
    CoordinationContext,
    CoordinationRequest,
    CoordinationResult,
    Priority,
    TaskAnalysis,
    ThreadMessage,
)
from omniagent.tools.base import RunContext
from omniagent.utils.exceptions import CoordinationTimeoutError, ValidationError
from omniagent.utils.logging import (
    LoggerAdapter,
    get_logger,
    get_thread_logger,
    request_context,
)
from omniagent.utils.observability import LangfuseClient, get_observability_client

logger = get_logger(__name__)

THREAD_TITLE = "Unified Assistant Conversation"
DEFAULT_RESPONSE = "Task completed successfully"
DELEGATION_TOOL = "delegate_task"


class Coordinator:
    """Orchestrates one user request end to end.

    Requests on the same thread are serialized; requests on different
    threads run independently.
    """

    def __init__(
        self,
        agents: AgentRegistry,
        memory: MemoryStore,
        router: DelegationRouter,
        analyzer: TaskAnalyzer | None = None,
        main_agent_id: str = "main_agent",
        temperature: float = 0.7,
        step_buffer: int = 2,
        default_timeout: float | None = 300.0,
        observability: LangfuseClient | None = None,
    ) -> None:
        self._agents = agents
        self._memory = memory
        self._router = router
        self._analyzer = analyzer or TaskAnalyzer(main_agent_id=main_agent_id)
        self.main_agent_id = main_agent_id
        self.temperature = temperature
        self.step_buffer = step_buffer
        self.default_timeout = default_timeout
        self._observability = observability
        self._thread_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, thread_id: str) -> asyncio.Lock:
        lock = self._thread_locks.get(thread_id)
        if lock is None:
            lock = asyncio.Lock()
            self._thread_locks[thread_id] = lock
        return lock

    async def create_thread(self, user_id: str, thread_id: str | None = None) -> str:
        thread = await self._memory.create_thread(
            resource_id=user_id,
            thread_id=thread_id,
            title=THREAD_TITLE,
            metadata={
                "created_by": type(self).__name__,
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )
        return thread.thread_id

    def analyze(self, message: str) -> TaskAnalysis:
        return self._analyzer.analyze(message)

    def agents_used(self, generation: GenerationResult) -> list[str]:
        """The orchestrator plus every sub-agent named in a delegation call."""
        used = [self.main_agent_id]
        for call in generation.tool_calls:
            if call.name != DELEGATION_TOOL:
                continue
            agent_id = self._router.resolve(str(call.arguments.get("agent", "")))
            if agent_id and agent_id not in used:
                used.append(agent_id)
        return used

    async def process_request(
        self,
        request: CoordinationRequest | None = None,
        *,
        user_id: str | None = None,
        message: str | None = None,
        thread: str | None = None,
        priority: Priority | str | None = None,
        timeout: float | None = None,
    ) -> CoordinationResult:
        """Process one request. Never raises for processing failures.

        Either pass a ``CoordinationRequest`` or the individual fields.

        Raises:
            ValidationError: If the request itself is malformed.
        """
        start = time.perf_counter()
        if request is None:
            try:
                request = CoordinationRequest(
                    user_id=user_id or "",
                    message=message or "",
                    context=CoordinationContext(
                        thread=thread, priority=priority, timeout=timeout
                    ),
                )
            except PydanticValidationError as e:
                raise ValidationError(
                    "Invalid coordination request",
                    errors=e.errors(include_url=False, include_context=False),
                ) from e

        with request_context(user_id=request.user_id) as correlation_id:
            return await self._process(request, correlation_id, start)

    async def _process(
        self, request: CoordinationRequest, correlation_id: str, start: float
    ) -> CoordinationResult:
        context = request.context
        thread_id = context.thread or ""
        run_context = RunContext(
            user_id=request.user_id,
            resource_id=request.user_id,
            priority=context.priority or Priority.MEDIUM,
            timeout=context.timeout,
            correlation_id=correlation_id,
        )
        obs = self._observability or get_observability_client()
        obs.start_trace(
            correlation_id,
            name="process_request",
            user_id=request.user_id,
            session_id=context.thread,
            input_data=request.message,
        )

        timeout = context.timeout or self.default_timeout
        try:
            thread_id = await self._resolve_thread(request.user_id, thread_id)
            run_context.thread_id = thread_id
            thread_logger = get_thread_logger(thread_id, request.user_id)

            # The budget covers queueing behind other requests on the thread.
            remaining = None
            if timeout is not None:
                remaining = max(0.0, timeout - (time.perf_counter() - start))
            try:
                analysis, generation = await asyncio.wait_for(
                    self._run_serialized(request, run_context, thread_logger),
                    timeout=remaining,
                )
            except TimeoutError as e:
                raise CoordinationTimeoutError(thread_id, timeout or 0.0) from e

            result = CoordinationResult(
                success=True,
                response=generation.text or DEFAULT_RESPONSE,
                thread=thread_id,
                agents_used=self.agents_used(generation),
                execution_time=time.perf_counter() - start,
                metadata={
                    "analysis": analysis.model_dump(mode="json"),
                    "tool_calls": len(generation.tool_calls),
                    "steps": generation.steps,
                    "correlation_id": correlation_id,
                },
            )
            thread_logger.info(
                "Request completed",
                agents_used=result.agents_used,
                execution_time=result.execution_time,
            )
            obs.end_trace(correlation_id, output=result.response)
            return result

        except CoordinationTimeoutError as e:
            result = self._timeout_result(e, run_context, thread_id, start, correlation_id)
            obs.end_trace(correlation_id, output={"error": str(e)}, status="timeout")
            return result

        except Exception as e:
            logger.error("Coordination error", error=str(e), thread_id=thread_id)
            obs.end_trace(correlation_id, output={"error": str(e)}, status="error")
            return CoordinationResult(
                success=False,
                response=f"I encountered an error while processing your request: {e}",
                thread=thread_id,
                agents_used=[],
                execution_time=time.perf_counter() - start,
                metadata={
                    "error": traceback.format_exc(),
                    "error_type": type(e).__name__,
                    "correlation_id": correlation_id,
                },
            )

    async def _resolve_thread(self, user_id: str, thread_id: str) -> str:
        """Return a thread the user owns, creating it when needed.

        Raises:
            ValidationError: If the thread belongs to another user.
        """
        if not thread_id:
            return await self.create_thread(user_id)
        thread = await self._memory.get_thread(thread_id)
        if thread is None:
            return await self.create_thread(user_id, thread_id)
        if thread.resource_id != user_id:
            logger.warning(
                "Thread owned by another user", thread_id=thread_id, user_id=user_id
            )
            raise ValidationError(f"Thread {thread_id} does not belong to user {user_id}")
        return thread_id

    async def _run_serialized(
        self, request: CoordinationRequest, run_context: RunContext, thread_logger: LoggerAdapter
    ) -> tuple[TaskAnalysis, GenerationResult]:
        async with self._lock_for(run_context.thread_id or ""):
            analysis = self.analyze(request.message)
            thread_logger.info(
                "Task analyzed",
                intent=analysis.primary_intent,
                complexity=analysis.complexity.value,
                estimated_steps=analysis.estimated_steps,
                required_agents=analysis.required_agents,
            )
            generation = await self._run_main_agent(request, analysis, run_context)
        return analysis, generation

    async def _run_main_agent(
        self, request: CoordinationRequest, analysis: TaskAnalysis, run_context: RunContext
    ) -> GenerationResult:
        agent = await self._agents.get(self.main_agent_id)
        return await agent.generate(
            request.message,
            GenerationOptions(
                thread_id=run_context.thread_id,
                resource_id=request.user_id,
                max_steps=analysis.estimated_steps + self.step_buffer,
                temperature=self.temperature,
                run_context=run_context,
            ),
        )

    def _timeout_result(
        self,
        error: CoordinationTimeoutError,
        run_context: RunContext,
        thread_id: str,
        start: float,
        correlation_id: str,
    ) -> CoordinationResult:
        partial = run_context.successful_delegations()
        logger.warning(
            "Request timed out",
            thread_id=thread_id,
            timeout=error.timeout_seconds,
            partial_results=len(partial),
        )

        lines = [f"I couldn't finish your request within {error.timeout_seconds:g} seconds."]
        if partial:
            lines.append("Here is what was completed before the time ran out:")
            lines.extend(
                f"- {record.result.metadata.agent}: {record.result.result}"
                for record in partial
            )

        agents = [self.main_agent_id]
        for record in partial:
            if record.result.metadata.agent not in agents:
                agents.append(record.result.metadata.agent)

        return CoordinationResult(
            success=False,
            response="\n".join(lines),
            thread=thread_id,
            agents_used=agents if partial else [],
            execution_time=time.perf_counter() - start,
            metadata={
                "error": str(error),
                "error_type": type(error).__name__,
                "partial_results": [
                    {
                        "agent": record.result.metadata.agent,
                        "task": record.request.task,
                        "result": record.result.result,
                    }
                    for record in partial
                ],
                "correlation_id": correlation_id,
            },
        )

    async def get_conversation_history(
        self, user_id: str, thread_id: str | None = None, limit: int = 10
    ) -> list[ThreadMessage]:
        """The last ``limit`` messages of a thread, or of the user's newest thread.

        Returns an empty list when nothing is found or the store fails.
        """
        try:
            if thread_id is None:
                threads = await self._memory.get_threads_by_resource_id(user_id)
                if not threads:
                    return []
                thread_id = threads[0].thread_id
            return await self._memory.query(thread_id, user_id, last=limit)
        except Exception as e:
            logger.error("Error fetching conversation history", error=str(e), user_id=user_id)
            return []

    async def clear_conversation_history(
        self, user_id: str, thread_id: str | None = None
    ) -> bool:
        """Delete the messages of one thread, or of every thread of the user."""
        try:
            if thread_id is not None:
                thread_ids = [thread_id]
            else:
                threads = await self._memory.get_threads_by_resource_id(user_id)
                thread_ids = [thread.thread_id for thread in threads]

            removed = 0
            for tid in thread_ids:
                messages = await self._memory.query(tid, user_id)
                ids = [message.id for message in messages]
                if ids:
                    removed += await self._memory.delete_messages(ids)
            logger.info(
                "Conversation history cleared",
                user_id=user_id,
                threads=len(thread_ids),
                messages=removed,
            )
            return True
        except Exception as e:
            logger.error("Error clearing conversation history", error=str(e), user_id=user_id)
            return False

