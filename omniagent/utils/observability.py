"""LLM Observability with Langfuse.

One trace is opened per coordinated request (keyed by the correlation id).
Delegations become spans and LLM calls become generations under it. When
Langfuse is disabled or misconfigured every method is a no-op, and a failing
Langfuse call is logged and never reaches the caller.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from langfuse import Langfuse

from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_HOST = "https://cloud.langfuse.com"


class LangfuseClient:
    """Wrapper for the Langfuse client with graceful degradation.

    Open traces and spans are kept by id so that the coordinator and the
    delegation router can correlate them without passing SDK objects around.
    """

    def __init__(
        self,
        public_key: str = "",
        secret_key: str = "",
        host: str = DEFAULT_HOST,
        enabled: bool = True,
    ):
        self.enabled = enabled and bool(public_key and secret_key)
        self._client: Langfuse | None = None
        self._traces: dict[str, Any] = {}
        self._spans: dict[str, Any] = {}

        if enabled and not self.enabled:
            logger.debug("Langfuse credentials not provided, tracking disabled")
        if not self.enabled:
            return

        try:
            self._client = Langfuse(public_key=public_key, secret_key=secret_key, host=host)
        except Exception as e:
            logger.warning("Failed to initialize Langfuse client", error=str(e))
            self.enabled = False
            return
        logger.info("Langfuse client initialized", host=host)

    @contextmanager
    def _reporting(self, action: str, **fields: Any) -> Iterator[None]:
        try:
            yield
        except Exception as e:
            logger.warning(f"Langfuse {action} failed", error=str(e), **fields)

    def start_trace(
        self,
        trace_id: str,
        name: str,
        metadata: dict[str, Any] | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
        input_data: Any = None,
    ) -> str | None:
        """Open the trace for one coordinated request.

        Args:
            trace_id: The request's correlation id.
            name: Trace name.
            metadata: Extra metadata, e.g. the task analysis.
            user_id: The requesting user.
            session_id: The conversation thread id.
            input_data: The user message.

        Returns:
            The trace id, or None when nothing was recorded.
        """
        if self._client is None:
            return None
        with self._reporting("start_trace", trace_id=trace_id):
            self._traces[trace_id] = self._client.trace(
                id=trace_id,
                name=name,
                metadata=metadata or {},
                user_id=user_id,
                session_id=session_id,
                input=input_data,
            )
            return trace_id
        return None

    def end_trace(self, trace_id: str, output: Any = None, status: str = "success") -> None:
        trace = self._traces.pop(trace_id, None)
        if trace is None:
            return
        with self._reporting("end_trace", trace_id=trace_id):
            trace.update(output=output, metadata={"status": status})

    def start_span(
        self,
        span_id: str,
        trace_id: str,
        name: str,
        input_data: Any = None,
        metadata: dict[str, Any] | None = None,
    ) -> str | None:
        """Open a span under a trace.

        A delegation that runs outside a coordinated request has no trace to
        attach to and is skipped.
        """
        trace = self._traces.get(trace_id)
        if trace is None:
            return None
        with self._reporting("start_span", span_id=span_id):
            self._spans[span_id] = trace.span(
                id=span_id, name=name, input=input_data, metadata=metadata or {}
            )
            return span_id
        return None

    def end_span(
        self,
        span_id: str,
        output: Any = None,
        status: str = "success",
        level: str = "DEFAULT",
    ) -> None:
        """Close a span. ``level`` is a Langfuse level (DEFAULT, WARNING, ERROR)."""
        span = self._spans.pop(span_id, None)
        if span is None:
            return
        with self._reporting("end_span", span_id=span_id):
            span.end(output=output, level=level, metadata={"status": status})

    def log_generation(
        self,
        trace_id: str,
        name: str,
        model: str,
        input_messages: list[dict[str, Any]],
        output: Any,
        model_parameters: dict[str, Any] | None = None,
        usage: dict[str, int] | None = None,
    ) -> None:
        """Record one LLM call under an open trace."""
        trace = self._traces.get(trace_id)
        if trace is None:
            return
        with self._reporting("generation", trace_id=trace_id):
            trace.generation(
                name=name,
                model=model,
                input=input_messages,
                output=output,
                model_parameters=model_parameters or {},
                usage=usage,
            )

    def flush(self) -> None:
        if self._client is not None:
            with self._reporting("flush"):
                self._client.flush()

    def shutdown(self) -> None:
        if self._client is not None:
            with self._reporting("shutdown"):
                self._client.shutdown()
                logger.info("Langfuse client shutdown")


_observability_client: LangfuseClient | None = None


def get_observability_client() -> LangfuseClient:
    """Return the process-wide client, or a disabled one if none was initialized."""
    return _observability_client or LangfuseClient(enabled=False)


def init_observability(
    public_key: str = "",
    secret_key: str = "",
    host: str = DEFAULT_HOST,
    enabled: bool = True,
) -> LangfuseClient:
    global _observability_client
    _observability_client = LangfuseClient(
        public_key=public_key, secret_key=secret_key, host=host, enabled=enabled
    )
    return _observability_client


def shutdown_observability() -> None:
    """Flush and close the process-wide client."""
    global _observability_client
    client, _observability_client = _observability_client, None
    if client is not None:
        client.flush()
        client.shutdown()


def reset_observability() -> None:
    """Forget the process-wide client without flushing (tests)."""
    global _observability_client
    _observability_client = None
