"""Structured logging for OmniAgent.

Everything logs through structlog on top of the stdlib root logger. A
correlation id, set once per coordinated request, is stamped on every event
emitted by the coordinator, the agents it runs and the delegations they make.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

APP_NAME = "omniagent"

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "mcp", "anthropic", "openai")

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation id for the current context, generating one if omitted."""
    value = correlation_id or str(uuid4())
    correlation_id_var.set(value)
    return value


def clear_correlation_id() -> None:
    correlation_id_var.set(None)


@contextmanager
def request_context(correlation_id: str | None = None, **fields: Any) -> Iterator[str]:
    """Scope a correlation id and extra log fields to one request.

    The previous values come back when the block exits. Each asyncio task has
    its own context, so concurrent requests do not leak into each other.

    Yields:
        The correlation id in effect inside the block.
    """
    value = correlation_id or str(uuid4())
    token = correlation_id_var.set(value)
    bound = structlog.contextvars.bind_contextvars(**fields)
    try:
        yield value
    finally:
        structlog.contextvars.reset_contextvars(**bound)
        correlation_id_var.reset(token)


def _stamp_request(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    correlation_id = correlation_id_var.get()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    event_dict.setdefault("app", APP_NAME)
    return event_dict


def _build_processors(json_format: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _stamp_request,
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.rich_traceback,
            )
        )
    return processors


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: JSON lines when True, colored console output otherwise.
        log_file: Optional file that receives the same events as stdout.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    structlog.configure(
        processors=_build_processors(json_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(log_level)

    logging.basicConfig(format="%(message)s", level=log_level, handlers=handlers, force=True)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, optionally named after a module."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


class LoggerAdapter:
    """A logger that carries a fixed set of fields on every event.

    ``bind`` returns a new adapter and leaves the original untouched, so a
    component can hand out narrower loggers (per thread, per tool call)
    without mutating its own.
    """

    def __init__(self, name: str | None = None, **context: Any) -> None:
        self._logger = get_logger(name)
        self._context: dict[str, Any] = dict(context)

    def bind(self, **context: Any) -> "LoggerAdapter":
        child = LoggerAdapter.__new__(LoggerAdapter)
        child._logger = self._logger
        child._context = {**self._context, **context}
        return child

    def _emit(self, method: str, event: str, fields: dict[str, Any]) -> None:
        getattr(self._logger, method)(event, **{**self._context, **fields})

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)

    def critical(self, event: str, **fields: Any) -> None:
        self._emit("critical", event, fields)

    def exception(self, event: str, **fields: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._emit("exception", event, fields)


def get_agent_logger(agent_id: str, agent_name: str | None = None) -> LoggerAdapter:
    """Logger bound to one agent."""
    if agent_name:
        return LoggerAdapter("agent", agent_id=agent_id, agent_name=agent_name)
    return LoggerAdapter("agent", agent_id=agent_id)


def get_thread_logger(thread_id: str, resource_id: str | None = None) -> LoggerAdapter:
    """Logger bound to one conversation thread and, optionally, its owner."""
    if resource_id:
        return LoggerAdapter("thread", thread_id=thread_id, resource_id=resource_id)
    return LoggerAdapter("thread", thread_id=thread_id)


def get_provider_logger(provider_id: str) -> LoggerAdapter:
    """Logger bound to one capability provider."""
    return LoggerAdapter("provider", provider_id=provider_id)
