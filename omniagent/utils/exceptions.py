"""Custom exception classes for the OmniAgent system.

This module provides a unified exception hierarchy for the application.
Collaborator failures (providers, LLMs, storage) are wrapped in these
classes so that callers can decide locally whether a failure is recoverable.
"""

from typing import Any


class OmniAgentError(Exception):
    """Base exception for all OmniAgent errors.

    All custom exceptions in this system should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
            cause: Optional original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for logs and tool results."""
        result: dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(OmniAgentError):
    """Raised when there's a configuration error."""

    pass


class MissingConfigurationError(ConfigurationError):
    """Raised when a required configuration is missing."""

    def __init__(self, config_key: str, message: str | None = None):
        self.config_key = config_key
        msg = message or f"Missing required configuration: {config_key}"
        super().__init__(msg, details={"config_key": config_key})


class InvalidConfigurationError(ConfigurationError):
    """Raised when a configuration value is invalid."""

    def __init__(self, config_key: str, value: Any, message: str | None = None):
        self.config_key = config_key
        self.value = value
        msg = message or f"Invalid configuration value for {config_key}: {value}"
        super().__init__(msg, details={"config_key": config_key, "value": str(value)})


# ============================================================================
# Input Errors
# ============================================================================


class ValidationError(OmniAgentError):
    """Raised when a public operation receives malformed input.

    Always raised before any network I/O takes place.
    """

    def __init__(
        self,
        message: str = "Validation error",
        errors: list[dict[str, Any]] | None = None,
    ):
        details = {"validation_errors": errors} if errors else None
        super().__init__(message, details=details)
        self.errors = errors or []


# ============================================================================
# LLM/External Service Errors
# ============================================================================


class ExternalServiceError(OmniAgentError):
    """Base class for external service errors."""

    pass


class LLMAPIError(ExternalServiceError):
    """Raised when LLM API call fails."""

    def __init__(
        self,
        message: str,
        provider: str = "openai",
        model: str | None = None,
        cause: Exception | None = None,
    ):
        details = {"provider": provider}
        if model:
            details["model"] = model
        super().__init__(message, details=details, cause=cause)
        self.provider = provider
        self.model = model


class LLMRateLimitError(LLMAPIError):
    """Raised when LLM API rate limit is exceeded."""

    def __init__(
        self,
        retry_after: int | None = None,
        provider: str = "openai",
        cause: Exception | None = None,
    ):
        super().__init__(
            "LLM API rate limit exceeded",
            provider=provider,
            cause=cause,
        )
        self.retry_after = retry_after
        if retry_after:
            self.details["retry_after"] = retry_after


class LLMTimeoutError(LLMAPIError):
    """Raised when LLM API call times out."""

    def __init__(
        self,
        timeout_seconds: float,
        provider: str = "openai",
        cause: Exception | None = None,
    ):
        super().__init__(
            f"LLM API call timed out after {timeout_seconds}s",
            provider=provider,
            cause=cause,
        )
        self.timeout_seconds = timeout_seconds
        self.details["timeout_seconds"] = timeout_seconds


class GenerationError(ExternalServiceError):
    """Raised when an agent cannot complete a generation."""

    def __init__(self, agent_id: str, message: str, cause: Exception | None = None):
        super().__init__(message, details={"agent_id": agent_id}, cause=cause)
        self.agent_id = agent_id


# ============================================================================
# Capability Errors
# ============================================================================


class CapabilityError(OmniAgentError):
    """Base class for capability provider failures."""

    def __init__(
        self,
        message: str,
        provider_id: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        details = {"provider_id": provider_id, **(details or {})}
        super().__init__(message, details=details, cause=cause)
        self.provider_id = provider_id


class ProviderUnavailableError(CapabilityError):
    """Raised when a capability provider cannot be reached."""

    def __init__(self, provider_id: str, cause: Exception | None = None):
        reason = f": {cause}" if cause else ""
        super().__init__(
            f"Capability provider unavailable: {provider_id}{reason}",
            provider_id=provider_id,
            cause=cause,
        )


class ResourceUnavailableError(CapabilityError):
    """Raised when a resource cannot be read."""

    def __init__(
        self,
        provider_id: str,
        uri: str,
        reason: str | None = None,
        cause: Exception | None = None,
    ):
        msg = f"Resource unavailable: {uri} on {provider_id}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg, provider_id=provider_id, details={"uri": uri}, cause=cause)
        self.uri = uri


class PromptUnavailableError(CapabilityError):
    """Raised when a prompt cannot be expanded."""

    def __init__(
        self,
        provider_id: str,
        name: str,
        reason: str | None = None,
        cause: Exception | None = None,
    ):
        msg = f"Prompt unavailable: {name} on {provider_id}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg, provider_id=provider_id, details={"name": name}, cause=cause)
        self.name = name


class ToolExecutionError(CapabilityError):
    """Raised when a remote tool call fails."""

    def __init__(
        self,
        provider_id: str,
        name: str,
        reason: str | None = None,
        cause: Exception | None = None,
    ):
        msg = f"Tool execution failed: {name} on {provider_id}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg, provider_id=provider_id, details={"name": name}, cause=cause)
        self.name = name


# ============================================================================
# Timeout Errors
# ============================================================================


class CoordinationTimeoutError(OmniAgentError):
    """Raised when a coordinated request exceeds its timeout."""

    def __init__(self, thread_id: str, timeout_seconds: float):
        super().__init__(
            f"Request on thread {thread_id} timed out after {timeout_seconds}s",
            details={"thread_id": thread_id, "timeout_seconds": timeout_seconds},
        )
        self.thread_id = thread_id
        self.timeout_seconds = timeout_seconds
