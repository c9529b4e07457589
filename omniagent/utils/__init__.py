"""Utility modules for OmniAgent.

This package provides utility functions and classes for:
- Configuration management
- Structured logging
- Exception handling
- LLM observability (Langfuse)
"""

from .config import (
    AgentDefaults,
    AnthropicConfig,
    AppConfig,
    AppSettings,
    CoordinationConfig,
    DelegationConfig,
    Environment,
    LangfuseConfig,
    LogFormat,
    LoggingConfig,
    MemoryConfig,
    OpenAIConfig,
    ProvidersConfig,
    RelevanceConfig,
    get_config,
    init_config,
    reset_config,
)
from .exceptions import (
    CapabilityError,
    ConfigurationError,
    CoordinationTimeoutError,
    ExternalServiceError,
    GenerationError,
    InvalidConfigurationError,
    LLMAPIError,
    LLMRateLimitError,
    LLMTimeoutError,
    MissingConfigurationError,
    OmniAgentError,
    PromptUnavailableError,
    ProviderUnavailableError,
    ResourceUnavailableError,
    ToolExecutionError,
    ValidationError,
)
from .logging import (
    LoggerAdapter,
    clear_correlation_id,
    get_agent_logger,
    get_correlation_id,
    get_logger,
    get_provider_logger,
    get_thread_logger,
    request_context,
    set_correlation_id,
    setup_logging,
)
from .observability import (
    LangfuseClient,
    get_observability_client,
    init_observability,
    reset_observability,
    shutdown_observability,
)

__all__ = [
    # Config
    "AppConfig",
    "AppSettings",
    "AnthropicConfig",
    "OpenAIConfig",
    "LoggingConfig",
    "AgentDefaults",
    "DelegationConfig",
    "CoordinationConfig",
    "MemoryConfig",
    "RelevanceConfig",
    "ProvidersConfig",
    "LangfuseConfig",
    "Environment",
    "LogFormat",
    "get_config",
    "init_config",
    "reset_config",
    # Logging
    "setup_logging",
    "get_logger",
    "LoggerAdapter",
    "get_agent_logger",
    "get_thread_logger",
    "get_provider_logger",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "request_context",
    # Exceptions
    "OmniAgentError",
    "ConfigurationError",
    "MissingConfigurationError",
    "InvalidConfigurationError",
    "ValidationError",
    "ExternalServiceError",
    "LLMAPIError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "GenerationError",
    "CapabilityError",
    "ProviderUnavailableError",
    "ResourceUnavailableError",
    "PromptUnavailableError",
    "ToolExecutionError",
    "CoordinationTimeoutError",
    # Observability
    "LangfuseClient",
    "get_observability_client",
    "init_observability",
    "shutdown_observability",
    "reset_observability",
]
