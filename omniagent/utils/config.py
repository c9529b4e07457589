"""Application configuration.

Settings come from `configs/app.yaml` with environment variables (and an
optional `.env` file) layered on top. Each section is its own pydantic model
so that invalid values fail at startup rather than mid-request.
"""

import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogFormat(str, Enum):
    """Log output format types."""

    JSON = "json"
    CONSOLE = "console"


class AnthropicConfig(BaseModel):
    """Anthropic API configuration."""

    api_key: str = Field(default="", description="Anthropic API key")


class OpenAIConfig(BaseModel):
    """OpenAI (or OpenAI-compatible) API configuration."""

    api_key: str = Field(default="", description="OpenAI API key")
    base_url: str | None = Field(
        default=None, description="Optional base URL for compatible endpoints"
    )


class AppSettings(BaseModel):
    """Application settings."""

    env: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")
    name: str = Field(default="OmniAgent", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    agents_dir: str = Field(
        default="configs/agents", description="Directory with agent YAML files"
    )
    providers_file: str | None = Field(
        default="configs/providers.yaml",
        description="Capability provider configuration file",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: LogFormat = Field(default=LogFormat.JSON, description="Log format")
    file: str | None = Field(default=None, description="Optional log file")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper


class AgentDefaults(BaseModel):
    """Default settings for agents."""

    model: str = Field(default="gpt-4o-mini", description="Default LLM model")
    max_tokens: int = Field(default=4096, description="Default max tokens")
    temperature: float = Field(default=0.7, description="Default temperature")
    max_steps: int = Field(default=5, description="Default tool-loop step ceiling")

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return v

    @field_validator("max_tokens", "max_steps")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class DelegationConfig(BaseModel):
    """Delegation router settings."""

    temperature: float = Field(default=0.7, description="Sub-agent temperature")
    max_steps: int = Field(default=3, description="Sub-agent step ceiling")
    agent_map: dict[str, str] = Field(
        default_factory=lambda: {
            "email": "email_agent",
            "calendar": "calendar_agent",
            "web_search": "web_search_agent",
            "weather": "weather_agent",
            "project": "project_agent",
            "analytics": "analytics_agent",
        },
        description="Delegation key to agent id",
    )

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return v

    @field_validator("max_steps")
    @classmethod
    def validate_max_steps(cls, v: int) -> int:
        if not 1 <= v <= 4:
            raise ValueError("Delegation max_steps must be between 1 and 4")
        return v


class CoordinationConfig(BaseModel):
    """Coordinator settings."""

    main_agent_id: str = Field(default="main_agent", description="Orchestrator agent")
    temperature: float = Field(default=0.7, description="Orchestrator temperature")
    step_buffer: int = Field(default=2, description="Steps added to the estimate")
    timeout: float | None = Field(
        default=300.0, description="Default request timeout in seconds"
    )

    @field_validator("step_buffer")
    @classmethod
    def validate_step_buffer(cls, v: int) -> int:
        if v < 0:
            raise ValueError("step_buffer must not be negative")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("Timeout must be positive")
        return v


class MemoryConfig(BaseModel):
    """Conversation memory settings."""

    last_messages: int = Field(default=20, description="History recalled per turn")
    working_memory_scope: str = Field(
        default="resource", description="Working memory scope (resource or thread)"
    )
    summarize_threshold: int = Field(
        default=30, description="Messages kept before older ones are summarized"
    )
    token_limit: int = Field(default=100000, description="Recalled history budget")
    filtered_tools: list[str] = Field(
        default_factory=list, description="Tool results dropped from recalled history"
    )

    @field_validator("working_memory_scope")
    @classmethod
    def validate_scope(cls, v: str) -> str:
        if v not in {"resource", "thread"}:
            raise ValueError("working_memory_scope must be 'resource' or 'thread'")
        return v


class RelevanceConfig(BaseModel):
    """Relevance scoring settings."""

    threshold: float = Field(default=0.3, description="Minimum relevant score")
    top_k: int = Field(default=5, description="Entries returned per kind")

    @field_validator("threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("Threshold must be between 0.0 and 1.0")
        return v


class ProvidersConfig(BaseModel):
    """Capability provider settings."""

    enabled: bool = Field(default=True, description="Connect configured providers")
    refresh_on_startup: bool = Field(default=True, description="Refresh at startup")


class LangfuseConfig(BaseModel):
    """Langfuse observability configuration."""

    enabled: bool = Field(default=False, description="Enable Langfuse")
    public_key: str = Field(default="", description="Langfuse public key")
    secret_key: str = Field(default="", description="Langfuse secret key")
    host: str = Field(
        default="https://cloud.langfuse.com", description="Langfuse host URL"
    )


_SECTIONS: dict[str, type[BaseModel]] = {
    "app": AppSettings,
    "anthropic": AnthropicConfig,
    "openai": OpenAIConfig,
    "logging": LoggingConfig,
    "agent_defaults": AgentDefaults,
    "delegation": DelegationConfig,
    "coordination": CoordinationConfig,
    "memory": MemoryConfig,
    "relevance": RelevanceConfig,
    "providers": ProvidersConfig,
    "langfuse": LangfuseConfig,
}


# Environment variable -> (section, field). Values are strings; pydantic
# coerces them to the field type when the config is rebuilt.
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "APP_ENV": ("app", "env"),
    "APP_DEBUG": ("app", "debug"),
    "AGENTS_DIR": ("app", "agents_dir"),
    "PROVIDERS_FILE": ("app", "providers_file"),
    "ANTHROPIC_API_KEY": ("anthropic", "api_key"),
    "OPENAI_API_KEY": ("openai", "api_key"),
    "OPENAI_BASE_URL": ("openai", "base_url"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
    "LOG_FILE": ("logging", "file"),
    "DEFAULT_MODEL": ("agent_defaults", "model"),
    "DEFAULT_MAX_TOKENS": ("agent_defaults", "max_tokens"),
    "DEFAULT_TEMPERATURE": ("agent_defaults", "temperature"),
    "COORDINATION_TIMEOUT": ("coordination", "timeout"),
    "LANGFUSE_ENABLED": ("langfuse", "enabled"),
    "LANGFUSE_PUBLIC_KEY": ("langfuse", "public_key"),
    "LANGFUSE_SECRET_KEY": ("langfuse", "secret_key"),
    "LANGFUSE_HOST": ("langfuse", "host"),
}


class AppConfig(BaseModel):
    """Root configuration, one field per section of ``configs/app.yaml``."""

    app: AppSettings = Field(default_factory=AppSettings)
    anthropic: AnthropicConfig = Field(default_factory=AnthropicConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    agent_defaults: AgentDefaults = Field(default_factory=AgentDefaults)
    delegation: DelegationConfig = Field(default_factory=DelegationConfig)
    coordination: CoordinationConfig = Field(default_factory=CoordinationConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    relevance: RelevanceConfig = Field(default_factory=RelevanceConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    langfuse: LangfuseConfig = Field(default_factory=LangfuseConfig)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "AppConfig":
        """Build a config from a parsed mapping. Empty sections keep their defaults."""
        sections = {
            key: model(**data[key])
            for key, model in _SECTIONS.items()
            if data.get(key) is not None
        }
        return cls(**sections)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "AppConfig":
        """Read a YAML config file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the top level is not a mapping.
        """
        path = Path(yaml_path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping: {yaml_path}")
        return cls.from_mapping(data)

    @classmethod
    def load(
        cls,
        yaml_path: str | Path | None = None,
        env_file: str | Path | None = None,
    ) -> "AppConfig":
        """YAML (when given) as the base, then ``.env`` and process environment on top.

        Variables already set in the process environment win over ``.env``.
        """
        config = cls.from_yaml(yaml_path) if yaml_path else cls()
        load_dotenv(env_file)
        return config.with_env_overrides()

    def with_env_overrides(self, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Return a copy with every set variable in ``ENV_OVERRIDES`` applied."""
        environ = os.environ if environ is None else environ
        data = self.model_dump(mode="json")
        for var, (section, field) in ENV_OVERRIDES.items():
            value = environ.get(var)
            if value:
                data[section][field] = value
        return type(self).from_mapping(data)


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Return the process-wide config.

    Raises:
        RuntimeError: If ``init_config`` has not been called.
    """
    if _config is None:
        raise RuntimeError("Configuration not initialized. Call init_config() first.")
    return _config


def init_config(
    yaml_path: str | Path | None = None,
    env_file: str | Path | None = None,
) -> AppConfig:
    """Load the config and make it the process-wide instance."""
    global _config
    _config = AppConfig.load(yaml_path=yaml_path, env_file=env_file)
    return _config


def reset_config() -> None:
    global _config
    _config = None
