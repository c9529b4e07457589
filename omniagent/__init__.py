"""OmniAgent - multi-agent orchestration over pluggable capability providers."""

__version__ = "0.1.0"
