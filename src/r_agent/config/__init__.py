"""
Configuration system for r-agent.

This package provides typed configuration classes with:
- Dataclass-based settings with validation
- Environment variable loading
- YAML/TOML file loading
- Sensible defaults with override capability
"""

from .agent import AgentLimits
from .base import LogFormat, LogLevel
from .client import ClientConfig, load_key
from .logging import LoggingConfig
from .settings import Settings, load_env

__all__ = [
    # Types
    "LogLevel",
    "LogFormat",
    # Sections
    "ClientConfig",
    "AgentLimits",
    "LoggingConfig",
    "load_key",
    # Master config
    "Settings",
    # Helpers
    "load_env",
]
