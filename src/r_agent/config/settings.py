"""
Settings master configuration and global helpers.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
from dotenv import find_dotenv, load_dotenv

from ..config_schema import CONFIG_SCHEMA
from ..errors import InvalidConfigError
from .agent import AgentLimits
from .base import DEFAULT_API_KEY_ENV
from .client import ClientConfig
from .logging import LoggingConfig


def _read_env(target: dict[str, Any], prefix: str, name: str, convert: type) -> None:
    """Set ``target[name]`` from ``{prefix}{NAME}`` when the variable is set."""
    var = f"{prefix}{name.upper()}"
    raw = os.getenv(var)
    if not raw:
        return
    try:
        target[name] = convert(raw)
    except ValueError as e:
        raise InvalidConfigError(f"{var}={raw!r} is not a valid {convert.__name__}", cause=e) from e


@dataclass
class Settings:
    """
    Master configuration for r-agent.

    Aggregates the client, loop limits and logging sections into one object
    that can be loaded from environment variables, files, or constructed
    programmatically.
    """

    client: ClientConfig = field(default_factory=ClientConfig)
    limits: AgentLimits = field(default_factory=AgentLimits)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, prefix: str = "RAGENT_") -> Settings:
        """
        Load settings from environment variables.

        The credential is read from ``{prefix}API_KEY`` and falls back to
        ``OPENAI_API_KEY``. A missing credential is not an error here; the
        completion client refuses to start without one.

        Example:
            OPENAI_API_KEY=sk-...
            RAGENT_MODEL=gpt-3.5-turbo-instruct
            RAGENT_MAX_ITERATIONS=20
        """
        client: dict[str, Any] = {}
        if key := os.getenv(f"{prefix}API_KEY"):
            client["api_key"] = key
            client["api_key_env"] = f"{prefix}API_KEY"
        elif key := os.getenv(DEFAULT_API_KEY_ENV):
            client["api_key"] = key
        if url := os.getenv(f"{prefix}BASE_URL"):
            client["base_url"] = url
        if model := os.getenv(f"{prefix}MODEL"):
            client["model"] = model
        _read_env(client, prefix, "timeout", float)
        _read_env(client, prefix, "temperature", float)
        _read_env(client, prefix, "max_tokens", int)

        limits: dict[str, Any] = {}
        for name in (
            "max_iterations",
            "max_parse_retries",
            "max_transport_retries",
            "max_unknown_tool_errors",
        ):
            _read_env(limits, prefix, name, int)
        _read_env(limits, prefix, "backoff", float)
        _read_env(limits, prefix, "max_backoff", float)

        logging_cfg: dict[str, Any] = {}
        if level := os.getenv(f"{prefix}LOG_LEVEL"):
            logging_cfg["level"] = level.upper()
        if log_format := os.getenv(f"{prefix}LOG_FORMAT"):
            logging_cfg["format"] = log_format.lower()
        if log_file := os.getenv(f"{prefix}LOG_FILE"):
            logging_cfg["log_file"] = log_file

        return cls(
            client=ClientConfig(**client),
            limits=AgentLimits(**limits),
            logging=LoggingConfig(**logging_cfg),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> Settings:
        """
        Load settings from a YAML or TOML file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .toml)

        Returns:
            Settings object with values from file
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml

            with open(path) as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            import tomllib

            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            raise InvalidConfigError(f"Unsupported config file format: {suffix}")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """
        Create Settings from a dictionary.

        The dictionary is validated against the configuration schema, then
        each section is built through its constructor so the dataclass
        checks run as well.
        """
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            raise InvalidConfigError(f"Configuration validation failed: {e.message}", cause=e) from e

        return cls(
            client=ClientConfig(**data.get("client", {})),
            limits=AgentLimits(**data.get("limits", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    def to_dict(self, *, redact: bool | None = None) -> dict[str, Any]:
        """
        Convert settings to a dictionary.

        The credential is redacted unless ``redact`` is False, or it is None
        and ``logging.redact_api_keys`` is off.
        """
        from ..logging import redact_api_key

        if redact is None:
            redact = self.logging.redact_api_keys

        def convert(obj):
            if isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            if isinstance(obj, Path):
                return str(obj)
            return obj

        d = convert(dataclasses.asdict(self))
        if redact:
            d["client"]["api_key"] = redact_api_key(self.client.api_key)
        return d


# =============================================================================
# Helpers
# =============================================================================


def load_env(path: str | None = None, *, override: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Never called implicitly; call it before Settings.from_env() or
    ClientConfig.from_env() when a .env file should be honored.

    Args:
        path: Optional path to a .env file. If not provided, uses find_dotenv().
        override: Whether to override existing environment variables.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    env_path = path or find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path, override=override)


__all__ = ["Settings", "load_env"]
