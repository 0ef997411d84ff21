"""
Completion client configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from ..errors import InvalidConfigError, MissingCredentialError
from .base import DEFAULT_API_KEY_ENV, DEFAULT_BASE_URL, DEFAULT_MODEL


def load_key(env_var: str = DEFAULT_API_KEY_ENV) -> str:
    """
    Load the API credential from the environment.

    Raises:
        MissingCredentialError: If the variable is unset or empty.
    """
    key = os.getenv(env_var)
    if not key:
        raise MissingCredentialError(env_var=env_var)
    return key


@dataclass
class ClientConfig:
    """
    Configuration for the completion client.

    The credential is resolved once, explicitly, and passed around with this
    object. Nothing reads it from the environment behind the caller's back.
    """

    api_key: str | None = field(default=None, repr=False)
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL

    # Request settings
    timeout: float = 60.0
    temperature: float = 0.0
    max_tokens: int = 256

    # Where the credential came from, for error messages
    api_key_env: str = DEFAULT_API_KEY_ENV

    def __post_init__(self):
        if self.timeout <= 0:
            raise InvalidConfigError("timeout must be positive")
        if self.max_tokens < 1:
            raise InvalidConfigError("max_tokens must be at least 1")
        if not 0.0 <= self.temperature <= 2.0:
            raise InvalidConfigError("temperature must be between 0.0 and 2.0")
        if not self.base_url.startswith(("http://", "https://")):
            raise InvalidConfigError("base_url must be a valid HTTP(S) URL")

    @classmethod
    def from_env(cls, env_var: str = DEFAULT_API_KEY_ENV, **kwargs) -> ClientConfig:
        """Build a config whose credential is read from ``env_var``."""
        return cls(api_key=load_key(env_var), api_key_env=env_var, **kwargs)

    def validate(self) -> ClientConfig:
        """
        Construction-time check run by the completion client.

        Raises:
            MissingCredentialError: If no credential is set.
        """
        if not self.api_key:
            raise MissingCredentialError(env_var=self.api_key_env)
        return self


__all__ = ["ClientConfig", "load_key"]
