"""
Agent loop limits.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidConfigError


@dataclass
class AgentLimits:
    """Bounds on one agent run. Every bound has an exhaustion error."""

    # Dispatching transitions before IterationLimitExceeded
    max_iterations: int = 10

    # Consecutive unparsable completions before UnparsableOutputError
    max_parse_retries: int = 3

    # Retries of a failed completion call before UpstreamError
    max_transport_retries: int = 3

    # Unknown-tool observations before UnknownToolLimitExceeded
    max_unknown_tool_errors: int = 3

    # Exponential backoff between completion retries, in seconds
    backoff: float = 1.0
    max_backoff: float = 20.0

    def __post_init__(self):
        if self.max_iterations < 1:
            raise InvalidConfigError("max_iterations must be at least 1")
        if self.max_parse_retries < 0:
            raise InvalidConfigError("max_parse_retries cannot be negative")
        if self.max_transport_retries < 0:
            raise InvalidConfigError("max_transport_retries cannot be negative")
        if self.max_unknown_tool_errors < 0:
            raise InvalidConfigError("max_unknown_tool_errors cannot be negative")
        if self.backoff < 0 or self.max_backoff < 0:
            raise InvalidConfigError("backoff cannot be negative")


__all__ = ["AgentLimits"]
