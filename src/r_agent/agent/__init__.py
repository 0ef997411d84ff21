"""
ReAct agent loop.

This package provides the AgentLoop that composes a prompt strategy, a
completion backend, the response parser and a tool registry into a
bounded reason/act loop.
"""

# Re-export AgentLimits from config for convenience
from ..config import AgentLimits
from .core import DEFAULT_STOP, FORMAT_REMINDER, AgentLoop, run
from .result import AgentResult, AgentState
from .transcript import MalformedOutput, Transcript

__all__ = [
    "AgentLoop",
    "AgentLimits",
    "AgentResult",
    "AgentState",
    "Transcript",
    "MalformedOutput",
    "run",
    "FORMAT_REMINDER",
    "DEFAULT_STOP",
]
