"""
Completion backends.

`CompletionBackend` is the interface the agent loop consumes;
`CompletionClient` implements it against an OpenAI-compatible text
completion endpoint.
"""

from .base import CompletionBackend
from .openai import CompletionClient
from .types import Choice, CompletionResponse

__all__ = [
    "CompletionBackend",
    "CompletionClient",
    "CompletionResponse",
    "Choice",
]
