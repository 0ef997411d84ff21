"""
Completion backend protocol.

The agent loop depends on this interface only, so the OpenAI client, a
test double or any other text-completion backend can drive it.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Protocol, runtime_checkable


@runtime_checkable
class CompletionBackend(Protocol):
    """Something that turns a prompt into completion text."""

    @property
    def model_name(self) -> str:
        """Model identifier, for logs."""
        ...

    async def complete(
        self,
        prompt: str,
        stop: Collection[str] | None = None,
    ) -> str:
        """
        Return the completion text for ``prompt``.

        Raises:
            TransportError: The request never got an HTTP answer.
            ApiError: The endpoint answered with a non-2xx status.
            DecodeError: The response body is malformed.
        """
        ...


__all__ = ["CompletionBackend"]
