"""
OpenAI text completion client.

Talks to the legacy ``/completions`` endpoint (prompt in, ``choices[].text``
out) through the official ``openai`` SDK. The client never retries; retry
policy belongs to the agent loop.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Collection
from typing import Any

import openai
from openai import AsyncOpenAI

from ..config.client import ClientConfig
from ..errors import ApiError, DecodeError, ErrorContext, TransportError
from ..sync import run_blocking
from .types import CompletionResponse

logger = logging.getLogger(__name__)


def _stop_list(stop: Collection[str] | None) -> list[str] | None:
    if not stop:
        return None
    # Sets have no order; sort them so requests are reproducible.
    if isinstance(stop, (set, frozenset)):
        return sorted(stop)
    return list(stop)


class CompletionClient:
    """
    Thin async client for a text completion endpoint.

    The credential is validated when the client is built, before any network
    call, and is never logged.

    Example:
        ```python
        config = ClientConfig.from_env()          # OPENAI_API_KEY
        async with CompletionClient(config) as client:
            text = await client.complete("Say hi", stop=["\\n"])
        ```
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """
        Args:
            config: Client configuration; its credential must be set
            client: Pre-built SDK client (tests, shared connection pools)

        Raises:
            MissingCredentialError: If the config has no credential.
        """
        self.config = config.validate()
        self.client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
        )

    @classmethod
    def from_env(cls, env_var: str = "OPENAI_API_KEY", **kwargs: Any) -> CompletionClient:
        """Build a client whose credential comes from ``env_var``."""
        return cls(ClientConfig.from_env(env_var, **kwargs))

    @property
    def model_name(self) -> str:
        return self.config.model

    def __repr__(self) -> str:
        return f"CompletionClient(model={self.config.model!r}, base_url={self.config.base_url!r})"

    async def __aenter__(self) -> CompletionClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        close_fn = getattr(self.client, "close", None)
        if close_fn:
            res = close_fn()
            if inspect.isawaitable(res):
                await res

    def _params(self, prompt: str, stop: Collection[str] | None) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": self.config.model,
            "prompt": prompt,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }
        stop_list = _stop_list(stop)
        if stop_list:
            params["stop"] = stop_list
        return params

    async def complete_response(
        self,
        prompt: str,
        stop: Collection[str] | None = None,
    ) -> CompletionResponse:
        """
        Send one completion request and decode the full response.

        Raises:
            TransportError: Timeout, connection reset or DNS failure.
            ApiError: Non-2xx status.
            DecodeError: Body is not JSON or not a completion object.
        """
        context = ErrorContext(model=self.config.model, operation="complete")
        try:
            raw = await self.client.completions.with_raw_response.create(**self._params(prompt, stop))
        except openai.APITimeoutError as e:
            raise TransportError("Completion request timed out", timeout=True, context=context, cause=e) from e
        except openai.APIConnectionError as e:
            raise TransportError(f"Connection failed: {e}", context=context, cause=e) from e
        except openai.APIStatusError as e:
            body = e.body if e.body is not None else e.response.text
            raise ApiError(
                f"Completion endpoint returned {e.status_code}",
                status=e.status_code,
                body=body,
                context=ErrorContext(
                    request_id=e.request_id,
                    model=self.config.model,
                    operation="complete",
                ),
                cause=e,
            ) from e

        body_text = raw.http_response.text
        try:
            data = json.loads(body_text)
        except json.JSONDecodeError as e:
            logger.debug("Undecodable completion body (%d chars)", len(body_text))
            raise DecodeError(f"Response body is not JSON: {e}", body=body_text, context=context, cause=e) from e

        try:
            return CompletionResponse.from_dict(data)
        except DecodeError as e:
            e.body = body_text
            e.context = context
            raise

    async def complete(
        self,
        prompt: str,
        stop: Collection[str] | None = None,
    ) -> str:
        """Return the first choice's text verbatim (no trimming)."""
        response = await self.complete_response(prompt, stop)
        return response.text

    def complete_sync(
        self,
        prompt: str,
        stop: Collection[str] | None = None,
    ) -> str:
        """Blocking wrapper around `complete`, for code with no event loop."""
        return run_blocking(
            self.complete(prompt, stop),
            name="complete_sync",
            alternative="await client.complete(...)",
        )


__all__ = ["CompletionClient"]
