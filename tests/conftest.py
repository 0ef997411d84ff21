"""
Shared test fixtures and doubles for r-agent tests.

This module provides:
- A scripted completion backend (returns or raises from a script)
- Fake OpenAI SDK objects for the completion client
- Tool fixtures and fast loop limits
"""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from r_agent.config import AgentLimits, ClientConfig
from r_agent.tools import Tool, ToolRegistry

# =============================================================================
# Completion Backend Doubles
# =============================================================================


class ScriptedBackend:
    """Completion backend that replays a script of texts and exceptions.

    The last entry repeats once the script runs out.
    """

    def __init__(self, script: list[str | BaseException], model: str = "test-model"):
        self._script = list(script)
        self._model = model
        self.calls: list[dict[str, Any]] = []

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def complete(self, prompt: str, stop=None) -> str:
        self.calls.append({"prompt": prompt, "stop": stop})
        item = self._script[min(len(self.calls) - 1, len(self._script) - 1)]
        if isinstance(item, BaseException):
            raise item
        return item


def action(name: str, action_input: str, thought: str = "I should use a tool") -> str:
    """Completion text continuing an open 'Thought:'."""
    return f" {thought}\nAction: {name}\nAction Input: {action_input}"


def final(answer: str, thought: str = "I now know the final answer") -> str:
    return f" {thought}\nFinal Answer: {answer}"


# =============================================================================
# OpenAI SDK Doubles
# =============================================================================

COMPLETIONS_URL = "https://api.openai.com/v1/completions"


def make_completion_body(text: str = " Hello", **overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "id": "cmpl-123",
        "object": "text_completion",
        "created": 1700000000,
        "model": "gpt-3.5-turbo-instruct",
        "choices": [{"text": text, "index": 0, "logprobs": None, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
    }
    body.update(overrides)
    return body


def make_raw_response(body: dict[str, Any] | str, status: int = 200) -> MagicMock:
    """Stand-in for the SDK's raw response wrapper."""
    text = body if isinstance(body, str) else json.dumps(body)
    raw = MagicMock()
    raw.http_response = httpx.Response(status, text=text)
    return raw


def make_sdk_client(*, returns: Any = None, raises: BaseException | None = None) -> MagicMock:
    """Fake AsyncOpenAI exposing completions.with_raw_response.create."""
    sdk = MagicMock()
    create = AsyncMock()
    if raises is not None:
        create.side_effect = raises
    else:
        create.return_value = returns if returns is not None else make_raw_response(make_completion_body())
    sdk.completions.with_raw_response.create = create
    sdk.close = AsyncMock()
    return sdk


def make_request() -> httpx.Request:
    return httpx.Request("POST", COMPLETIONS_URL)


# =============================================================================
# Test Tools
# =============================================================================


async def echo_handler(text: str) -> str:
    return f"Echo: {text}"


def failing_handler(text: str) -> str:
    raise ValueError(f"cannot handle {text!r}")


# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture
def scripted_backend():
    """Factory for scripted backends."""

    def _factory(script, model="test-model"):
        return ScriptedBackend(script, model=model)

    return _factory


@pytest.fixture
def echo_tool():
    return Tool(name="search", description="Echo the query", handler=echo_handler)


@pytest.fixture
def failing_tool():
    return Tool(name="broken", description="Always fails", handler=failing_handler)


@pytest.fixture
def registry(echo_tool, failing_tool):
    return ToolRegistry([echo_tool, failing_tool])


@pytest.fixture
def fast_limits():
    """Limits factory with no backoff delay."""

    def _factory(**kwargs):
        kwargs.setdefault("backoff", 0.0)
        kwargs.setdefault("max_backoff", 0.0)
        return AgentLimits(**kwargs)

    return _factory


@pytest.fixture
def client_config():
    return ClientConfig(api_key="sk-test-1234567890")


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the config layer reads."""
    import os

    for name in list(os.environ):
        if name.startswith("RAGENT_") or name == "OPENAI_API_KEY":
            monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def completion_body():
    """Factory for completion response bodies."""
    return make_completion_body


@pytest.fixture
def raw_response():
    """Factory for raw SDK responses."""
    return make_raw_response


@pytest.fixture
def sdk_client():
    """Factory for fake AsyncOpenAI clients."""
    return make_sdk_client


@pytest.fixture
def http_request():
    return make_request()
