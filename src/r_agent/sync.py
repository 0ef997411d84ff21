"""Thin sync wrappers for the async-first APIs.

These are meant for scripts and tests where no event loop is running:
- Uses asyncio.run() when no event loop is active
- Raises RuntimeError if called inside an existing event loop
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")


def ensure_no_running_loop(name: str, alternative: str) -> None:
    """Raise RuntimeError when called from inside a running event loop."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is not None:
        raise RuntimeError(
            f"{name}() cannot be called inside an async context. "
            f"Use '{alternative}' instead."
        )


def run_blocking(coro: Coroutine[Any, Any, T], *, name: str, alternative: str) -> T:
    """Run a coroutine to completion from synchronous code."""
    try:
        ensure_no_running_loop(name, alternative)
    except RuntimeError:
        coro.close()
        raise
    return asyncio.run(coro)


__all__ = ["ensure_no_running_loop", "run_blocking"]
