"""
Async concurrency helpers.

The agent loop is async-first, but tools are often plain synchronous
functions. Those run in a shared thread pool so a slow tool never blocks
the event loop that other agent runs share.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, TypeVar

T = TypeVar("T")


def _default_max_workers() -> int:
    # Mirrors ThreadPoolExecutor's default sizing heuristics.
    return min(32, (os.cpu_count() or 1) + 4)


_EXECUTOR = ThreadPoolExecutor(max_workers=_default_max_workers(), thread_name_prefix="r_agent-tool")


async def run_sync(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """
    Run a synchronous callable in the shared thread pool.

    Cancelling the awaiting task cancels the pool future if it has not
    started yet; a call already running finishes in its thread.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_EXECUTOR, partial(func, *args, **kwargs))


__all__ = ["run_sync"]
