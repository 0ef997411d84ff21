"""Cancellation tokens for cooperative interruption of agent runs.

An agent run checks its token at the start of every state transition
(prompting, awaiting a completion, dispatching a tool). Work already in
flight is not interrupted beyond its own cancellation contract.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)


class CancelledError(Exception):
    """Raised when an operation is cancelled via CancellationToken.

    Distinct from asyncio.CancelledError: this one is cooperative and is
    turned into AgentCancelledError by the agent loop.
    """


@dataclass
class CancellationToken:
    """Mutable token for cooperative cancellation.

    Usage:
        token = CancellationToken()

        # In long-running operation:
        token.raise_if_cancelled()

        # From elsewhere:
        token.cancel()
    """

    _event: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    _callbacks: list[Callable[[], Any]] = field(default_factory=list, init=False)
    _noop: bool = field(default=False, init=False, repr=False)

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        if self._noop:
            return False
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation (idempotent). Runs callbacks on the first call."""
        if self._noop or self._event.is_set():
            return
        self._event.set()
        for cb in self._callbacks:
            self._run_callback(cb)

    async def wait(self) -> None:
        """Block until cancel() is called."""
        if self._noop:
            await asyncio.Future()
            return
        await self._event.wait()

    def on_cancel(self, callback: Callable[[], Any]) -> None:
        """Register a zero-argument callback; invoked immediately if already cancelled."""
        if self._noop:
            return
        self._callbacks.append(callback)
        if self._event.is_set():
            self._run_callback(callback)

    def raise_if_cancelled(self) -> None:
        """
        Raise CancelledError if cancelled.

        Raises:
            CancelledError: If cancellation was requested.
        """
        if self.is_cancelled:
            raise CancelledError("Operation was cancelled")

    @staticmethod
    def _run_callback(callback: Callable[[], Any]) -> None:
        # A failing callback must not prevent the others from running.
        try:
            callback()
        except Exception:
            logger.exception("Cancellation callback %r failed", callback)

    @classmethod
    def none(cls) -> CancellationToken:
        """Return the shared no-op token (never cancels)."""
        global _NEVER_CANCEL
        if _NEVER_CANCEL is None:
            token = cls()
            token._noop = True
            _NEVER_CANCEL = token
        return _NEVER_CANCEL


_NEVER_CANCEL: CancellationToken | None = None


__all__ = ["CancellationToken", "CancelledError"]
