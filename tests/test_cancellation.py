"""
Tests for cancellation tokens.
"""
import asyncio

import pytest

from r_agent.cancellation import CancellationToken, CancelledError


class TestCancellationToken:
    def test_cancel(self):
        token = CancellationToken()
        assert not token.is_cancelled

        token.cancel()
        token.cancel()

        assert token.is_cancelled
        with pytest.raises(CancelledError):
            token.raise_if_cancelled()

    def test_callbacks_run_once(self):
        token = CancellationToken()
        seen = []
        token.on_cancel(lambda: seen.append("a"))

        token.cancel()
        token.cancel()

        assert seen == ["a"]

    def test_callback_after_cancel_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        seen = []

        token.on_cancel(lambda: seen.append("late"))

        assert seen == ["late"]

    def test_failing_callback_does_not_stop_others(self, caplog):
        token = CancellationToken()
        seen = []

        def broken():
            raise RuntimeError("boom")

        token.on_cancel(broken)
        token.on_cancel(lambda: seen.append("ok"))
        token.cancel()

        assert seen == ["ok"]
        assert "Cancellation callback" in caplog.text

    async def test_wait(self):
        token = CancellationToken()

        waiter = asyncio.create_task(token.wait())
        await asyncio.sleep(0)
        assert not waiter.done()

        token.cancel()
        await asyncio.wait_for(waiter, timeout=1)

    def test_none_never_cancels(self):
        token = CancellationToken.none()
        token.cancel()

        assert not token.is_cancelled
        assert CancellationToken.none() is token
        token.raise_if_cancelled()
