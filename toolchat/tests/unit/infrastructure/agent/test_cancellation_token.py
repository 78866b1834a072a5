"""Unit tests for the request-scoped cancellation token."""

import asyncio

import pytest

from toolchat.domain.exceptions import TurnCancelledError
from toolchat.infrastructure.agent.cancellation import CancellationToken


@pytest.mark.unit
class TestCancellationToken:
    async def test_cancel_is_single_fire(self):
        token = CancellationToken()
        calls: list[str] = []
        token.register(lambda: calls.append("fired"))

        assert token.cancel("first") is True
        assert token.cancel("second") is False
        assert calls == ["fired"]
        assert token.reason == "first"

    async def test_register_after_cancel_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        calls: list[str] = []

        token.register(lambda: calls.append("late"))

        assert calls == ["late"]

    async def test_async_callbacks_are_scheduled(self):
        token = CancellationToken()
        closed = asyncio.Event()

        async def close() -> None:
            closed.set()

        token.register(close)
        token.cancel()
        await token.drain()

        assert closed.is_set()

    async def test_failing_callback_does_not_stop_others(self):
        token = CancellationToken()
        calls: list[str] = []

        def broken() -> None:
            raise RuntimeError("boom")

        token.register(broken)
        token.register(lambda: calls.append("second"))
        token.cancel()

        assert calls == ["second"]

    async def test_guard_returns_result(self):
        token = CancellationToken()

        async def work() -> int:
            return 42

        assert await token.guard(work()) == 42

    async def test_guard_raises_when_token_fires(self):
        token = CancellationToken()
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def slow() -> None:
            started.set()
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        guarded = asyncio.create_task(token.guard(slow()))
        await started.wait()
        token.cancel("stop")

        with pytest.raises(TurnCancelledError):
            await guarded
        assert cancelled.is_set()

    async def test_guard_on_cancelled_token_does_not_start_work(self):
        token = CancellationToken()
        token.cancel()
        ran: list[bool] = []

        async def work() -> None:
            ran.append(True)

        with pytest.raises(TurnCancelledError):
            await token.guard(work())
        assert ran == []

    async def test_guard_timeout(self):
        token = CancellationToken()

        with pytest.raises(asyncio.TimeoutError):
            await token.guard(asyncio.sleep(3600), timeout=0.01)
        assert not token.cancelled

    async def test_cancel_after_fires_token(self):
        token = CancellationToken()

        token.cancel_after(0.01, "deadline")
        await asyncio.wait_for(token.wait(), timeout=1)

        assert token.reason == "deadline"

    async def test_dispose_stops_deadline(self):
        token = CancellationToken()

        token.cancel_after(0.01)
        token.dispose()
        await asyncio.sleep(0.03)

        assert not token.cancelled
