"""Request-scoped cancellation.

One token is created per turn and passed explicitly to everything that can
suspend: connection opening, model steps and tool calls. Callbacks registered
on the token run once, when it fires.
"""

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from toolchat.domain.exceptions import TurnCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CancelCallback = Callable[[], Any]


class CancellationToken:
    """Single-fire cancellation signal with teardown callbacks."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._callbacks: list[CancelCallback] = []
        self._callback_tasks: set[asyncio.Task[Any]] = set()
        self._timer: asyncio.TimerHandle | None = None
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> bool:
        """Fire the token. Returns False if it had already fired."""
        if self._event.is_set():
            return False
        self.reason = reason
        self._event.set()
        self._clear_timer()
        logger.info(f"[Cancellation] Token fired: {reason}")
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._invoke(callback)
        return True

    def register(self, callback: CancelCallback) -> None:
        """Run callback when the token fires, or right away if it already has."""
        if self._event.is_set():
            self._invoke(callback)
        else:
            self._callbacks.append(callback)

    def cancel_after(self, seconds: float, reason: str = "deadline exceeded") -> None:
        """Fire the token once the given time has passed."""
        self._clear_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(seconds, self.cancel, reason)

    def dispose(self) -> None:
        """Drop the deadline timer once the turn is over."""
        self._clear_timer()

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _invoke(self, callback: CancelCallback) -> None:
        try:
            result = callback()
        except Exception as e:
            logger.error(f"[Cancellation] Callback failed: {e}")
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._callback_tasks.add(task)
            task.add_done_callback(self._callback_done)

    def _callback_done(self, task: asyncio.Task[Any]) -> None:
        self._callback_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"[Cancellation] Callback failed: {task.exception()}")

    async def drain(self) -> None:
        """Wait for asynchronous callbacks started by cancel()."""
        if self._callback_tasks:
            await asyncio.gather(*list(self._callback_tasks), return_exceptions=True)

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T], timeout: float | None = None) -> T:
        """
        Await something unless the token fires first.

        Raises:
            TurnCancelledError: If the token fired before the awaitable finished.
            asyncio.TimeoutError: If timeout elapsed first.
        """
        if self._event.is_set():
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise TurnCancelledError(self.reason or "cancelled")

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except BaseException:
            task.cancel()
            waiter.cancel()
            raise

        waiter.cancel()
        if task in done:
            return task.result()

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await task
        if self._event.is_set():
            raise TurnCancelledError(self.reason or "cancelled")
        raise asyncio.TimeoutError()
