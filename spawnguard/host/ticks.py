"""Tick scheduler — next-tick callbacks and per-tick suspension points.

The host engine calls advance() once at the start of every world tick.
Callbacks queued with call_next_tick() run during the following advance(),
and coroutines awaiting wait_next_tick() resume right after it.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from typing import Any, Callable

import structlog

logger = structlog.get_logger()


class TickScheduler:
    """Single-threaded deferred-call queue driven by the host tick loop."""

    def __init__(self) -> None:
        self._callbacks: deque[Callable[[], Any]] = deque()
        self._waiters: list[asyncio.Future[None]] = []
        self.tick = 0

    def call_next_tick(self, callback: Callable[[], Any]) -> None:
        """Run callback once at the start of the next tick.

        The callback may return an awaitable; it is awaited before the tick
        continues.
        """
        self._callbacks.append(callback)

    async def wait_next_tick(self) -> None:
        """Suspend the caller until the next tick begins."""
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        await future

    def pending(self) -> int:
        """Number of callbacks queued for the next tick."""
        return len(self._callbacks)

    async def advance(self) -> None:
        """Start a new tick: run queued callbacks, then wake tick waiters.

        Callbacks queued while this runs are left for the tick after.
        """
        self.tick += 1

        batch = len(self._callbacks)
        for _ in range(batch):
            callback = self._callbacks.popleft()
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.error(
                    "next_tick_callback_error",
                    tick=self.tick,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(None)

    def clear(self) -> None:
        """Drop queued callbacks and cancel pending waiters."""
        self._callbacks.clear()
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            future.cancel()
