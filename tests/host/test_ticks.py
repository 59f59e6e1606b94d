"""Unit tests for the TickScheduler."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from spawnguard.host.ticks import TickScheduler


@pytest.mark.asyncio
async def test_callback_runs_on_next_advance_only():
    ticks = TickScheduler()
    callback = MagicMock()

    ticks.call_next_tick(callback)
    callback.assert_not_called()
    assert ticks.pending() == 1

    await ticks.advance()
    callback.assert_called_once_with()
    assert ticks.pending() == 0

    await ticks.advance()
    callback.assert_called_once_with()


@pytest.mark.asyncio
async def test_callbacks_queued_during_advance_wait_a_tick():
    ticks = TickScheduler()
    inner = MagicMock()

    ticks.call_next_tick(lambda: ticks.call_next_tick(inner))

    await ticks.advance()
    inner.assert_not_called()

    await ticks.advance()
    inner.assert_called_once_with()


@pytest.mark.asyncio
async def test_awaitable_callbacks_are_awaited():
    ticks = TickScheduler()
    coro_fn = AsyncMock()

    ticks.call_next_tick(coro_fn)
    await ticks.advance()

    coro_fn.assert_awaited_once()


@pytest.mark.asyncio
async def test_callback_error_does_not_stop_the_batch():
    ticks = TickScheduler()
    after = MagicMock()

    ticks.call_next_tick(MagicMock(side_effect=RuntimeError("boom")))
    ticks.call_next_tick(after)
    await ticks.advance()

    after.assert_called_once_with()


@pytest.mark.asyncio
async def test_wait_next_tick_resumes_after_advance():
    ticks = TickScheduler()
    resumed: list[int] = []

    async def waiter() -> None:
        await ticks.wait_next_tick()
        resumed.append(ticks.tick)

    task = asyncio.create_task(waiter())
    await asyncio.sleep(0)
    assert resumed == []

    await ticks.advance()
    await task

    assert resumed == [1]


@pytest.mark.asyncio
async def test_clear_drops_callbacks_and_cancels_waiters():
    ticks = TickScheduler()
    callback = MagicMock()
    ticks.call_next_tick(callback)

    task = asyncio.create_task(ticks.wait_next_tick())
    await asyncio.sleep(0)

    ticks.clear()
    await ticks.advance()

    callback.assert_not_called()
    with pytest.raises(asyncio.CancelledError):
        await task
