"""Startup sweep scheduler — cancellable, cooperatively yielding scans.

A sweep walks a snapshot of every live object taken once when it starts,
destroys the objects the rule set rejects and hands control back to the host
after each destroy, so a world with thousands of objects never stalls a tick.

Sweeps are registered under a logical name. Starting a sweep under a name
that is already running cancels the old one first.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional

import structlog

from spawnguard.core.matcher import should_reject
from spawnguard.core.rules import ObjectIdentity, RuleSet, identity_of

logger = structlog.get_logger()

SnapshotProvider = Callable[[], Iterable[Any]]
DestroyFn = Callable[[Any], Any]
YieldFn = Callable[[], Awaitable[Any]]
FinishedCallback = Callable[["SweepJob"], Awaitable[None]]


class SweepState(str, Enum):
    """Lifecycle of a sweep job."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


async def _yield_to_loop() -> None:
    await asyncio.sleep(0)


class SweepJob:
    """One named pass over a fixed snapshot of live objects.

    The job is a small state machine: every call to advance() moves the
    cursor forward until it has destroyed one rejected object or reached the
    end of the snapshot. The scheduler drives it from an asyncio task and
    yields to the host between calls.

    Attributes:
        name: Registry name of the sweep.
        rules: Rule set captured when the sweep started.
        cursor: Index of the next snapshot element to evaluate.
        state: Current SweepState.
        visited: Number of snapshot elements evaluated so far.
        destroyed: Number of objects actually destroyed. A destroy that
            returns False (object already gone) is not counted.
    """

    def __init__(
        self,
        name: str,
        rules: RuleSet,
        snapshot: Iterable[Any],
        destroy: DestroyFn,
        identify: Callable[[Any], ObjectIdentity] = identity_of,
    ) -> None:
        self.name = name
        self.rules = rules
        self._snapshot: tuple[Any, ...] = tuple(snapshot)
        self._destroy = destroy
        self._identify = identify
        self.cursor = 0
        self.state = SweepState.IDLE
        self.visited = 0
        self.destroyed = 0
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def total(self) -> int:
        """Number of objects in the snapshot."""
        return len(self._snapshot)

    @property
    def finished(self) -> bool:
        return self.state in (SweepState.COMPLETED, SweepState.CANCELLED)

    def advance(self) -> bool:
        """Evaluate snapshot elements until one is destroyed.

        Returns:
            True if a rejected object was handed to destroy during this call
            (the caller should yield before calling again). False once the
            snapshot is exhausted or the job was cancelled.
        """
        if self.finished:
            return False
        self.state = SweepState.RUNNING

        while self.cursor < len(self._snapshot):
            obj = self._snapshot[self.cursor]
            self.cursor += 1
            if obj is None:
                continue

            self.visited += 1
            if not should_reject(self._identify(obj), self.rules):
                continue

            try:
                if self._destroy(obj) is not False:
                    self.destroyed += 1
            except Exception as exc:
                logger.warning(
                    "sweep_destroy_failed",
                    sweep=self.name,
                    cursor=self.cursor - 1,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            return True

        self.state = SweepState.COMPLETED
        return False

    def cancel(self) -> None:
        """Abandon the job at its next yield point.

        Objects that were already destroyed stay destroyed.
        """
        if self.finished:
            return
        self.state = SweepState.CANCELLED
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def join(self) -> SweepState:
        """Wait until the driving task ends and return the final state."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.state


class SweepScheduler:
    """Registry and driver for named sweep jobs.

    Owned by the filter context; there is no process-wide instance.
    """

    def __init__(self, yield_slice: YieldFn = _yield_to_loop) -> None:
        """Initialize the scheduler.

        Args:
            yield_slice: Awaitable factory that suspends the sweep for one
                host scheduling slice (e.g. until the next world tick).
        """
        self._yield_slice = yield_slice
        self._jobs: dict[str, SweepJob] = {}

    def start(
        self,
        name: str,
        rules: RuleSet,
        snapshot_provider: SnapshotProvider,
        destroy: DestroyFn,
        on_finished: Optional[FinishedCallback] = None,
    ) -> Optional[SweepJob]:
        """Start a sweep, replacing any running sweep with the same name.

        Must be called from inside a running event loop.

        Args:
            name: Logical name of the sweep.
            rules: Rule set to evaluate every object against.
            snapshot_provider: Returns all currently live objects, in order.
                Called exactly once, before this method returns.
            destroy: Destroys one object. Destroying an absent object must
                be a no-op that returns False.
            on_finished: Optional coroutine called with the job after it
                completes or is cancelled.

        Returns:
            The started job, or None if the rule set is empty.
        """
        if rules.is_empty:
            logger.debug("sweep_skipped", sweep=name, reason="empty_rule_set")
            return None

        self.cancel(name)

        job = SweepJob(name, rules, snapshot_provider(), destroy)
        self._jobs[name] = job
        job._task = asyncio.get_running_loop().create_task(
            self._drive(job, on_finished), name=f"sweep:{name}"
        )
        job._task.add_done_callback(lambda _task: self._release(job))

        logger.info("sweep_started", sweep=name, snapshot_size=job.total, mode=rules.mode.value)
        return job

    def cancel(self, name: str) -> bool:
        """Cancel the sweep registered under name.

        Returns:
            True if a sweep was registered under that name.
        """
        job = self._jobs.pop(name, None)
        if job is None:
            return False
        job.cancel()
        logger.info("sweep_cancelled", sweep=name, visited=job.visited, destroyed=job.destroyed)
        return True

    def cancel_all(self) -> int:
        """Cancel every registered sweep and clear the registry.

        Returns:
            Number of sweeps that were cancelled.
        """
        names = list(self._jobs)
        for name in names:
            self.cancel(name)
        self._jobs.clear()
        return len(names)

    def get(self, name: str) -> Optional[SweepJob]:
        return self._jobs.get(name)

    def active_names(self) -> list[str]:
        return list(self._jobs)

    async def _drive(self, job: SweepJob, on_finished: Optional[FinishedCallback]) -> None:
        try:
            while job.advance():
                await self._yield_slice()
        except asyncio.CancelledError:
            job.state = SweepState.CANCELLED
            raise
        finally:
            logger.info(
                "sweep_finished",
                sweep=job.name,
                state=job.state.value,
                visited=job.visited,
                destroyed=job.destroyed,
                total=job.total,
            )
            if on_finished is not None:
                await on_finished(job)

    def _release(self, job: SweepJob) -> None:
        # A replaced job must not evict its successor.
        if self._jobs.get(job.name) is job:
            del self._jobs[job.name]
