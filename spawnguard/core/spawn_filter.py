"""Spawn filter — applies the keyword policy to spawn events and startup sweeps.

SpawnFilter is the context object the host talks to. It holds the active
rule set and the sweep registry, so nothing lives in module-level state.

Spawn-time rejections are destroyed on the next host tick, never inside the
spawn handler itself: the host is still finishing the object's construction
when it announces it.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Iterable, Optional, Protocol

import structlog

from spawnguard.bus.channels import Channels
from spawnguard.bus.event_bus import EventBus
from spawnguard.bus.events import ObjectRejected, SweepFinished
from spawnguard.core.matcher import should_reject
from spawnguard.core.rules import RuleSet, identity_of
from spawnguard.core.sweep import SweepJob, SweepScheduler

logger = structlog.get_logger()


class HostServices(Protocol):
    """Services the filter needs from the simulation host."""

    def enumerate_live_objects(self) -> Iterable[Any]: ...

    def destroy(self, obj: Any) -> bool: ...

    def schedule_next_tick(self, callback: Callable[[], Any]) -> None: ...

    def yield_slice(self) -> Awaitable[Any]: ...


class SpawnFilter:
    """Keyword-based admission filter for host objects.

    Attributes:
        rules: Active rule set; None once the filter is unloaded.
        startup_sweep: Whether on_host_ready sweeps existing objects.
        sweep_name: Registry name used for the startup sweep.
        sweeps: Registry of named sweeps owned by this filter.
    """

    def __init__(
        self,
        host: HostServices,
        rules: RuleSet,
        startup_sweep: bool = False,
        sweep_name: str = "startup_cleanup",
        event_bus: Optional[EventBus] = None,
    ) -> None:
        """Initialize the filter.

        Args:
            host: Host services (enumeration, destroy, scheduling).
            rules: Rule set to enforce.
            startup_sweep: Sweep existing objects when the host is ready.
            sweep_name: Name of the startup sweep.
            event_bus: Optional bus for rejection/sweep notifications.
        """
        self.host = host
        self.rules: Optional[RuleSet] = rules
        self.startup_sweep = startup_sweep
        self.sweep_name = sweep_name
        self.sweeps = SweepScheduler(yield_slice=host.yield_slice)
        self._event_bus = event_bus

    # ------------------------------------------------------------------
    # Host hooks
    # ------------------------------------------------------------------

    def on_object_ready(self, obj: Any) -> None:
        """Evaluate a newly created object; destroy it next tick if rejected."""
        if obj is None or self.rules is None:
            return

        identity = identity_of(obj)
        if not should_reject(identity, self.rules):
            return

        logger.info(
            "object_rejected",
            object_id=getattr(obj, "id", None),
            short_name=identity.short_name,
            type_name=type(obj).__name__,
        )
        self.host.schedule_next_tick(lambda: self._destroy_rejected(obj))

    def on_host_ready(self) -> Optional[SweepJob]:
        """Start the startup sweep when it is enabled and the policy is not empty."""
        if not self.startup_sweep or self.rules is None or self.rules.is_empty:
            return None

        return self.sweeps.start(
            self.sweep_name,
            self.rules,
            self.host.enumerate_live_objects,
            self.host.destroy,
            on_finished=self._publish_sweep_finished,
        )

    def on_unload(self) -> None:
        """Cancel every sweep and drop the rule set."""
        cancelled = self.sweeps.cancel_all()
        self.rules = None
        logger.info("spawn_filter_unloaded", sweeps_cancelled=cancelled)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def update_rules(self, rules: RuleSet, startup_sweep: Optional[bool] = None) -> None:
        """Swap the active rule set.

        Running sweeps keep evaluating against the rule set they started with.
        """
        self.rules = rules
        if startup_sweep is not None:
            self.startup_sweep = startup_sweep
        logger.info(
            "filter_rules_updated",
            mode=rules.mode.value,
            deny=len(rules.deny),
            allow=len(rules.allow),
            exceptions=len(rules.exceptions),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _destroy_rejected(self, obj: Any) -> None:
        # Stale handle: the object left the world before this tick.
        if not self.host.destroy(obj):
            return
        await self._publish(
            Channels.OBJECT_REJECTED,
            ObjectRejected(
                object_id=str(getattr(obj, "id", "")),
                short_name=getattr(obj, "short_name", None) or "",
                type_name=type(obj).__name__,
            ),
        )

    async def _publish_sweep_finished(self, job: SweepJob) -> None:
        await self._publish(
            Channels.SWEEP_FINISHED,
            SweepFinished(
                sweep=job.name,
                state=job.state.value,
                visited=job.visited,
                destroyed=job.destroyed,
                total=job.total,
            ),
        )

    async def _publish(self, channel: str, event: Any) -> None:
        if self._event_bus is None:
            return
        try:
            await self._event_bus.publish(channel, event)
        except Exception as exc:
            logger.warning(
                "filter_event_publish_failed",
                channel=channel,
                error=str(exc),
                error_type=type(exc).__name__,
            )
