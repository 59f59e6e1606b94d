"""Host engine — world tick loop and plugin lifecycle.

This module provides the HostEngine class which drives the simulation tick
loop, spawns the world population and delivers lifecycle events
(object ready, host ready, unload) to registered plugins. It also exposes
the host services plugins use: live-object enumeration, destruction,
next-tick scheduling and per-tick suspension.
"""

from __future__ import annotations

import asyncio
import random
from typing import Any, Callable, Protocol

import structlog

from spawnguard.config import Settings
from spawnguard.host.entity import BaseEntity
from spawnguard.host.prefabs import PREFAB_CATALOG
from spawnguard.host.ticks import TickScheduler
from spawnguard.host.world import World

logger = structlog.get_logger()


class HostPlugin(Protocol):
    """Lifecycle hooks a plugin receives from the host."""

    def on_object_ready(self, obj: BaseEntity) -> None: ...

    def on_host_ready(self) -> None: ...

    def on_unload(self) -> None: ...


class HostEngine:
    """Main host engine that runs the world tick loop.

    Coordinates:
    - Next-tick callbacks and tick waiters
    - Entity updates
    - Population spawning
    - Plugin lifecycle hooks
    - Statistics logging
    """

    def __init__(
        self,
        world: World,
        ticks: TickScheduler,
        settings: Settings,
    ) -> None:
        """Initialize the host engine.

        Args:
            world: Registry of all live entities.
            ticks: Scheduler for next-tick callbacks.
            settings: Application settings.
        """
        self.world = world
        self.ticks = ticks
        self.settings = settings

        self.tick_counter = 0
        self.running = False
        self.ready = False
        self._plugins: list[HostPlugin] = []

    # -------------------------------------------------------------------------
    # Host services
    # -------------------------------------------------------------------------

    def enumerate_live_objects(self) -> list[BaseEntity]:
        return self.world.snapshot()

    def destroy(self, obj: BaseEntity) -> bool:
        return self.world.destroy(obj)

    def schedule_next_tick(self, callback: Callable[[], Any]) -> None:
        self.ticks.call_next_tick(callback)

    async def yield_slice(self) -> None:
        await self.ticks.wait_next_tick()

    # -------------------------------------------------------------------------
    # Plugin lifecycle
    # -------------------------------------------------------------------------

    def register_plugin(self, plugin: HostPlugin) -> None:
        """Attach a plugin; it receives spawn events from now on.

        A plugin registered after the host is ready gets on_host_ready
        immediately.
        """
        self._plugins.append(plugin)
        self.world.add_spawn_listener(plugin.on_object_ready)
        logger.info("plugin_registered", plugin=type(plugin).__name__)
        if self.ready:
            self._notify_ready(plugin)

    def unregister_plugin(self, plugin: HostPlugin) -> None:
        if plugin not in self._plugins:
            return
        self._plugins.remove(plugin)
        self.world.remove_spawn_listener(plugin.on_object_ready)
        plugin.on_unload()
        logger.info("plugin_unloaded", plugin=type(plugin).__name__)

    def _signal_ready(self) -> None:
        self.ready = True
        logger.info("host_ready", entities=self.world.count())
        for plugin in list(self._plugins):
            self._notify_ready(plugin)

    def _notify_ready(self, plugin: HostPlugin) -> None:
        try:
            plugin.on_host_ready()
        except Exception as exc:
            logger.error(
                "plugin_ready_error",
                plugin=type(plugin).__name__,
                error=str(exc),
                error_type=type(exc).__name__,
            )

    # -------------------------------------------------------------------------
    # Tick loop
    # -------------------------------------------------------------------------

    async def run(self) -> None:
        """Main host loop.

        Spawns the initial population, signals readiness once, then runs one
        tick per iteration until stopped:
        1. Run next-tick callbacks and wake tick waiters
        2. Update all entities
        3. Spawn new entities
        4. Log statistics
        5. Sleep until next tick
        """
        self.running = True
        logger.info("engine_starting", tick_rate_ms=self.settings.tick_rate_ms)

        if self.world.count() == 0:
            self.spawn_initial_population()

        if not self.ready:
            self._signal_ready()

        while self.running:
            tick_start = asyncio.get_running_loop().time()
            await self.tick()

            tick_duration = asyncio.get_running_loop().time() - tick_start
            budget = self.settings.tick_rate_ms / 1000.0
            if tick_duration > budget:
                logger.warning(
                    "tick_overrun",
                    tick=self.tick_counter,
                    duration_ms=tick_duration * 1000,
                    budget_ms=self.settings.tick_rate_ms,
                )

            await asyncio.sleep(max(0.0, budget - tick_duration))

    async def tick(self) -> None:
        """Run a single world tick."""
        self.tick_counter += 1
        try:
            await self.ticks.advance()
            self._update_entities()
            self._handle_spawning()

            if self.tick_counter % self.settings.stats_interval_ticks == 0:
                self._log_statistics()
        except Exception as exc:
            # Never let the host loop crash
            logger.error(
                "tick_error",
                tick=self.tick_counter,
                error=str(exc),
                error_type=type(exc).__name__,
            )

    def _update_entities(self) -> None:
        for entity in self.world.snapshot():
            entity.update()

    def _spawn_random(self) -> BaseEntity:
        entity_cls, short_name = random.choice(PREFAB_CATALOG)
        return self.world.spawn(
            entity_cls,
            short_name,
            x=random.uniform(0, self.settings.world_width),
            y=random.uniform(0, self.settings.world_height),
            tick=self.tick_counter,
        )

    def spawn_initial_population(self) -> None:
        """Fill an empty world before any plugin is attached.

        Objects created here still fire spawn events for plugins that are
        already registered; register plugins afterwards to have the startup
        sweep see them as pre-existing objects.
        """
        logger.info("spawning_initial_population", target_count=self.settings.initial_population)
        for _ in range(self.settings.initial_population):
            self._spawn_random()

    def _handle_spawning(self) -> None:
        """Top the world up by at most spawn_batch_size entities per tick."""
        room = self.settings.max_entities - self.world.count()
        for _ in range(max(0, min(room, self.settings.spawn_batch_size))):
            self._spawn_random()

    def _log_statistics(self) -> None:
        logger.info(
            "simulation_stats",
            tick=self.tick_counter,
            entities=self.world.count(),
            by_type=self.world.count_by_type(),
            pending_callbacks=self.ticks.pending(),
        )

    def stop(self) -> None:
        """Stop the loop and unload every plugin.

        Sets the running flag to False, which will cause the loop
        to exit on the next iteration.
        """
        logger.info("engine_stopping", tick=self.tick_counter)
        self.running = False
        for plugin in list(self._plugins):
            self.unregister_plugin(plugin)
        self.ticks.clear()
