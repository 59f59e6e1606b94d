"""Tests for HostEngine — tick loop, plugin lifecycle, filter integration."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from spawnguard.config import Settings
from spawnguard.bus.channels import Channels
from spawnguard.core.matcher import should_reject
from spawnguard.core.rules import RuleSet, identity_of
from spawnguard.core.spawn_filter import SpawnFilter
from spawnguard.host.engine import HostEngine
from spawnguard.host.prefabs import Chicken, Wolf
from spawnguard.host.ticks import TickScheduler
from spawnguard.host.world import World


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        tick_rate_ms=1,
        world_width=1000,
        world_height=1000,
        initial_population=10,
        max_entities=50,
        spawn_batch_size=0,
        stats_interval_ticks=5,
        redis_url="",
    )


@pytest.fixture
def world() -> World:
    return World(world_width=1000, world_height=1000)


@pytest.fixture
def engine(world: World, settings: Settings) -> HostEngine:
    return HostEngine(world=world, ticks=TickScheduler(), settings=settings)


async def _wait_until(predicate, attempts: int = 200) -> bool:
    for _ in range(attempts):
        if predicate():
            return True
        await asyncio.sleep(0.002)
    return predicate()


def test_engine_initialization(engine: HostEngine, settings: Settings):
    assert engine.tick_counter == 0
    assert engine.running is False
    assert engine.ready is False
    assert engine.settings == settings


def test_initial_population(engine: HostEngine, world: World, settings: Settings):
    engine.spawn_initial_population()
    assert world.count() == settings.initial_population


def test_handle_spawning_respects_max_entities(engine: HostEngine, world: World):
    engine.settings.spawn_batch_size = 5
    engine.settings.max_entities = 3

    engine._handle_spawning()
    engine._handle_spawning()

    assert world.count() == 3


@pytest.mark.asyncio
async def test_tick_runs_next_tick_callbacks(engine: HostEngine):
    callback = MagicMock()
    engine.schedule_next_tick(callback)

    await engine.tick()

    callback.assert_called_once_with()
    assert engine.tick_counter == 1


@pytest.mark.asyncio
async def test_tick_ages_entities(engine: HostEngine, world: World):
    wolf = world.spawn(Wolf, "wolf", x=10, y=10)

    await engine.tick()

    assert wolf.age == 1


def test_register_plugin_wires_spawn_events(engine: HostEngine, world: World):
    plugin = MagicMock()
    engine.register_plugin(plugin)

    entity = world.spawn(Chicken, "chicken", x=0, y=0)

    plugin.on_object_ready.assert_called_once_with(entity)
    plugin.on_host_ready.assert_not_called()


def test_late_plugin_gets_host_ready(engine: HostEngine):
    engine._signal_ready()
    plugin = MagicMock()

    engine.register_plugin(plugin)

    plugin.on_host_ready.assert_called_once_with()


def test_late_plugin_ready_error_is_contained(engine: HostEngine):
    engine._signal_ready()
    broken = MagicMock()
    broken.on_host_ready.side_effect = RuntimeError("boom")

    engine.register_plugin(broken)

    broken.on_host_ready.assert_called_once_with()
    assert broken in engine._plugins


def test_stop_unloads_plugins(engine: HostEngine, world: World):
    plugin = MagicMock()
    engine.register_plugin(plugin)

    engine.stop()
    world.spawn(Chicken, "chicken", x=0, y=0)

    plugin.on_unload.assert_called_once_with()
    plugin.on_object_ready.assert_not_called()
    assert engine.running is False


@pytest.mark.asyncio
async def test_run_signals_ready_once(engine: HostEngine):
    plugin = MagicMock()
    engine.register_plugin(plugin)

    task = asyncio.create_task(engine.run())
    assert await _wait_until(lambda: engine.tick_counter >= 3)
    engine.stop()
    await asyncio.wait_for(task, timeout=1.0)

    plugin.on_host_ready.assert_called_once_with()


@pytest.mark.asyncio
async def test_filter_sweeps_world_and_rejects_new_spawns(engine: HostEngine, world: World):
    """Startup sweep removes existing chickens; a later chicken dies one tick after spawning."""
    chickens = [world.spawn(Chicken, "chicken", x=i, y=i) for i in range(5)]
    small = world.spawn(Wolf, "chicken.small", x=0, y=0)
    wolves = [world.spawn(Wolf, "wolf", x=i, y=i) for i in range(3)]

    spawn_filter = SpawnFilter(engine, RuleSet.deny_only(["chicken"]), startup_sweep=True)
    engine.register_plugin(spawn_filter)

    task = asyncio.create_task(engine.run())
    try:
        assert await _wait_until(
            lambda: world.count() == len(wolves) and not spawn_filter.sweeps.active_names()
        )
        assert not any(world.contains(c) for c in chickens)
        assert not world.contains(small)

        late = world.spawn(Chicken, "chicken", x=0, y=0)
        assert world.contains(late)

        assert await _wait_until(lambda: not world.contains(late))
        assert all(world.contains(w) for w in wolves)
    finally:
        engine.stop()
        await asyncio.wait_for(task, timeout=1.0)

    assert spawn_filter.rules is None


@pytest.mark.asyncio
async def test_sweep_owns_population_loaded_before_filter(engine: HostEngine, world: World):
    """Population created before the filter attaches is cleaned by the sweep, not by spawn events."""
    rules = RuleSet.deny_only(["chicken"])
    engine.spawn_initial_population()
    rejected = [e for e in world.snapshot() if should_reject(identity_of(e), rules)]

    bus = AsyncMock()
    spawn_filter = SpawnFilter(engine, rules, startup_sweep=True, event_bus=bus)
    engine.register_plugin(spawn_filter)

    task = asyncio.create_task(engine.run())
    try:
        assert await _wait_until(lambda: bus.publish.await_count >= 1)
    finally:
        engine.stop()
        await asyncio.wait_for(task, timeout=1.0)

    channels = [c.args[0] for c in bus.publish.await_args_list]
    assert channels == [Channels.SWEEP_FINISHED]
    finished = bus.publish.await_args_list[0].args[1]
    assert finished.destroyed == len(rejected)
    assert not any(world.contains(e) for e in rejected)
