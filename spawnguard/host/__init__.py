"""Simulation host: world registry, tick scheduler, engine loop."""

from spawnguard.host.engine import HostEngine
from spawnguard.host.entity import BaseEntity
from spawnguard.host.ticks import TickScheduler
from spawnguard.host.world import World

__all__ = ["HostEngine", "BaseEntity", "TickScheduler", "World"]
