from __future__ import annotations

from dataclasses import dataclass

from spawnguard.host.entity import BaseEntity


@dataclass(eq=False)
class Animal(BaseEntity):
    """Wandering wildlife."""
    health: float = 50.0

    def update(self) -> None:
        super().update()
        self.x += 0.5
        self.y -= 0.5


@dataclass(eq=False)
class Chicken(Animal):
    health: float = 25.0


@dataclass(eq=False)
class Wolf(Animal):
    health: float = 150.0


@dataclass(eq=False)
class Boar(Animal):
    health: float = 150.0


@dataclass(eq=False)
class LootContainer(BaseEntity):
    """Static loot spawn (barrels, crates)."""


@dataclass(eq=False)
class AutoTurret(BaseEntity):
    health: float = 1000.0


@dataclass(eq=False)
class Minicopter(BaseEntity):
    health: float = 750.0


@dataclass(eq=False)
class RowBoat(BaseEntity):
    health: float = 400.0


# (entity class, short prefab name) pairs the demo host spawns from
PREFAB_CATALOG: list[tuple[type[BaseEntity], str]] = [
    (Chicken, "chicken"),
    (Wolf, "wolf"),
    (Boar, "boar"),
    (LootContainer, "loot-barrel-1"),
    (LootContainer, "crate_normal"),
    (AutoTurret, "autoturret_deployed"),
    (Minicopter, "minicopter.entity"),
    (RowBoat, "rowboat"),
]
