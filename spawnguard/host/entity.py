"""Entity model: base dataclass for every object living in the host world."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(eq=False)
class BaseEntity:
    """Represents a single networked object in the simulation.

    The concrete subclass name is the object's runtime type name; the short
    name identifies the prefab it was created from. Entities compare by
    identity, so two objects with equal fields are still distinct.
    """

    # Identity
    id: str
    short_name: Optional[str]
    born_at_tick: int

    # Physical properties
    x: float
    y: float
    health: float = 100.0

    # Lifecycle
    age: int = 0  # in ticks
    state: str = "alive"  # alive, destroyed

    def update(self) -> None:
        """Advance the entity by one tick."""
        self.age += 1

    def is_alive(self) -> bool:
        return self.state == "alive"

    @property
    def type_name(self) -> str:
        return type(self).__name__
