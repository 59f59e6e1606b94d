"""World registry: owns every live entity and announces new ones."""

from __future__ import annotations

import uuid
from typing import Callable, Optional

import structlog

from spawnguard.host.entity import BaseEntity

logger = structlog.get_logger()

SpawnListener = Callable[[BaseEntity], None]


class World:
    """Manages all live entities in the host simulation.

    Entities are kept in insertion order so that snapshot() enumerates them
    in the order they were created. Spawn listeners are notified once per
    new entity, after it is fully registered.
    """

    def __init__(self, world_width: int = 2000, world_height: int = 2000) -> None:
        """Initialize an empty world.

        Args:
            world_width: Width of the simulation world in pixels.
            world_height: Height of the simulation world in pixels.
        """
        self._entities: dict[str, BaseEntity] = {}
        self._spawn_listeners: list[SpawnListener] = []
        self.world_width = world_width
        self.world_height = world_height

    def add_spawn_listener(self, listener: SpawnListener) -> None:
        self._spawn_listeners.append(listener)

    def remove_spawn_listener(self, listener: SpawnListener) -> None:
        if listener in self._spawn_listeners:
            self._spawn_listeners.remove(listener)

    def spawn(
        self,
        entity_cls: type[BaseEntity],
        short_name: Optional[str],
        x: float,
        y: float,
        tick: int = 0,
    ) -> BaseEntity:
        """Create an entity and announce it to spawn listeners.

        Args:
            entity_cls: Concrete entity class (its name is the type name).
            short_name: Short prefab name, may be None.
            x: Initial x position.
            y: Initial y position.
            tick: Current simulation tick (for born_at_tick).

        Returns:
            The newly created entity.
        """
        entity = entity_cls(
            id=str(uuid.uuid4()),
            short_name=short_name,
            born_at_tick=tick,
            x=x,
            y=y,
        )
        self._entities[entity.id] = entity

        logger.debug(
            "entity_spawned",
            entity_id=entity.id,
            short_name=short_name,
            type_name=entity.type_name,
            x=x,
            y=y,
        )

        for listener in list(self._spawn_listeners):
            try:
                listener(entity)
            except Exception as exc:
                logger.error(
                    "spawn_listener_error",
                    entity_id=entity.id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        return entity

    def destroy(self, entity: BaseEntity) -> bool:
        """Remove an entity from the world.

        Destroying an entity that is already gone is a no-op.

        Returns:
            bool: True if entity was removed, False if it wasn't found.
        """
        if self._entities.get(entity.id) is not entity:
            logger.debug("entity_destroy_skipped", entity_id=entity.id, reason="not_found")
            return False

        del self._entities[entity.id]
        entity.state = "destroyed"

        logger.debug("entity_destroyed", entity_id=entity.id, short_name=entity.short_name, age=entity.age)
        return True

    def get(self, entity_id: str) -> Optional[BaseEntity]:
        return self._entities.get(entity_id)

    def contains(self, entity: BaseEntity) -> bool:
        return self._entities.get(entity.id) is entity

    def snapshot(self) -> list[BaseEntity]:
        """Get every live entity, in creation order.

        Returns:
            A new list; later spawns or destroys do not affect it.
        """
        return list(self._entities.values())

    def count(self) -> int:
        return len(self._entities)

    def count_by_type(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for entity in self._entities.values():
            counts[entity.type_name] = counts.get(entity.type_name, 0) + 1
        return counts

    def clear(self) -> None:
        """Remove all entities from the world."""
        self._entities.clear()
        logger.info("world_cleared")
