"""Event types published by the spawn filter.

All events are dataclasses that can be serialized to/from JSON.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class ObjectRejected:
    """Published when a newly spawned object is destroyed by the filter.

    Attributes:
        object_id: Host identifier of the destroyed object
        short_name: Short prefab name (empty string if the object had none)
        type_name: Concrete runtime type name
        source: Where the rejection came from ('spawn')
        timestamp: Unix timestamp when event was created
    """

    object_id: str
    short_name: str
    type_name: str
    source: str = "spawn"
    timestamp: float = field(default_factory=time.time)


@dataclass
class SweepFinished:
    """Published when a sweep completes or is cancelled.

    Attributes:
        sweep: Registry name of the sweep
        state: Terminal state ('completed' | 'cancelled')
        visited: Objects evaluated before the sweep ended
        destroyed: Objects destroyed by the sweep
        total: Size of the snapshot the sweep started with
    """

    sweep: str
    state: str
    visited: int
    destroyed: int
    total: int
    timestamp: float = field(default_factory=time.time)
