"""Redis Pub/Sub channel constants.

All channel names follow the convention: ch:<domain>:<event_type>
"""


class Channels:
    """Redis Pub/Sub channel name constants used by the spawn filter."""

    # SpawnFilter → subscribers
    # Payload: {object_id, short_name, type_name, source, tick}
    OBJECT_REJECTED = "ch:filter:rejected"

    # SpawnFilter → subscribers
    # Payload: {sweep, state, visited, destroyed, total}
    SWEEP_FINISHED = "ch:filter:sweep"
