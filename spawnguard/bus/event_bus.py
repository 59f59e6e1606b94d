"""Async event bus that publishes filter events over Redis Pub/Sub."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import structlog
from redis.asyncio import Redis

logger = structlog.get_logger()


class EventBus:
    """Publish-only event bus built on Redis Pub/Sub.

    Events are dataclasses serialized to JSON. The filter never consumes
    its own events, so there is no listener side.
    """

    def __init__(self, redis_client: Redis):
        self._redis = redis_client

    async def publish(self, channel: str, event: Any) -> int:
        payload = json.dumps(asdict(event), default=str)
        logger.debug("event_bus_publishing", channel=channel, payload_length=len(payload))
        result = await self._redis.publish(channel, payload)
        logger.debug("event_bus_published", channel=channel, subscribers=result)
        return result
