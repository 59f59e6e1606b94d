"""Filter notifications: publish-only Redis channel for rejections and sweep results.

The bus is optional. With no redis_url configured get_redis returns None and
the filter runs without publishing anything.
"""

from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

from spawnguard.bus import events
from spawnguard.bus.channels import Channels
from spawnguard.bus.event_bus import EventBus
from spawnguard.config import Settings

# Shared publisher connection, opened lazily by get_redis
_redis_client: Optional[Redis] = None


async def get_redis(settings: Optional[Settings] = None) -> Optional[Redis]:
    """Return the shared publisher connection, creating it on first use.

    Returns None while settings.redis_url is empty; nothing is cached then,
    so a later call with a configured URL still connects.
    """
    global _redis_client

    if _redis_client is None:
        if settings is None:
            settings = Settings()
        if not settings.redis_url:
            return None
        _redis_client = Redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )

    return _redis_client


async def close_redis() -> None:
    """Drop the shared publisher connection. Safe to call when none was opened."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


__all__ = ["Channels", "EventBus", "close_redis", "events", "get_redis"]
