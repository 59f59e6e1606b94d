"""SpawnGuard entry point: runs the simulation host with the spawn filter attached.

Can be run directly via `python -m spawnguard.main`.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

import structlog

from spawnguard import __version__
from spawnguard.bus import close_redis, get_redis
from spawnguard.bus.event_bus import EventBus
from spawnguard.config import Settings
from spawnguard.core.spawn_filter import SpawnFilter
from spawnguard.filter_config import FilterConfigError, load_filter_config
from spawnguard.host.engine import HostEngine
from spawnguard.host.ticks import TickScheduler
from spawnguard.host.world import World

logger = structlog.get_logger()


def configure_logging(level: str = "info") -> None:
    """Configure structured logging for the whole process."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level=level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


class FilterRunner:
    """Manages host + filter lifecycle and graceful shutdown."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.engine: Optional[HostEngine] = None
        self.spawn_filter: Optional[SpawnFilter] = None
        self.shutdown_event = asyncio.Event()

    async def _connect_event_bus(self) -> Optional[EventBus]:
        try:
            redis = await get_redis(self.settings)
            if redis is None:
                logger.info("event_bus_disabled", reason="no_redis_url")
                return None
            await redis.ping()
            logger.info("redis_connected", url=self.settings.redis_url)
            return EventBus(redis)
        except Exception as exc:
            logger.warning(
                "redis_connection_failed",
                url=self.settings.redis_url,
                error=str(exc),
                fallback="continuing_without_event_bus",
            )
            return None

    async def run(self) -> None:
        """Load the policy, wire the filter into the host and run until signalled."""
        logger.info("spawnguard_starting", version=__version__)

        filter_config = load_filter_config(self.settings.config_path)
        event_bus = await self._connect_event_bus()

        world = World(
            world_width=self.settings.world_width,
            world_height=self.settings.world_height,
        )
        self.engine = HostEngine(world=world, ticks=TickScheduler(), settings=self.settings)

        self.spawn_filter = SpawnFilter(
            host=self.engine,
            rules=filter_config.to_rule_set(),
            startup_sweep=filter_config.clean_up_existing_entities_on_startup,
            sweep_name=self.settings.startup_sweep_name,
            event_bus=event_bus,
        )
        # Populate first: the startup sweep owns pre-existing objects and
        # spawn events cover only what the host creates afterwards.
        self.engine.spawn_initial_population()
        self.engine.register_plugin(self.spawn_filter)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: self._handle_shutdown(s))

        engine_task = asyncio.create_task(self.engine.run())
        logger.info("services_running", tick_rate_ms=self.settings.tick_rate_ms)

        await self.shutdown_event.wait()

        logger.info("initiating_graceful_shutdown")
        self.engine.stop()

        try:
            await asyncio.wait_for(engine_task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("shutdown_timeout")
            engine_task.cancel()

        await close_redis()
        logger.info("all_services_stopped")

    def _handle_shutdown(self, sig: int) -> None:
        logger.info("shutdown_signal_received", signal=sig)
        self.shutdown_event.set()


async def main() -> None:
    """Main entry point."""
    settings = Settings()
    configure_logging(settings.log_level)
    runner = FilterRunner(settings)
    try:
        await runner.run()
    except FilterConfigError as exc:
        logger.error("filter_config_invalid", error=str(exc))
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt_received")


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
