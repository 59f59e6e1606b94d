"""Configuration settings for SpawnGuard: loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings with env-driven overrides.

    All values can be overridden via environment variables prefixed with SPAWNGUARD_.
    Example: SPAWNGUARD_TICK_RATE_MS=32 overrides tick_rate_ms.
    The keyword policy itself lives in the JSON file at config_path.
    """

    # Filter policy file (see spawnguard.filter_config)
    config_path: str = "./config/spawnguard.json"
    startup_sweep_name: str = "startup_cleanup"

    # Host simulation parameters
    tick_rate_ms: int = 16
    world_width: int = 2000
    world_height: int = 2000
    initial_population: int = 200
    max_entities: int = 500
    spawn_batch_size: int = 2
    stats_interval_ticks: int = 300

    # Redis connection for filter notifications; empty disables the bus
    redis_url: str = ""

    log_level: str = "info"

    model_config = SettingsConfigDict(
        env_prefix="SPAWNGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
