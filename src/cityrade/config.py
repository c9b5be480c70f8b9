"""Lightweight configuration for the Cityrade server."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Minimal application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CITYRADE_", env_file=".env", env_file_encoding="utf-8"
    )

    data_dir: Path = Field(default=Path("worlds"), description="Where world snapshots live")
    scenarios_dir: Path | None = Field(
        default=None, description="Directory holding `.cityrade` scenario archives"
    )
    rules_version: str = Field(default="1.0", description="Ruleset version used by the domain")
    tick_interval_seconds: float = Field(
        default=60.0,
        description="Real-time seconds between automatic ticks when scheduling is enabled",
        gt=0.0,
    )
    debug_tick_speed_multiplier: float = Field(
        default=1.0,
        description="Multiplier applied to the tick interval in development",
        gt=0.0,
    )
    world_seed: int | None = Field(
        default=None,
        description="Seed given to new worlds; unset means draws use the process-wide RNG",
        ge=0,
    )
    trade_route_duration: int = Field(
        default=10, description="Ticks a trade route spends in transit", ge=1
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
