"""
Configuration management for boxscore-data.

Uses Pydantic settings for type-safe configuration with environment variable support.
All settings can be overridden via environment variables prefixed with BOXSCORE_,
e.g. BOXSCORE_SCRAPE_BATCH_SIZE=10.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables or a local .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOXSCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Application Metadata
    # ==========================================================================
    app_name: str = "boxscore-data"
    environment: str = Field(default="development", description="development, staging, production")
    debug: bool = False
    log_level: str = Field(default="INFO", description="Root log level for the CLI")

    # ==========================================================================
    # Storage
    # ==========================================================================
    data_dir: Path = Field(
        default=Path("data/games"),
        description="Directory holding the game store snapshot",
    )
    snapshot_filename: str = "gameData.json"

    @computed_field
    @property
    def snapshot_path(self) -> Path:
        """Full path of the store snapshot file."""
        return self.data_dir / self.snapshot_filename

    # ==========================================================================
    # Caching Configuration
    # ==========================================================================
    cache_backend: str = Field(
        default="memory",
        description="Cache backend: memory, redis",
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL (redis://host:port/db)",
    )
    cache_prefix: str = "boxscore-data:"
    ttl_final_game_minutes: int = Field(default=10080, description="Final box scores (7 days)")
    ttl_live_game_minutes: int = Field(default=10, description="Live or scheduled box scores")
    ttl_discovered_games_minutes: int = Field(default=1440, description="Per-day game lists (24 hours)")
    ttl_scrape_job_minutes: int = Field(default=10080, description="Scrape job snapshots (7 days)")

    # ==========================================================================
    # MLB Stats API
    # ==========================================================================
    mlb_api_base_url: str = "https://statsapi.mlb.com/api/v1"
    mlb_requests_per_minute: int = Field(default=120, ge=1)
    mlb_max_retries: int = Field(default=3, ge=1, le=10)

    # ==========================================================================
    # Scrape orchestration
    # ==========================================================================
    scrape_batch_size: int = Field(default=5, ge=1, le=50)
    scrape_batch_delay_seconds: float = Field(default=2.0, ge=0)
    fetch_timeout_seconds: float = Field(default=30.0, gt=0)
    backfill_days: int = Field(default=7, ge=1)
    season_start: str = Field(default="03-28", description="MM-DD of opening day window")
    season_end: str = Field(default="09-30", description="MM-DD of regular season end")

    # ==========================================================================
    # Scheduler
    # ==========================================================================
    daily_discovery_hour: int = Field(default=6, ge=0, le=23)
    weekly_backfill_weekday: int = Field(default=6, ge=0, le=6, description="0=Monday ... 6=Sunday")
    weekly_backfill_hour: int = Field(default=2, ge=0, le=23)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
