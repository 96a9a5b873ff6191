"""
boxscore-data

Ingests per-game baseball box scores, keeps them in an indexed local store
and derives rolling, trend and matchup analytics.

Key Features:
- Bulk scrape jobs over date ranges with batching, pacing and progress
- Idempotent re-scrapes (cached games are skipped unless forced)
- Store indices by game, date, team and player with merge-on-reingest
- Rolling averages, trend direction and estimated batter-vs-pitcher matchups

Usage:
    from boxscore_data import build_services

    services = build_services()
    job_id = await services.orchestrator.bulk_scrape_games("2024-06-01", "2024-06-07")
    await services.orchestrator.wait_for_job(job_id)
    services.engine.get_player_trends("660271", "last30")
"""

from .analytics import AnalyticsEngine
from .cache import GameCache, InMemoryBackend, RedisBackend, create_cache
from .cli import Services, build_services
from .core import BoxScore, NotFoundError, Settings, ValidationError, get_settings
from .scraping import ScrapeOrchestrator, ScrapeScheduler
from .store import GameDataStore

__version__ = "0.1.0"

__all__ = [
    "AnalyticsEngine",
    "BoxScore",
    "GameCache",
    "GameDataStore",
    "InMemoryBackend",
    "NotFoundError",
    "RedisBackend",
    "ScrapeOrchestrator",
    "ScrapeScheduler",
    "Services",
    "Settings",
    "ValidationError",
    "build_services",
    "create_cache",
    "get_settings",
]
