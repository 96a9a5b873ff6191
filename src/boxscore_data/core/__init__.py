"""
Core module for boxscore-data.

This module provides the foundational components:
- Configuration management (config.py)
- Box score, matchup and job models (models.py)
- Enums, constants and cache key builders (types.py)
- Domain errors (errors.py)
- Shared HTTP client infrastructure (http.py)

Usage:
    from boxscore_data.core import Settings, get_settings
    from boxscore_data.core import BoxScore, PlayerGameStats, ScrapeJob
    from boxscore_data.core.http import BaseApiClient, ExternalAPIError
"""

# Configuration
from .config import Settings, get_settings

# Types
from .types import (
    GameStatus,
    JobStatus,
    Timeframe,
    TrendDirection,
    boxscore_key,
    discovered_games_key,
    parse_timeframe,
    scrape_job_key,
)

# Models
from .models import (
    BattingStats,
    BoxScore,
    FieldingStats,
    GameEvent,
    GameInfo,
    JobProgress,
    MatchupData,
    MatchupHistory,
    PitchingStats,
    PlayerGameStats,
    ScrapeJob,
    matchup_key,
)

# Errors
from .errors import BoxScoreDataError, NotFoundError, ValidationError

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Types
    "GameStatus",
    "JobStatus",
    "Timeframe",
    "TrendDirection",
    "boxscore_key",
    "discovered_games_key",
    "parse_timeframe",
    "scrape_job_key",
    # Models
    "BattingStats",
    "BoxScore",
    "FieldingStats",
    "GameEvent",
    "GameInfo",
    "JobProgress",
    "MatchupData",
    "MatchupHistory",
    "PitchingStats",
    "PlayerGameStats",
    "ScrapeJob",
    "matchup_key",
    # Errors
    "BoxScoreDataError",
    "NotFoundError",
    "ValidationError",
]
