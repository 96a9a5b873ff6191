"""
Core types and constants for boxscore-data.

This module provides:
- GameStatus, JobStatus, Timeframe and TrendDirection enums
- Cache key builders shared by the orchestrator and the providers
- Fixed baselines used by the analytics rollups
"""

from enum import Enum


class GameStatus(str, Enum):
    """Lifecycle of a single game."""

    scheduled = "scheduled"
    live = "live"
    final = "final"
    postponed = "postponed"


class JobStatus(str, Enum):
    """Lifecycle of a scrape job."""

    queued = "queued"
    running = "running"
    completed = "completed"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.completed, JobStatus.failed)


class Timeframe(str, Enum):
    """Game log windows understood by the store."""

    last7 = "last7"
    last14 = "last14"
    last30 = "last30"
    season = "season"


class TrendDirection(str, Enum):
    up = "up"
    down = "down"
    stable = "stable"


# Day counts for the rolling timeframes; "season" is anchored on a calendar date.
TIMEFRAME_DAYS: dict[Timeframe, int] = {
    Timeframe.last7: 7,
    Timeframe.last14: 14,
    Timeframe.last30: 30,
}

# Season game logs start on March 1 of the current year.
SEASON_START_MONTH = 3
SEASON_START_DAY = 1

# Trend classification threshold, in percent.
TREND_STABLE_THRESHOLD = 5.0

# Success metric baselines.
BASELINE_BATTING_AVG = 0.250
BASELINE_ERA = 4.00
BATTING_AVG_WEIGHT = 100
ERA_WEIGHT = 25
SUCCESS_METRIC_BOUND = 100.0

# ---------------------------------------------------------------------------
# Cache keys
# ---------------------------------------------------------------------------
BOXSCORE_KEY_PREFIX = "boxscore:"
SCRAPE_JOB_KEY_PREFIX = "scrape_job:"


def boxscore_key(game_id: str) -> str:
    return f"{BOXSCORE_KEY_PREFIX}{game_id}"


def discovered_games_key(date: str) -> str:
    return f"{BOXSCORE_KEY_PREFIX}games:{date}"


def scrape_job_key(job_id: str) -> str:
    return f"{SCRAPE_JOB_KEY_PREFIX}{job_id}"


def parse_timeframe(value: "str | Timeframe | None") -> "Timeframe | None":
    """Return the matching Timeframe, or None for missing/unknown values."""
    if value is None or isinstance(value, Timeframe):
        return value
    try:
        return Timeframe(value)
    except ValueError:
        return None
