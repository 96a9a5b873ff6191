"""
Pydantic models for box score entities.

These models are used for:
- Validating normalized provider output before it reaches the store
- The store snapshot and cached box scores (camelCase field aliases)
- Job status payloads returned to callers
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .types import GameStatus, JobStatus


class CamelModel(BaseModel):
    """Base model serializing with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# Games
# =============================================================================


class GameInfo(CamelModel):
    """Game metadata. Mutable until the game is final."""

    game_id: str
    date: dt.date
    home_team: str
    away_team: str
    home_score: int = 0
    away_score: int = 0
    status: GameStatus = GameStatus.scheduled
    inning: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.status == GameStatus.final

    def involves(self, team: str) -> bool:
        return team in (self.home_team, self.away_team)

    def runs_for(self, team: str) -> int:
        return self.home_score if self.home_team == team else self.away_score

    def winner(self) -> Optional[str]:
        if self.home_score > self.away_score:
            return self.home_team
        if self.away_score > self.home_score:
            return self.away_team
        return None


class GameEvent(CamelModel):
    """Single play-by-play event."""

    inning: int = 0
    top_bottom: str = "top"
    outs: int = 0
    balls: int = 0
    strikes: int = 0
    description: str = ""
    batter: str = ""
    pitcher: str = ""
    result: str = ""
    timestamp: Optional[str] = None


# =============================================================================
# Player stat lines
# =============================================================================


class BattingStats(CamelModel):
    at_bats: int = 0
    runs: int = 0
    hits: int = 0
    rbi: int = 0
    walks: int = 0
    strikeouts: int = 0
    avg: float = 0.0
    obp: float = 0.0
    slg: float = 0.0
    ops: float = 0.0
    doubles: int = 0
    triples: int = 0
    home_runs: int = 0
    stolen_bases: int = 0
    caught_stealing: int = 0
    hit_by_pitch: int = 0
    sacrifices: int = 0
    ground_into_double_play: int = 0
    left_on_base: int = 0

    @property
    def total_bases(self) -> int:
        return self.hits + self.doubles + 2 * self.triples + 3 * self.home_runs


class PitchingStats(CamelModel):
    # True innings (5 2/3 innings is 5.667, not the box score's "5.2").
    innings_pitched: float = 0.0
    hits: int = 0
    runs: int = 0
    earned_runs: int = 0
    walks: int = 0
    strikeouts: int = 0
    home_runs: int = 0
    era: float = 0.0
    whip: float = 0.0
    pitch_count: int = 0
    strikes: int = 0
    balls: int = 0
    first_pitch_strikes: int = 0
    swinging_strikes: int = 0
    called_strikes: int = 0
    ground_balls: int = 0
    fly_balls: int = 0
    pop_ups: int = 0
    line_outs: int = 0

    @property
    def outs_recorded(self) -> int:
        return round(self.innings_pitched * 3)

    @property
    def estimated_batters_faced(self) -> int:
        """Outs + hits + walks; box scores here carry no batters-faced column."""
        return self.outs_recorded + self.hits + self.walks


class FieldingStats(CamelModel):
    position: str = ""
    innings: float = 0.0
    put_outs: int = 0
    assists: int = 0
    errors: int = 0
    chances: int = 0
    fielding_percentage: float = 0.0
    double_plays: int = 0
    triple_plays: int = 0
    # Catchers only
    passed_balls: Optional[int] = None
    stolen_bases_allowed: Optional[int] = None
    caught_stealing: Optional[int] = None


class PlayerGameStats(CamelModel):
    """One player's line for one game. Unique per (player_id, game_id)."""

    player_id: str
    player_name: str = ""
    team: str = ""
    game_id: str
    date: dt.date
    opponent: str = ""
    is_home: bool = False
    batting_stats: Optional[BattingStats] = None
    pitching_stats: Optional[PitchingStats] = None
    fielding_stats: Optional[FieldingStats] = None

    def merged_with(self, newer: "PlayerGameStats") -> "PlayerGameStats":
        """
        Merge a later ingestion of the same (player, game) into this record.

        Identity fields come from the newer record. Each stat category is taken
        from the newer record when present and kept from this one otherwise.
        """
        return newer.model_copy(
            update={
                "batting_stats": newer.batting_stats or self.batting_stats,
                "pitching_stats": newer.pitching_stats or self.pitching_stats,
                "fielding_stats": newer.fielding_stats or self.fielding_stats,
            }
        )


class BoxScore(CamelModel):
    game_info: GameInfo
    home_team_stats: list[PlayerGameStats] = Field(default_factory=list)
    away_team_stats: list[PlayerGameStats] = Field(default_factory=list)
    game_events: list[GameEvent] = Field(default_factory=list)

    @property
    def game_id(self) -> str:
        return self.game_info.game_id

    @property
    def all_player_stats(self) -> list[PlayerGameStats]:
        return [*self.home_team_stats, *self.away_team_stats]


# =============================================================================
# Matchups
# =============================================================================


class MatchupHistory(CamelModel):
    """Running, estimated totals for one batter against one pitcher."""

    at_bats: int = 0
    hits: int = 0
    home_runs: int = 0
    strikeouts: int = 0
    walks: int = 0
    total_bases: int = 0
    avg: float = 0.0
    ops: float = 0.0
    last_faced: Optional[dt.date] = None


class MatchupData(CamelModel):
    batter: str
    pitcher: str
    matchup_history: MatchupHistory = Field(default_factory=MatchupHistory)

    @property
    def key(self) -> str:
        return matchup_key(self.batter, self.pitcher)


def matchup_key(batter_id: str, pitcher_id: str) -> str:
    return f"{batter_id}-{pitcher_id}"


# =============================================================================
# Scrape jobs
# =============================================================================


class JobProgress(CamelModel):
    total: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    failed_days: int = 0


class ScrapeJob(CamelModel):
    """Bulk scrape job record, mutated in place while the job runs."""

    id: str
    start_date: dt.date
    end_date: dt.date
    force_refresh: bool = False
    status: JobStatus = JobStatus.queued
    progress: JobProgress = Field(default_factory=JobProgress)
    start_time: dt.datetime
    end_time: Optional[dt.datetime] = None
    last_update: Optional[dt.datetime] = None
    error: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in (JobStatus.queued, JobStatus.running)
