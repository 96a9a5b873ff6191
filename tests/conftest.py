"""
Pytest configuration for boxscore-data tests.

Everything runs offline: a scripted fake provider stands in for the MLB
Stats API and the cache is the in-memory backend.
"""

from __future__ import annotations

import asyncio
from datetime import date, timedelta
from typing import Optional

import pytest

from boxscore_data.cache import GameCache, InMemoryBackend
from boxscore_data.core.config import Settings
from boxscore_data.core.models import (
    BattingStats,
    BoxScore,
    GameInfo,
    PitchingStats,
    PlayerGameStats,
)
from boxscore_data.core.types import GameStatus
from boxscore_data.providers.base import BoxScoreProvider, NetworkError
from boxscore_data.scraping import ScrapeOrchestrator
from boxscore_data.store import GameDataStore

FIXED_TODAY = date(2024, 7, 15)


# =========================================================================
# Builders
# =========================================================================


def batting(at_bats: int = 4, hits: int = 1, **kwargs) -> BattingStats:
    return BattingStats(at_bats=at_bats, hits=hits, **kwargs)


def pitching(innings: float = 6.0, **kwargs) -> PitchingStats:
    return PitchingStats(innings_pitched=innings, **kwargs)


def player_line(
    player_id: str,
    game_id: str,
    day: date,
    team: str = "NYY",
    opponent: str = "BOS",
    is_home: bool = True,
    batting_stats: Optional[BattingStats] = None,
    pitching_stats: Optional[PitchingStats] = None,
    name: Optional[str] = None,
) -> PlayerGameStats:
    return PlayerGameStats(
        player_id=player_id,
        player_name=name or f"Player {player_id}",
        team=team,
        game_id=game_id,
        date=day,
        opponent=opponent,
        is_home=is_home,
        batting_stats=batting_stats,
        pitching_stats=pitching_stats,
    )


def make_box(
    game_id: str,
    day: date,
    home: str = "NYY",
    away: str = "BOS",
    home_players: Optional[list[PlayerGameStats]] = None,
    away_players: Optional[list[PlayerGameStats]] = None,
    home_score: int = 5,
    away_score: int = 3,
    status: GameStatus = GameStatus.final,
) -> BoxScore:
    return BoxScore(
        game_info=GameInfo(
            game_id=game_id,
            date=day,
            home_team=home,
            away_team=away,
            home_score=home_score,
            away_score=away_score,
            status=status,
        ),
        home_team_stats=home_players or [],
        away_team_stats=away_players or [],
    )


def simple_box(game_id: str, day: date, status: GameStatus = GameStatus.final) -> BoxScore:
    """One batter per side and one pitcher per side."""
    return make_box(
        game_id,
        day,
        status=status,
        home_players=[
            player_line("h-bat", game_id, day, batting_stats=batting(4, 2)),
            player_line("h-pit", game_id, day, pitching_stats=pitching(7.0, hits=5, walks=1)),
        ],
        away_players=[
            player_line("a-bat", game_id, day, "BOS", "NYY", False, batting_stats=batting(4, 1)),
            player_line("a-pit", game_id, day, "BOS", "NYY", False, pitching_stats=pitching(6.0, hits=6)),
        ],
    )


# =========================================================================
# Fake provider
# =========================================================================


class FakeProvider(BoxScoreProvider):
    """Scripted provider with call counters."""

    name = "fake"

    def __init__(self):
        self.schedule: dict[date, list[str]] = {}
        self.boxes: dict[str, BoxScore] = {}
        self.failing_days: set[date] = set()
        self.failing_games: set[str] = set()
        self.slow_games: set[str] = set()
        self.discover_calls: list[date] = []
        self.fetch_calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add_game(self, box: BoxScore) -> None:
        self.schedule.setdefault(box.game_info.date, []).append(box.game_id)
        self.boxes[box.game_id] = box

    def add_unplayed(self, game_id: str, day: date) -> None:
        """Scheduled game with no box score available."""
        self.schedule.setdefault(day, []).append(game_id)

    async def discover_games(self, day: date) -> list[GameInfo]:
        self.discover_calls.append(day)
        if day in self.failing_days:
            raise NetworkError(f"schedule unavailable for {day}")
        infos = []
        for gid in self.schedule.get(day, []):
            box = self.boxes.get(gid)
            infos.append(box.game_info if box else GameInfo(game_id=gid, date=day, home_team="NYY", away_team="BOS"))
        return infos

    async def fetch_box_score(self, game_id: str) -> Optional[BoxScore]:
        self.fetch_calls.append(game_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if game_id in self.slow_games:
                await asyncio.sleep(5)
            if game_id in self.failing_games:
                raise NetworkError(f"boxscore unavailable for {game_id}")
            return self.boxes.get(game_id)
        finally:
            self.in_flight -= 1


# =========================================================================
# Fixtures
# =========================================================================


@pytest.fixture
def today() -> date:
    return FIXED_TODAY


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path / "games",
        scrape_batch_size=2,
        scrape_batch_delay_seconds=0,
        fetch_timeout_seconds=1.0,
    )


@pytest.fixture
def cache() -> GameCache:
    return GameCache(InMemoryBackend())


@pytest.fixture
def store(settings) -> GameDataStore:
    return GameDataStore(settings.snapshot_path, today=lambda: FIXED_TODAY)


@pytest.fixture
def memory_store() -> GameDataStore:
    return GameDataStore(today=lambda: FIXED_TODAY)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def orchestrator(provider, store, cache, settings) -> ScrapeOrchestrator:
    return ScrapeOrchestrator(provider, store, cache, settings=settings, today=lambda: FIXED_TODAY)


def days_ago(n: int) -> date:
    return FIXED_TODAY - timedelta(days=n)
