"""
Analytics engine.

Read-only facade over the GameDataStore. Everything is computed on demand
from the store's indices; nothing here writes back.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ..core.errors import NotFoundError
from ..core.models import MatchupData, matchup_key
from ..core.types import Timeframe, TrendDirection
from ..store.game_store import GameDataStore
from . import matchups, rollups, trends

logger = logging.getLogger(__name__)

TIMEFRAMES = (Timeframe.last7, Timeframe.last14, Timeframe.last30, Timeframe.season)
RECENT_GAMES_LIMIT = 10


class AnalyticsEngine:
    """Rolling, trend, matchup and rollup analytics over stored box scores."""

    def __init__(self, store: GameDataStore):
        self.store = store

    # =========================================================================
    # Trends
    # =========================================================================

    @staticmethod
    def calculate_trend_direction(recent: float, baseline: float) -> TrendDirection:
        return trends.calculate_trend_direction(recent, baseline)

    def calculate_rolling_averages(self, player_id: str, window: int = 10) -> list[dict[str, Any]]:
        return trends.calculate_rolling_averages(self.store.get_player_game_log(player_id), window)

    def get_player_trends(self, player_id: str, timeframe: Timeframe | str = Timeframe.last30) -> dict[str, Any]:
        games = self.store.get_player_game_log(player_id, timeframe)
        return {
            "playerId": player_id,
            "timeframe": timeframe.value if isinstance(timeframe, Timeframe) else timeframe,
            "battingTrends": trends.summarize_batting(games),
            "pitchingTrends": trends.summarize_pitching(games),
        }

    def _recent_form(self, player_id: str) -> dict[str, Any]:
        return {tf.value: self.get_player_trends(player_id, tf) for tf in TIMEFRAMES}

    def get_player_trend_analysis(self, player_id: str) -> dict[str, Any]:
        """Recent form across all timeframes plus last-7 vs last-30 comparisons."""
        log = self.store.get_player_game_log(player_id)
        last7 = self.store.get_player_game_log(player_id, Timeframe.last7)
        last30 = self.store.get_player_game_log(player_id, Timeframe.last30)
        return {
            "playerId": player_id,
            "playerName": log[0].player_name if log else "",
            "team": log[0].team if log else "",
            "recentForm": self._recent_form(player_id),
            "rollingAverages": trends.calculate_rolling_averages(log, 10),
            "trends": {
                "batting": trends.batting_trends(last7, last30),
                "pitching": trends.pitching_trends(last7, last30),
            },
            "lastUpdated": datetime.now(tz=timezone.utc).isoformat(),
        }

    # =========================================================================
    # Player summaries
    # =========================================================================

    def get_player_summary(self, player_id: str) -> Optional[dict[str, Any]]:
        """Summary of a player's stored games, or None for unknown players."""
        log = self.store.get_player_game_log(player_id)
        if not log:
            return None
        return {
            "playerId": player_id,
            "playerName": log[0].player_name,
            "team": log[0].team,
            "totalGames": len(log),
            "trends": self._recent_form(player_id),
            "rollingAverages": trends.calculate_rolling_averages(log),
            "recentGames": [g.to_dict() for g in log[:RECENT_GAMES_LIMIT]],
        }

    def get_player_stats(self, player_id: str) -> dict[str, Any]:
        """
        Like get_player_summary, for callers that require the player to exist.

        Raises:
            NotFoundError: no games stored for the player
        """
        summary = self.get_player_summary(player_id)
        if summary is None:
            raise NotFoundError("Player", player_id)
        return summary

    # =========================================================================
    # Matchups
    # =========================================================================

    def get_matchup_matrix(
        self, team: Optional[str] = None, opponent: Optional[str] = None
    ) -> dict[str, MatchupData]:
        return matchups.build_matchup_matrix(self.store.get_all_box_scores(), team, opponent)

    def get_matchup(self, batter_id: str, pitcher_id: str) -> Optional[MatchupData]:
        """Estimated history of one batter against one pitcher, None if they never met."""
        history = self.store.get_batter_vs_pitcher_history(batter_id, pitcher_id)
        matrix: matchups.MatchupMatrix = {}
        for record in history:
            box = self.store.get_box_score(record.game_id)
            if box is not None:
                matchups.fold_game(matrix, box, batter_ids={batter_id}, pitcher_ids={pitcher_id})
        return matrix.get(matchup_key(batter_id, pitcher_id))

    # =========================================================================
    # Rollups
    # =========================================================================

    def calculate_team_vs_team(self, team1: str, team2: str) -> dict[str, Any]:
        return rollups.calculate_team_vs_team(self.store.get_team_games(team1), team1, team2)

    @staticmethod
    def calculate_success_metric(games) -> float:
        return rollups.calculate_success_metric(games)

    @staticmethod
    def aggregate_batting_stats(games) -> Optional[dict[str, int]]:
        return rollups.aggregate_batting_stats(games)

    @staticmethod
    def aggregate_pitching_stats(games) -> Optional[dict[str, Any]]:
        return rollups.aggregate_pitching_stats(games)

    def get_player_vs_opponent_analysis(self, player_id: str, opponent: str) -> dict[str, Any]:
        """
        Everything known about a player against one opponent.

        Raises:
            NotFoundError: no games stored for the player
        """
        log = self.store.get_player_game_log(player_id)
        if not log:
            raise NotFoundError("Player", player_id)

        player_team = log[0].team
        vs_team = self.store.get_player_vs_team(player_id, opponent)
        matrix = self.get_matchup_matrix(player_team, opponent)
        involved = [
            m.to_dict() for m in matrix.values() if player_id in (m.batter, m.pitcher)
        ]

        return {
            "player": {"id": player_id, "name": log[0].player_name, "team": player_team},
            "opponent": {"team": opponent},
            "vsTeam": {
                "games": len(vs_team),
                "battingStats": rollups.aggregate_batting_stats(vs_team),
                "pitchingStats": rollups.aggregate_pitching_stats(vs_team),
                "successMetric": rollups.calculate_success_metric(vs_team),
            },
            "matchups": involved,
            "trends": self.get_player_trend_analysis(player_id),
            "teamVsTeam": self.calculate_team_vs_team(player_team, opponent),
            "lastUpdated": datetime.now(tz=timezone.utc).isoformat(),
        }
