"""On-demand rollups: team vs team records and player vs opponent aggregates."""

from __future__ import annotations

from typing import Any, Optional

from ..core.models import GameInfo, PlayerGameStats
from ..core.types import (
    BASELINE_BATTING_AVG,
    BASELINE_ERA,
    BATTING_AVG_WEIGHT,
    ERA_WEIGHT,
    SUCCESS_METRIC_BOUND,
)


def calculate_team_vs_team(games: list[GameInfo], team1: str, team2: str) -> dict[str, Any]:
    """Head-to-head record and scoring between two teams over the given games."""
    meetings = [g for g in games if {g.home_team, g.away_team} == {team1, team2}]
    if not meetings:
        return {"games": 0}

    meetings.sort(key=lambda g: (g.date, g.game_id), reverse=True)
    count = len(meetings)
    return {
        "games": count,
        "record": {
            team1: sum(1 for g in meetings if g.winner() == team1),
            team2: sum(1 for g in meetings if g.winner() == team2),
        },
        "runsPerGame": {
            team1: sum(g.runs_for(team1) for g in meetings) / count,
            team2: sum(g.runs_for(team2) for g in meetings) / count,
        },
        "lastGame": meetings[0].to_dict(),
    }


def calculate_success_metric(games: list[PlayerGameStats]) -> float:
    """
    Score in [-100, 100] of how a player fared in the given games.

    Batting: mean per-game average above .250, times 100.
    Pitching: mean per-game ERA below 4.00, times 25.
    """
    batting = [g.batting_stats for g in games if g.batting_stats is not None]
    pitching = [g.pitching_stats for g in games if g.pitching_stats is not None]

    metric = 0.0
    if batting:
        deviations = [
            (s.hits / s.at_bats if s.at_bats else s.avg) - BASELINE_BATTING_AVG for s in batting
        ]
        metric += sum(deviations) / len(deviations) * BATTING_AVG_WEIGHT
    if pitching:
        # Outings without a recorded out count as baseline
        deviations = [
            BASELINE_ERA - (s.earned_runs * 9 / s.innings_pitched if s.innings_pitched else BASELINE_ERA)
            for s in pitching
        ]
        metric += sum(deviations) / len(deviations) * ERA_WEIGHT

    return min(SUCCESS_METRIC_BOUND, max(-SUCCESS_METRIC_BOUND, metric))


def aggregate_batting_stats(games: list[PlayerGameStats]) -> Optional[dict[str, int]]:
    batting = [g.batting_stats for g in games if g.batting_stats is not None]
    if not batting:
        return None
    return {
        "games": len(batting),
        "atBats": sum(s.at_bats for s in batting),
        "hits": sum(s.hits for s in batting),
        "homeRuns": sum(s.home_runs for s in batting),
        "rbi": sum(s.rbi for s in batting),
        "walks": sum(s.walks for s in batting),
        "strikeouts": sum(s.strikeouts for s in batting),
    }


def aggregate_pitching_stats(games: list[PlayerGameStats]) -> Optional[dict[str, Any]]:
    pitching = [g.pitching_stats for g in games if g.pitching_stats is not None]
    if not pitching:
        return None
    return {
        "games": len(pitching),
        "inningsPitched": round(sum(s.innings_pitched for s in pitching), 3),
        "hits": sum(s.hits for s in pitching),
        "runs": sum(s.runs for s in pitching),
        "earnedRuns": sum(s.earned_runs for s in pitching),
        "walks": sum(s.walks for s in pitching),
        "strikeouts": sum(s.strikeouts for s in pitching),
    }
