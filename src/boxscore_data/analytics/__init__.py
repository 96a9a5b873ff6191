"""
Analytics over stored box scores.

- trends: timeframe summaries, rolling averages, trend direction
- matchups: estimated batter-vs-pitcher matrices
- rollups: team vs team, success metric, stat aggregates
- engine: AnalyticsEngine facade bound to a GameDataStore

Usage:
    from boxscore_data.analytics import AnalyticsEngine

    engine = AnalyticsEngine(store)
    engine.get_player_trends("660271", "last30")
"""

from .engine import AnalyticsEngine
from .trends import calculate_rolling_averages, calculate_trend_direction

__all__ = ["AnalyticsEngine", "calculate_rolling_averages", "calculate_trend_direction"]
