"""Tests for trends, rolling averages, matchups and rollups."""

import pytest
from conftest import FIXED_TODAY, batting, days_ago, make_box, pitching, player_line

from boxscore_data.analytics import AnalyticsEngine
from boxscore_data.analytics.matchups import build_matchup_matrix, fold_game
from boxscore_data.analytics.rollups import (
    aggregate_batting_stats,
    aggregate_pitching_stats,
    calculate_success_metric,
    calculate_team_vs_team,
)
from boxscore_data.analytics.trends import calculate_rolling_averages, calculate_trend_direction
from boxscore_data.core.errors import NotFoundError, ValidationError
from boxscore_data.core.types import TrendDirection


@pytest.fixture
def engine(store) -> AnalyticsEngine:
    return AnalyticsEngine(store)


def _store_batting_game(store, player_id, gid, day, at_bats, hits, **kwargs):
    store.store_box_score(
        make_box(gid, day, home_players=[player_line(player_id, gid, day, batting_stats=batting(at_bats, hits, **kwargs))])
    )


# =========================================================================
# Trend direction
# =========================================================================


class TestTrendDirection:
    @pytest.mark.parametrize("value", [0.0, 0.25, 100.0])
    def test_equal_values_are_stable(self, value):
        assert calculate_trend_direction(value, value) == TrendDirection.stable

    def test_five_percent_up(self):
        assert calculate_trend_direction(105, 100) == TrendDirection.up

    def test_six_percent_down(self):
        assert calculate_trend_direction(94, 100) == TrendDirection.down

    def test_small_change_is_stable(self):
        assert calculate_trend_direction(104, 100) == TrendDirection.stable

    def test_zero_baseline_is_stable(self):
        assert calculate_trend_direction(3, 0) == TrendDirection.stable


# =========================================================================
# Rolling averages
# =========================================================================


class TestRollingAverages:
    def _log(self, store, games):
        for i in range(games):
            _store_batting_game(store, "p", f"g{i}", days_ago(games - i), 4, 1, rbi=1)
        return store.get_player_game_log("p")

    def test_point_count(self, store):
        log = self._log(store, 12)

        assert len(calculate_rolling_averages(log, 10)) == 3
        assert len(calculate_rolling_averages(log, 1)) == 12
        assert len(calculate_rolling_averages(log, 12)) == 1
        assert calculate_rolling_averages(log, 13) == []

    def test_points_run_in_ascending_date_order(self, store):
        log = self._log(store, 12)

        points = calculate_rolling_averages(log, 10)

        assert [p["endDate"] for p in points] == [days_ago(n).isoformat() for n in (3, 2, 1)]
        assert points[0]["avg"] == pytest.approx(0.25)
        assert points[0]["rbiPerGame"] == pytest.approx(1.0)

    def test_games_without_batting_are_ignored(self, store):
        log = self._log(store, 3)
        store.store_box_score(
            make_box("pitch-only", days_ago(0), home_players=[player_line("p", "pitch-only", days_ago(0), pitching_stats=pitching())])
        )

        assert len(calculate_rolling_averages(store.get_player_game_log("p"), 1)) == 3

    def test_window_must_be_positive(self, store):
        with pytest.raises(ValidationError):
            calculate_rolling_averages(self._log(store, 2), 0)


# =========================================================================
# Player trends
# =========================================================================


class TestPlayerTrends:
    def test_last30_batting_average(self, store, engine):
        for n, hits in ((1, 1), (2, 2), (3, 3)):
            _store_batting_game(store, "p", f"g{n}", days_ago(n), 4, hits)

        trends = engine.get_player_trends("p", "last30")

        assert trends["battingTrends"]["avg"] == pytest.approx(0.5)
        assert trends["battingTrends"]["games"] == 3
        assert trends["pitchingTrends"] is None

    def test_pitching_rates_are_per_nine(self, store, engine):
        for gid, n, line in (
            ("g1", 1, pitching(6.0, hits=4, earned_runs=2, strikeouts=6, walks=2, home_runs=1)),
            ("g2", 6, pitching(3.0, hits=2, earned_runs=1, strikeouts=3, walks=1)),
        ):
            store.store_box_score(make_box(gid, days_ago(n), home_players=[player_line("sp", gid, days_ago(n), pitching_stats=line)]))

        p = engine.get_player_trends("sp", "last30")["pitchingTrends"]

        assert p["era"] == pytest.approx(3.0)
        assert p["whip"] == pytest.approx(1.0)
        assert p["strikeoutRate"] == pytest.approx(9.0)
        assert p["walkRate"] == pytest.approx(3.0)
        assert p["homeRunRate"] == pytest.approx(1.0)

    def test_no_games_gives_empty_trends(self, engine):
        trends = engine.get_player_trends("nobody", "last7")
        assert trends["battingTrends"] is None
        assert trends["pitchingTrends"] is None

    def test_trend_analysis_swaps_strikeout_rate(self, store, engine):
        _store_batting_game(store, "p", "recent", days_ago(2), 4, 2, strikeouts=1)
        for n in (10, 15, 20):
            _store_batting_game(store, "p", f"old{n}", days_ago(n), 4, 0, strikeouts=2)

        batting_trends = engine.get_player_trend_analysis("p")["trends"]["batting"]

        assert batting_trends["avg"]["trend"] == "up"
        # Fewer strikeouts recently reads as improvement
        assert batting_trends["strikeoutRate"]["trend"] == "up"


# =========================================================================
# Matchups
# =========================================================================


def _matchup_box(gid, day):
    """Two home batters (4 AB each) against one away pitcher facing 24 batters."""
    return make_box(
        gid,
        day,
        home_players=[
            player_line("A", gid, day, batting_stats=batting(4, 2, home_runs=1, strikeouts=1)),
            player_line("B", gid, day, batting_stats=batting(4, 0)),
        ],
        away_players=[
            player_line("P", gid, day, "BOS", "NYY", False, pitching_stats=pitching(7.0, hits=3)),
        ],
    )


class TestMatchups:
    def test_single_game_estimate(self):
        matrix = build_matchup_matrix([_matchup_box("g1", days_ago(1))])

        h = matrix["A-P"].matchup_history
        assert h.at_bats == 12
        assert h.hits == 6
        assert h.home_runs == 3
        assert h.strikeouts == 3
        assert h.total_bases == 15
        assert h.avg == pytest.approx(0.5)
        assert h.ops == pytest.approx(0.5 + 1.25)
        assert h.last_faced == days_ago(1)
        assert matrix["B-P"].matchup_history.hits == 0

    def test_folding_is_monotone(self):
        matrix = build_matchup_matrix([_matchup_box("g2", days_ago(1))])
        before = matrix["A-P"].matchup_history.model_copy()

        fold_game(matrix, _matchup_box("g1", days_ago(5)))
        after = matrix["A-P"].matchup_history

        for field in ("at_bats", "hits", "home_runs", "strikeouts", "walks", "total_bases"):
            assert getattr(after, field) >= getattr(before, field)
        assert after.hits <= after.at_bats
        assert after.last_faced == days_ago(1)

    def test_pitcher_who_faced_nobody_is_skipped(self):
        day = days_ago(1)
        box = make_box(
            "g1", day,
            home_players=[player_line("A", "g1", day, batting_stats=batting(4, 1))],
            away_players=[player_line("P", "g1", day, "BOS", "NYY", False, pitching_stats=pitching(0.0))],
        )
        assert build_matchup_matrix([box]) == {}

    def test_matrix_filters_by_teams(self, store, engine):
        store.store_box_score(_matchup_box("g1", days_ago(1)))

        assert "A-P" in engine.get_matchup_matrix("NYY", "BOS")
        assert engine.get_matchup_matrix("NYY", "TOR") == {}

    def test_get_matchup_from_store(self, store, engine):
        store.store_box_score(_matchup_box("g1", days_ago(3)))
        store.store_box_score(_matchup_box("g2", days_ago(1)))

        matchup = engine.get_matchup("A", "P")

        assert matchup.matchup_history.at_bats == 24
        assert matchup.matchup_history.last_faced == days_ago(1)
        assert engine.get_matchup("A", "nobody") is None

    def test_two_way_player_counts_once_in_lineup(self, store, engine):
        day = days_ago(1)
        store.store_box_score(
            make_box(
                "g1",
                day,
                home_players=[
                    player_line("A", "g1", day, batting_stats=batting(4, 2)),
                    player_line("A", "g1", day, pitching_stats=pitching(1.0)),
                    player_line("B", "g1", day, batting_stats=batting(4, 0)),
                ],
                away_players=[
                    player_line("P", "g1", day, "BOS", "NYY", False, pitching_stats=pitching(7.0, hits=3)),
                ],
            )
        )

        matrix = engine.get_matchup_matrix()

        # 24 batters faced split over an 8 at-bat lineup
        assert matrix["A-P"].matchup_history.at_bats == 12
        assert matrix["B-P"].matchup_history.at_bats == 12
        assert matrix["A-P"].matchup_history.hits == 6


# =========================================================================
# Rollups
# =========================================================================


class TestRollups:
    def test_success_metric_is_clamped_high(self):
        line = player_line(
            "p", "g1", FIXED_TODAY,
            batting_stats=batting(4, 4),
            pitching_stats=pitching(9.0, earned_runs=0),
        )
        assert calculate_success_metric([line]) == 100

    def test_success_metric_is_clamped_low(self):
        line = player_line(
            "p", "g1", FIXED_TODAY,
            batting_stats=batting(4, 0),
            pitching_stats=pitching(1.0, earned_runs=9),
        )
        assert calculate_success_metric([line]) == -100

    def test_success_metric_batting_only(self):
        line = player_line("p", "g1", FIXED_TODAY, batting_stats=batting(4, 2))
        assert calculate_success_metric([line]) == pytest.approx(25.0)

    def test_success_metric_no_games(self):
        assert calculate_success_metric([]) == 0

    def test_team_vs_team(self, store, engine):
        store.store_box_score(make_box("g1", days_ago(5), home_score=5, away_score=3))
        store.store_box_score(make_box("g2", days_ago(3), home="BOS", away="NYY", home_score=6, away_score=2))
        store.store_box_score(make_box("g3", days_ago(1), home_score=4, away_score=1))
        store.store_box_score(make_box("other", days_ago(2), away="TOR"))

        result = engine.calculate_team_vs_team("NYY", "BOS")

        assert result["games"] == 3
        assert result["record"] == {"NYY": 2, "BOS": 1}
        assert result["runsPerGame"]["NYY"] == pytest.approx(11 / 3)
        assert result["runsPerGame"]["BOS"] == pytest.approx(10 / 3)
        assert result["lastGame"]["gameId"] == "g3"

    def test_team_vs_team_without_meetings(self):
        assert calculate_team_vs_team([], "NYY", "BOS") == {"games": 0}

    def test_aggregates(self):
        games = [
            player_line("p", "g1", FIXED_TODAY, batting_stats=batting(4, 2, rbi=1)),
            player_line("p", "g2", FIXED_TODAY, batting_stats=batting(3, 1), pitching_stats=pitching(1.0, strikeouts=2)),
        ]

        assert aggregate_batting_stats(games) == {
            "games": 2, "atBats": 7, "hits": 3, "homeRuns": 0, "rbi": 1, "walks": 0, "strikeouts": 0,
        }
        assert aggregate_pitching_stats(games)["strikeouts"] == 2
        assert aggregate_pitching_stats(games[:1]) is None


# =========================================================================
# Summaries
# =========================================================================


class TestSummaries:
    def test_unknown_player(self, engine):
        assert engine.get_player_summary("nobody") is None
        with pytest.raises(NotFoundError):
            engine.get_player_stats("nobody")
        with pytest.raises(NotFoundError):
            engine.get_player_vs_opponent_analysis("nobody", "BOS")

    def test_summary(self, store, engine):
        for i in range(12):
            _store_batting_game(store, "p", f"g{i}", days_ago(i + 1), 4, 1)

        summary = engine.get_player_stats("p")

        assert summary["playerName"] == "Player p"
        assert summary["team"] == "NYY"
        assert summary["totalGames"] == 12
        assert set(summary["trends"]) == {"last7", "last14", "last30", "season"}
        assert len(summary["rollingAverages"]) == 3
        assert len(summary["recentGames"]) == 10
        assert summary["recentGames"][0]["gameId"] == "g0"

    def test_player_vs_opponent(self, store, engine):
        store.store_box_score(_matchup_box("g1", days_ago(1)))

        analysis = engine.get_player_vs_opponent_analysis("A", "BOS")

        assert analysis["player"] == {"id": "A", "name": "Player A", "team": "NYY"}
        assert analysis["vsTeam"]["games"] == 1
        assert analysis["vsTeam"]["battingStats"]["hits"] == 2
        assert [m["pitcher"] for m in analysis["matchups"]] == ["P"]
        assert analysis["teamVsTeam"]["games"] == 1
