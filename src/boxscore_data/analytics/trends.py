"""
Time-windowed batting and pitching trends.

All functions take plain lists of PlayerGameStats (as returned by the store)
and return JSON-ready dicts with camelCase keys.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np

from ..core.errors import ValidationError
from ..core.models import PlayerGameStats
from ..core.types import TREND_STABLE_THRESHOLD, TrendDirection

ROLLING_FIELDS = ("at_bats", "hits", "home_runs", "rbi", "runs", "walks", "strikeouts")


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def percent_change(recent: float, baseline: float) -> float:
    """Percent change from baseline; 0 when the baseline is 0."""
    if baseline == 0:
        return 0.0
    return (recent - baseline) / baseline * 100


def calculate_trend_direction(recent: float, baseline: float) -> TrendDirection:
    """
    Classify a change as up, down or stable (under 5% either way).

    For lower-is-better metrics (ERA, WHIP, batter strikeout rate) callers
    pass the arguments swapped.
    """
    change = percent_change(recent, baseline)
    if abs(change) < TREND_STABLE_THRESHOLD:
        return TrendDirection.stable
    return TrendDirection.up if change > 0 else TrendDirection.down


# =============================================================================
# Totals
# =============================================================================


def batting_totals(records: list[PlayerGameStats]) -> dict[str, int]:
    totals = {
        "games": 0, "atBats": 0, "hits": 0, "homeRuns": 0, "rbi": 0, "runs": 0,
        "walks": 0, "strikeouts": 0, "doubles": 0, "triples": 0,
    }
    for record in records:
        stats = record.batting_stats
        if stats is None:
            continue
        totals["games"] += 1
        totals["atBats"] += stats.at_bats
        totals["hits"] += stats.hits
        totals["homeRuns"] += stats.home_runs
        totals["rbi"] += stats.rbi
        totals["runs"] += stats.runs
        totals["walks"] += stats.walks
        totals["strikeouts"] += stats.strikeouts
        totals["doubles"] += stats.doubles
        totals["triples"] += stats.triples
    return totals


def pitching_totals(records: list[PlayerGameStats]) -> dict[str, float]:
    totals: dict[str, float] = {
        "games": 0, "inningsPitched": 0.0, "hits": 0, "runs": 0, "earnedRuns": 0,
        "walks": 0, "strikeouts": 0, "homeRuns": 0,
    }
    for record in records:
        stats = record.pitching_stats
        if stats is None:
            continue
        totals["games"] += 1
        totals["inningsPitched"] += stats.innings_pitched
        totals["hits"] += stats.hits
        totals["runs"] += stats.runs
        totals["earnedRuns"] += stats.earned_runs
        totals["walks"] += stats.walks
        totals["strikeouts"] += stats.strikeouts
        totals["homeRuns"] += stats.home_runs
    return totals


# =============================================================================
# Timeframe summaries
# =============================================================================


def summarize_batting(records: list[PlayerGameStats]) -> Optional[dict[str, Any]]:
    """Batting line over the given games, or None if none has batting stats."""
    t = batting_totals(records)
    if t["games"] == 0:
        return None

    total_bases = t["hits"] + t["doubles"] + 2 * t["triples"] + 3 * t["homeRuns"]
    obp = _ratio(t["hits"] + t["walks"], t["atBats"] + t["walks"])
    slg = _ratio(total_bases, t["atBats"])
    return {
        "games": t["games"],
        "atBats": t["atBats"],
        "hits": t["hits"],
        "avg": _ratio(t["hits"], t["atBats"]),
        "obp": obp,
        "slg": slg,
        "ops": obp + slg,
        "homeRuns": t["homeRuns"],
        "rbi": t["rbi"],
        "runs": t["runs"],
        "strikeoutRate": _ratio(t["strikeouts"], t["atBats"]),
        "walkRate": _ratio(t["walks"], t["atBats"]),
    }


def summarize_pitching(records: list[PlayerGameStats]) -> Optional[dict[str, Any]]:
    """Pitching line with per-nine rates, or None if none has pitching stats."""
    t = pitching_totals(records)
    if t["games"] == 0:
        return None

    ip = t["inningsPitched"]
    return {
        "games": int(t["games"]),
        "inningsPitched": round(ip, 3),
        "era": _ratio(t["earnedRuns"] * 9, ip),
        "whip": _ratio(t["hits"] + t["walks"], ip),
        "strikeoutRate": _ratio(t["strikeouts"] * 9, ip),
        "walkRate": _ratio(t["walks"] * 9, ip),
        "homeRunRate": _ratio(t["homeRuns"] * 9, ip),
    }


# =============================================================================
# Rolling averages
# =============================================================================


def calculate_rolling_averages(records: list[PlayerGameStats], window: int = 10) -> list[dict[str, Any]]:
    """
    Trailing-window batting rates over games in ascending date order.

    Produces one point per window end, max(0, N - window + 1) points for N
    batting games.
    """
    if window < 1:
        raise ValidationError("Rolling window must be at least 1", f"window={window}")

    games = sorted(
        (r for r in records if r.batting_stats is not None),
        key=lambda r: (r.date, r.game_id),
    )
    if len(games) < window:
        return []

    counts = np.array(
        [[getattr(g.batting_stats, f) for f in ROLLING_FIELDS] for g in games],
        dtype=np.float64,
    )
    cumulative = np.vstack([np.zeros(len(ROLLING_FIELDS)), np.cumsum(counts, axis=0)])
    sums = cumulative[window:] - cumulative[:-window]

    points = []
    for end, row in zip(games[window - 1:], sums):
        at_bats, hits, home_runs, rbi, runs, walks, strikeouts = row.tolist()
        points.append({
            "endDate": end.date.isoformat(),
            "avg": _ratio(hits, at_bats),
            "homeRunRate": _ratio(home_runs, at_bats),
            "strikeoutRate": _ratio(strikeouts, at_bats),
            "walkRate": _ratio(walks, at_bats),
            "rbiPerGame": rbi / window,
            "runsPerGame": runs / window,
        })
    return points


# =============================================================================
# Recent vs baseline comparisons
# =============================================================================


def _compare(recent: float, baseline: float, lower_is_better: bool = False) -> dict[str, Any]:
    direction = (
        calculate_trend_direction(baseline, recent)
        if lower_is_better
        else calculate_trend_direction(recent, baseline)
    )
    return {"trend": direction.value, "recent": recent, "overall": baseline}


def batting_trends(
    recent: list[PlayerGameStats], baseline: list[PlayerGameStats]
) -> Optional[dict[str, Any]]:
    """Average, HR rate and K rate of recent games against a longer baseline."""
    r, b = batting_totals(recent), batting_totals(baseline)
    if r["games"] == 0 or b["games"] == 0:
        return None
    return {
        "avg": _compare(_ratio(r["hits"], r["atBats"]), _ratio(b["hits"], b["atBats"])),
        "homeRuns": _compare(_ratio(r["homeRuns"], r["atBats"]), _ratio(b["homeRuns"], b["atBats"])),
        "strikeoutRate": _compare(
            _ratio(r["strikeouts"], r["atBats"]),
            _ratio(b["strikeouts"], b["atBats"]),
            lower_is_better=True,
        ),
    }


def pitching_trends(
    recent: list[PlayerGameStats], baseline: list[PlayerGameStats]
) -> Optional[dict[str, Any]]:
    """ERA, WHIP and K/9 of recent games against a longer baseline."""
    r, b = pitching_totals(recent), pitching_totals(baseline)
    if r["games"] == 0 or b["games"] == 0:
        return None
    r_ip, b_ip = r["inningsPitched"], b["inningsPitched"]
    return {
        "era": _compare(
            _ratio(r["earnedRuns"] * 9, r_ip), _ratio(b["earnedRuns"] * 9, b_ip), lower_is_better=True
        ),
        "whip": _compare(
            _ratio(r["hits"] + r["walks"], r_ip), _ratio(b["hits"] + b["walks"], b_ip), lower_is_better=True
        ),
        "strikeoutsPerNine": _compare(_ratio(r["strikeouts"] * 9, r_ip), _ratio(b["strikeouts"] * 9, b_ip)),
    }
