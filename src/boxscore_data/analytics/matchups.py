"""
Approximate batter-vs-pitcher matchups from box score lines.

Box scores carry no plate-appearance data, so each pairing is estimated:
the pitcher's batters faced are split across the opposing lineup by share of
at-bats, and the batter's own per-at-bat rates for that game are applied to
the estimated at-bats. Estimates are folded additively into running totals.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.models import BoxScore, MatchupData, PlayerGameStats, matchup_key

logger = logging.getLogger(__name__)

MatchupMatrix = dict[str, MatchupData]


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def _estimate(rate: float, at_bats: int) -> int:
    return max(0, round(rate * at_bats))


def fold_pairing(
    matrix: MatchupMatrix,
    batter: PlayerGameStats,
    pitcher: PlayerGameStats,
    lineup_at_bats: int,
) -> bool:
    """
    Fold one game's estimated batter-vs-pitcher line into the matrix.

    Returns False when the pairing contributes nothing (pitcher faced nobody,
    empty lineup, or the estimate rounds to zero at-bats).
    """
    bat, pitch = batter.batting_stats, pitcher.pitching_stats
    if bat is None or pitch is None:
        return False

    batters_faced = pitch.estimated_batters_faced
    if batters_faced <= 0 or lineup_at_bats <= 0:
        return False

    est_at_bats = round(bat.at_bats / lineup_at_bats * batters_faced)
    if est_at_bats <= 0:
        return False

    hits = min(_estimate(_ratio(bat.hits, bat.at_bats), est_at_bats), est_at_bats)
    home_runs = _estimate(_ratio(bat.home_runs, bat.at_bats), est_at_bats)
    strikeouts = _estimate(_ratio(bat.strikeouts, bat.at_bats), est_at_bats)
    walks = _estimate(_ratio(bat.walks, bat.at_bats), est_at_bats)
    total_bases = max(_estimate(_ratio(bat.total_bases, bat.at_bats), est_at_bats), hits)

    key = matchup_key(batter.player_id, pitcher.player_id)
    entry = matrix.get(key)
    if entry is None:
        entry = MatchupData(batter=batter.player_id, pitcher=pitcher.player_id)
        matrix[key] = entry

    h = entry.matchup_history
    h.at_bats += est_at_bats
    h.hits += hits
    h.home_runs += home_runs
    h.strikeouts += strikeouts
    h.walks += walks
    h.total_bases += total_bases

    h.avg = _ratio(h.hits, h.at_bats)
    h.ops = _ratio(h.hits + h.walks, h.at_bats + h.walks) + _ratio(h.total_bases, h.at_bats)
    if h.last_faced is None or batter.date > h.last_faced:
        h.last_faced = batter.date
    return True


def fold_side(
    matrix: MatchupMatrix,
    batters: list[PlayerGameStats],
    pitchers: list[PlayerGameStats],
    batter_ids: Optional[set[str]] = None,
    pitcher_ids: Optional[set[str]] = None,
) -> int:
    """
    Fold one lineup against the opposing staff.

    The lineup total always covers every batter on the side; the id filters
    only restrict which pairings are written.
    """
    lineup = [b for b in batters if b.batting_stats is not None]
    staff = [p for p in pitchers if p.pitching_stats is not None]
    lineup_at_bats = sum(b.batting_stats.at_bats for b in lineup)

    folded = 0
    for batter in lineup:
        if batter_ids is not None and batter.player_id not in batter_ids:
            continue
        for pitcher in staff:
            if pitcher_ids is not None and pitcher.player_id not in pitcher_ids:
                continue
            if fold_pairing(matrix, batter, pitcher, lineup_at_bats):
                folded += 1
    return folded


def fold_game(
    matrix: MatchupMatrix,
    box: BoxScore,
    batter_ids: Optional[set[str]] = None,
    pitcher_ids: Optional[set[str]] = None,
) -> int:
    """Fold both halves of a game: home bats vs away arms and the reverse."""
    return fold_side(
        matrix, box.home_team_stats, box.away_team_stats, batter_ids, pitcher_ids
    ) + fold_side(matrix, box.away_team_stats, box.home_team_stats, batter_ids, pitcher_ids)


def _game_matches(box: BoxScore, team: Optional[str], opponent: Optional[str]) -> bool:
    info = box.game_info
    if team and opponent:
        return {info.home_team, info.away_team} == {team, opponent}
    if team:
        return info.involves(team)
    if opponent:
        return info.involves(opponent)
    return True


def build_matchup_matrix(
    boxes: Iterable[BoxScore],
    team: Optional[str] = None,
    opponent: Optional[str] = None,
) -> MatchupMatrix:
    """Fresh matrix keyed "{batter}-{pitcher}" over the matching games."""
    matrix: MatchupMatrix = {}
    games = 0
    for box in boxes:
        if _game_matches(box, team, opponent):
            fold_game(matrix, box)
            games += 1
    logger.debug(f"Built matchup matrix from {games} games ({len(matrix)} pairings)")
    return matrix
