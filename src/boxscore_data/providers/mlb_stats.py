"""
MLB Stats API provider.

Discovers games through the public schedule endpoint and normalizes the
per-game boxscore into BoxScore records (https://statsapi.mlb.com/api/v1).
"""

import logging
from datetime import date
from typing import Any, Optional

from ..core.http import BaseApiClient, ExternalAPIError
from ..core.models import (
    BattingStats,
    BoxScore,
    FieldingStats,
    GameEvent,
    GameInfo,
    PitchingStats,
    PlayerGameStats,
)
from ..core.types import GameStatus
from .base import BoxScoreProvider, NetworkError, ParseError

logger = logging.getLogger(__name__)


# =============================================================================
# Field helpers
# =============================================================================


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_innings(value: Any) -> float:
    """
    Convert box score innings notation to true innings.

    The decimal digit counts outs, so "5.2" is 5 2/3 innings.
    """
    if value is None or value == "":
        return 0.0
    text = str(value)
    whole, _, outs = text.partition(".")
    try:
        innings = int(whole or 0)
        extra_outs = int(outs[:1] or 0)
    except ValueError:
        return 0.0
    return round(innings + extra_outs / 3, 3)


def _rate(numerator: float, denominator: float, scale: float = 1.0, digits: int = 3) -> float:
    return round(numerator / denominator * scale, digits) if denominator else 0.0


def map_game_status(status: dict[str, Any]) -> GameStatus:
    detailed = (status.get("detailedState") or "").lower()
    if "postponed" in detailed or "cancelled" in detailed:
        return GameStatus.postponed
    abstract = status.get("abstractGameState")
    if abstract == "Final":
        return GameStatus.final
    if abstract == "Live":
        return GameStatus.live
    return GameStatus.scheduled


def _team_code(team: dict[str, Any]) -> str:
    return team.get("abbreviation") or team.get("teamName") or team.get("name") or str(team.get("id", ""))


# =============================================================================
# Stat line mapping
# =============================================================================


def map_batting(raw: dict[str, Any]) -> Optional[BattingStats]:
    if not raw:
        return None
    at_bats = _to_int(raw.get("atBats"))
    hits = _to_int(raw.get("hits"))
    walks = _to_int(raw.get("baseOnBalls"))
    hbp = _to_int(raw.get("hitByPitch"))
    sac_flies = _to_int(raw.get("sacFlies"))
    doubles = _to_int(raw.get("doubles"))
    triples = _to_int(raw.get("triples"))
    home_runs = _to_int(raw.get("homeRuns"))
    total_bases = hits + doubles + 2 * triples + 3 * home_runs

    obp = _rate(hits + walks + hbp, at_bats + walks + hbp + sac_flies)
    slg = _rate(total_bases, at_bats)
    return BattingStats(
        at_bats=at_bats,
        runs=_to_int(raw.get("runs")),
        hits=hits,
        rbi=_to_int(raw.get("rbi")),
        walks=walks,
        strikeouts=_to_int(raw.get("strikeOuts")),
        avg=_rate(hits, at_bats),
        obp=obp,
        slg=slg,
        ops=round(obp + slg, 3),
        doubles=doubles,
        triples=triples,
        home_runs=home_runs,
        stolen_bases=_to_int(raw.get("stolenBases")),
        caught_stealing=_to_int(raw.get("caughtStealing")),
        hit_by_pitch=hbp,
        sacrifices=_to_int(raw.get("sacBunts")) + sac_flies,
        ground_into_double_play=_to_int(raw.get("groundIntoDoublePlay")),
        left_on_base=_to_int(raw.get("leftOnBase")),
    )


def map_pitching(raw: dict[str, Any]) -> Optional[PitchingStats]:
    if not raw:
        return None
    innings = parse_innings(raw.get("inningsPitched"))
    hits = _to_int(raw.get("hits"))
    walks = _to_int(raw.get("baseOnBalls"))
    earned_runs = _to_int(raw.get("earnedRuns"))
    pitches = _to_int(raw.get("numberOfPitches") or raw.get("pitchesThrown"))
    strikes = _to_int(raw.get("strikes"))
    return PitchingStats(
        innings_pitched=innings,
        hits=hits,
        runs=_to_int(raw.get("runs")),
        earned_runs=earned_runs,
        walks=walks,
        strikeouts=_to_int(raw.get("strikeOuts")),
        home_runs=_to_int(raw.get("homeRuns")),
        era=_rate(earned_runs, innings, 9, 2),
        whip=_rate(hits + walks, innings, 1, 2),
        pitch_count=pitches,
        strikes=strikes,
        balls=_to_int(raw.get("balls")) or max(pitches - strikes, 0),
        ground_balls=_to_int(raw.get("groundOuts")),
        fly_balls=_to_int(raw.get("flyOuts") or raw.get("airOuts")),
        pop_ups=_to_int(raw.get("popOuts")),
        line_outs=_to_int(raw.get("lineOuts")),
    )


def map_fielding(raw: dict[str, Any], position: str) -> Optional[FieldingStats]:
    if not raw:
        return None
    put_outs = _to_int(raw.get("putOuts"))
    assists = _to_int(raw.get("assists"))
    errors = _to_int(raw.get("errors"))
    is_catcher = position == "C"
    return FieldingStats(
        position=position,
        put_outs=put_outs,
        assists=assists,
        errors=errors,
        chances=_to_int(raw.get("chances")) or put_outs + assists + errors,
        fielding_percentage=_to_float(raw.get("fielding")),
        passed_balls=_to_int(raw.get("passedBall")) if is_catcher else None,
        stolen_bases_allowed=_to_int(raw.get("stolenBases")) if is_catcher else None,
        caught_stealing=_to_int(raw.get("caughtStealing")) if is_catcher else None,
    )


# =============================================================================
# Provider
# =============================================================================


class MLBStatsProvider(BaseApiClient, BoxScoreProvider):
    """MLB Stats API box score provider."""

    BASE_URL = "https://statsapi.mlb.com/api/v1"
    name = "mlb_stats"

    def __init__(
        self,
        base_url: str | None = None,
        requests_per_minute: int = 120,
        timeout: float = 30.0,
        max_retries: int = 3,
        include_events: bool = True,
    ):
        super().__init__(
            base_url=base_url,
            requests_per_minute=requests_per_minute,
            timeout=timeout,
            max_retries=max_retries,
        )
        self.include_events = include_events

    async def _get_or_raise(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            return await self._get(path, params)
        except ExternalAPIError as e:
            raise NetworkError(e.message, status_code=e.status_code) from e

    # =========================================================================
    # Discovery
    # =========================================================================

    async def discover_games(self, day: date) -> list[GameInfo]:
        payload = await self._get_or_raise(
            "/schedule",
            {"sportId": 1, "date": day.isoformat(), "hydrate": "team,linescore"},
        )
        return self._parse_schedule(payload)

    def _parse_schedule(self, payload: dict[str, Any]) -> list[GameInfo]:
        if not isinstance(payload, dict) or not isinstance(payload.get("dates", []), list):
            raise ParseError("Schedule payload has no 'dates' list")

        games: list[GameInfo] = []
        for day in payload.get("dates", []):
            for game in day.get("games", []):
                info = self._parse_schedule_game(game, day.get("date"))
                if info is not None:
                    games.append(info)
        return games

    def _parse_schedule_game(self, game: dict[str, Any], fallback_date: str | None) -> Optional[GameInfo]:
        game_pk = game.get("gamePk")
        if game_pk is None:
            logger.warning("Schedule entry without gamePk skipped")
            return None
        teams = game.get("teams", {})
        home = teams.get("home", {})
        away = teams.get("away", {})
        linescore = game.get("linescore") or {}
        return GameInfo(
            game_id=str(game_pk),
            date=game.get("officialDate") or fallback_date or (game.get("gameDate") or "")[:10],
            home_team=_team_code(home.get("team", {})),
            away_team=_team_code(away.get("team", {})),
            home_score=_to_int(home.get("score")),
            away_score=_to_int(away.get("score")),
            status=map_game_status(game.get("status", {})),
            inning=linescore.get("currentInningOrdinal"),
        )

    # =========================================================================
    # Box scores
    # =========================================================================

    async def fetch_box_score(self, game_id: str) -> Optional[BoxScore]:
        schedule = await self._get_or_raise(
            "/schedule", {"sportId": 1, "gamePk": game_id, "hydrate": "team,linescore"}
        )
        infos = self._parse_schedule(schedule)
        if not infos:
            logger.info(f"Game {game_id} not found in schedule")
            return None
        info = infos[0]

        try:
            boxscore = await self._get(f"/game/{game_id}/boxscore")
        except ExternalAPIError as e:
            if e.status_code == 404:
                logger.info(f"No boxscore yet for game {game_id}")
                return None
            raise NetworkError(e.message, status_code=e.status_code) from e

        teams = boxscore.get("teams") if isinstance(boxscore, dict) else None
        if not isinstance(teams, dict) or "home" not in teams or "away" not in teams:
            raise ParseError(f"Boxscore for game {game_id} has no home/away teams")

        events: list[GameEvent] = []
        if self.include_events:
            events = await self._fetch_events(game_id)

        return BoxScore(
            game_info=info,
            home_team_stats=self._parse_team_players(teams["home"], info, is_home=True),
            away_team_stats=self._parse_team_players(teams["away"], info, is_home=False),
            game_events=events,
        )

    def _parse_team_players(
        self, team: dict[str, Any], info: GameInfo, is_home: bool
    ) -> list[PlayerGameStats]:
        team_code = info.home_team if is_home else info.away_team
        opponent = info.away_team if is_home else info.home_team
        records: list[PlayerGameStats] = []

        for player in (team.get("players") or {}).values():
            person = player.get("person", {})
            if "id" not in person:
                continue
            stats = player.get("stats") or {}
            position = (player.get("position") or {}).get("abbreviation", "")
            batting = map_batting(stats.get("batting") or {})
            pitching = map_pitching(stats.get("pitching") or {})
            if batting is None and pitching is None:
                # Bench players who never appeared
                continue
            records.append(
                PlayerGameStats(
                    player_id=str(person["id"]),
                    player_name=person.get("fullName", ""),
                    team=team_code,
                    game_id=info.game_id,
                    date=info.date,
                    opponent=opponent,
                    is_home=is_home,
                    batting_stats=batting,
                    pitching_stats=pitching,
                    fielding_stats=map_fielding(stats.get("fielding") or {}, position),
                )
            )
        return records

    async def _fetch_events(self, game_id: str) -> list[GameEvent]:
        """Play-by-play is best effort; a failure leaves the event list empty."""
        try:
            payload = await self._get(f"/game/{game_id}/playByPlay")
        except ExternalAPIError as e:
            logger.warning(f"Play-by-play unavailable for game {game_id}: {e.message}")
            return []

        events = []
        for play in payload.get("allPlays", []):
            about = play.get("about", {})
            count = play.get("count", {})
            result = play.get("result", {})
            matchup = play.get("matchup", {})
            events.append(
                GameEvent(
                    inning=_to_int(about.get("inning")),
                    top_bottom="top" if about.get("isTopInning", True) else "bottom",
                    outs=_to_int(count.get("outs")),
                    balls=_to_int(count.get("balls")),
                    strikes=_to_int(count.get("strikes")),
                    description=result.get("description", ""),
                    batter=str((matchup.get("batter") or {}).get("id", "")),
                    pitcher=str((matchup.get("pitcher") or {}).get("id", "")),
                    result=result.get("event", ""),
                    timestamp=about.get("startTime"),
                )
            )
        return events
