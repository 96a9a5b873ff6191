"""
In-memory game data store with multi-key indices.

Box scores are indexed four ways:
- gamesById: game id -> BoxScore (player lists hold the merged records)
- gamesByDate: date -> GameInfo list
- gamesByTeam: team code -> GameInfo list
- gamesByPlayer: player id -> PlayerGameStats list, newest first

Every write goes through store_box_score, which updates all indices and
rewrites the snapshot inside one lock.
"""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from ..core.models import BoxScore, GameInfo, PlayerGameStats
from ..core.types import (
    SEASON_START_DAY,
    SEASON_START_MONTH,
    TIMEFRAME_DAYS,
    Timeframe,
    parse_timeframe,
)
from .snapshot import SnapshotFile

logger = logging.getLogger(__name__)


def as_date(value: date | str) -> date:
    """Accept a date or an ISO "YYYY-MM-DD" string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _newest_first(records: list[PlayerGameStats]) -> None:
    records.sort(key=lambda r: (r.date, r.game_id), reverse=True)


class GameDataStore:
    """
    Indexed box score storage.

    Args:
        snapshot_path: JSON snapshot location; None keeps the store in memory only
        today: Clock used to anchor timeframes
    """

    def __init__(
        self,
        snapshot_path: Path | str | None = None,
        today: Callable[[], date] = date.today,
    ):
        self._lock = threading.RLock()
        self._today = today
        self._snapshot = SnapshotFile(snapshot_path) if snapshot_path else None

        self._games_by_id: dict[str, BoxScore] = {}
        self._games_by_date: dict[date, list[GameInfo]] = {}
        self._games_by_team: dict[str, list[GameInfo]] = {}
        self._games_by_player: dict[str, list[PlayerGameStats]] = {}
        self._last_updated: Optional[datetime] = None

        if self._snapshot is not None:
            self._load_snapshot()

    # =========================================================================
    # Writes
    # =========================================================================

    def store_box_score(self, box_score: BoxScore) -> BoxScore:
        """
        Upsert a box score into every index and persist the snapshot.

        The input is copied, so later changes to it do not reach the indices.
        Returns the stored box score, whose team lists are the merged player
        records. Models returned by the store are shared with its indices and
        must be treated as read-only.
        """
        box_score = box_score.model_copy(deep=True)
        with self._lock:
            stored = self._upsert_locked(box_score)
            self._last_updated = datetime.now(tz=timezone.utc)
            self._save_snapshot_locked()
        logger.debug(f"Stored game {stored.game_id} ({len(stored.all_player_stats)} players)")
        return stored

    def _upsert_locked(self, box_score: BoxScore) -> BoxScore:
        info = box_score.game_info
        game_id = info.game_id
        previous = self._games_by_id.get(game_id)

        if previous is not None:
            old = previous.game_info
            if old.date != info.date:
                self._remove_info(self._games_by_date, old.date, game_id)
            for team in (old.home_team, old.away_team):
                if not info.involves(team):
                    self._remove_info(self._games_by_team, team, game_id)

        self._replace_info(self._games_by_date.setdefault(info.date, []), info)
        for team in (info.home_team, info.away_team):
            self._replace_info(self._games_by_team.setdefault(team, []), info)

        home = self._merge_side(previous.home_team_stats if previous else [], box_score.home_team_stats, info)
        away = self._merge_side(previous.away_team_stats if previous else [], box_score.away_team_stats, info)

        stored = BoxScore(
            game_info=info,
            home_team_stats=home,
            away_team_stats=away,
            game_events=list(box_score.game_events),
        )
        self._games_by_id[game_id] = stored
        return stored

    def _merge_side(
        self,
        previous: list[PlayerGameStats],
        incoming: list[PlayerGameStats],
        info: GameInfo,
    ) -> list[PlayerGameStats]:
        # One record per player; a repeat replaces the earlier entry in place
        merged: dict[str, PlayerGameStats] = {}
        for record in incoming:
            merged[record.player_id] = self._upsert_player(record)
        # Players only present in an earlier ingestion stay attached to the game
        for kept in previous:
            if kept.player_id not in merged:
                if kept.date != info.date:
                    kept = self._upsert_player(kept.model_copy(update={"date": info.date}))
                merged[kept.player_id] = kept
        return list(merged.values())

    def _upsert_player(self, record: PlayerGameStats) -> PlayerGameStats:
        records = self._games_by_player.setdefault(record.player_id, [])
        for i, existing in enumerate(records):
            if existing.game_id == record.game_id:
                merged = existing.merged_with(record)
                records[i] = merged
                break
        else:
            merged = record
            records.append(merged)
        _newest_first(records)
        return merged

    @staticmethod
    def _replace_info(bucket: list[GameInfo], info: GameInfo) -> None:
        for i, existing in enumerate(bucket):
            if existing.game_id == info.game_id:
                bucket[i] = info
                return
        bucket.append(info)

    @staticmethod
    def _remove_info(index: dict[Any, list[GameInfo]], key: Any, game_id: str) -> None:
        bucket = index.get(key)
        if bucket is None:
            return
        bucket[:] = [g for g in bucket if g.game_id != game_id]
        if not bucket:
            del index[key]

    # =========================================================================
    # Persistence
    # =========================================================================

    def _save_snapshot_locked(self) -> None:
        if self._snapshot is None:
            return
        payload = {
            "gamesById": {gid: box.to_dict() for gid, box in self._games_by_id.items()},
            "lastUpdated": self._last_updated.isoformat() if self._last_updated else None,
        }
        try:
            self._snapshot.save(payload)
        except OSError as e:
            logger.error(f"Failed to write snapshot {self._snapshot.path}: {e}")

    def _load_snapshot(self) -> None:
        data = self._snapshot.load()
        if not data:
            return
        games = data.get("gamesById") or {}
        loaded = 0
        with self._lock:
            for game_id, raw in games.items():
                try:
                    self._upsert_locked(BoxScore.model_validate(raw))
                    loaded += 1
                except PydanticValidationError as e:
                    logger.warning(f"Skipping malformed game {game_id} in snapshot: {e}")
            last_updated = data.get("lastUpdated")
            self._last_updated = datetime.fromisoformat(last_updated) if last_updated else None
        logger.info(f"Loaded {loaded} games from {self._snapshot.path}")

    # =========================================================================
    # Queries
    # =========================================================================

    def _cutoff(self, timeframe: Optional[Timeframe]) -> Optional[date]:
        if timeframe is None:
            return None
        today = self._today()
        if timeframe == Timeframe.season:
            return date(today.year, SEASON_START_MONTH, SEASON_START_DAY)
        return today - timedelta(days=TIMEFRAME_DAYS[timeframe])

    def get_player_game_log(
        self, player_id: str, timeframe: Timeframe | str | None = None
    ) -> list[PlayerGameStats]:
        """Player's records newest first; unknown or missing timeframe returns everything."""
        cutoff = self._cutoff(parse_timeframe(timeframe))
        with self._lock:
            records = list(self._games_by_player.get(player_id, []))
        if cutoff is None:
            return records
        return [r for r in records if r.date >= cutoff]

    def get_team_games(
        self, team_code: str, timeframe: Timeframe | str | None = None
    ) -> list[GameInfo]:
        cutoff = self._cutoff(parse_timeframe(timeframe))
        with self._lock:
            games = list(self._games_by_team.get(team_code, []))
        if cutoff is not None:
            games = [g for g in games if g.date >= cutoff]
        return sorted(games, key=lambda g: (g.date, g.game_id), reverse=True)

    def get_games_by_date_range(self, start: date | str, end: date | str) -> list[GameInfo]:
        start_d, end_d = as_date(start), as_date(end)
        with self._lock:
            games = [
                info
                for day, bucket in self._games_by_date.items()
                if start_d <= day <= end_d
                for info in bucket
            ]
        return sorted(games, key=lambda g: (g.date, g.game_id), reverse=True)

    def get_batter_vs_pitcher_history(self, batter_id: str, pitcher_id: str) -> list[PlayerGameStats]:
        """Batter's records from games the pitcher also appeared in."""
        with self._lock:
            pitcher_games = {r.game_id for r in self._games_by_player.get(pitcher_id, [])}
            return [r for r in self._games_by_player.get(batter_id, []) if r.game_id in pitcher_games]

    def get_player_vs_team(self, player_id: str, opponent: str) -> list[PlayerGameStats]:
        with self._lock:
            return [r for r in self._games_by_player.get(player_id, []) if r.opponent == opponent]

    def get_box_score(self, game_id: str) -> Optional[BoxScore]:
        with self._lock:
            return self._games_by_id.get(game_id)

    def get_all_box_scores(self) -> list[BoxScore]:
        with self._lock:
            boxes = list(self._games_by_id.values())
        return sorted(boxes, key=lambda b: (b.game_info.date, b.game_id), reverse=True)

    def has_player(self, player_id: str) -> bool:
        with self._lock:
            return bool(self._games_by_player.get(player_id))

    def get_data_info(self) -> dict[str, Any]:
        with self._lock:
            most_recent = max(self._games_by_date) if self._games_by_date else None
            return {
                "totalGames": len(self._games_by_id),
                "totalPlayers": len(self._games_by_player),
                "totalTeams": len(self._games_by_team),
                "mostRecentGame": most_recent.isoformat() if most_recent else None,
                "lastUpdated": self._last_updated.isoformat() if self._last_updated else None,
                "dataPath": str(self._snapshot.path) if self._snapshot else None,
            }
