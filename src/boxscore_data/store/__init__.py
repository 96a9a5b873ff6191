"""
Game data store.

Usage:
    from boxscore_data.store import GameDataStore

    store = GameDataStore(settings.snapshot_path)
    store.store_box_score(box_score)
    log = store.get_player_game_log("660271", "last30")
"""

from .game_store import GameDataStore, as_date
from .snapshot import SnapshotFile

__all__ = ["GameDataStore", "SnapshotFile", "as_date"]
