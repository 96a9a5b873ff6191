"""Tests for the cache facade and backends."""

import logging

from boxscore_data.cache import CacheBackend, GameCache, InMemoryBackend, create_cache
from boxscore_data.core.config import Settings


class BrokenBackend(CacheBackend):
    def get(self, key):
        raise ConnectionError("backend down")

    def set(self, key, value, ttl):
        raise ConnectionError("backend down")

    def delete(self, key):
        raise ConnectionError("backend down")

    def keys(self, pattern="*"):
        raise ConnectionError("backend down")

    def clear(self):
        pass


class TestInMemoryBackend:
    def test_set_get_delete(self):
        backend = InMemoryBackend()
        backend.set("boxscore:1", {"gameId": "1"}, 60)

        assert backend.get("boxscore:1") == {"gameId": "1"}
        backend.delete("boxscore:1")
        assert backend.get("boxscore:1") is None

    def test_expired_entries_are_misses(self):
        backend = InMemoryBackend()
        backend.set("k", "v", 0)

        assert backend.get("k") is None
        assert backend.keys() == []

    def test_keys_match_pattern(self):
        backend = InMemoryBackend()
        backend.set("scrape_job:a", 1, 60)
        backend.set("scrape_job:b", 2, 60)
        backend.set("boxscore:1", 3, 60)

        assert sorted(backend.keys("scrape_job:*")) == ["scrape_job:a", "scrape_job:b"]


class TestGameCache:
    def test_ttl_minutes_round_trip(self):
        cache = GameCache()
        cache.set("boxscore:games:2024-07-01", ["1", "2"], 1440)

        assert cache.get("boxscore:games:2024-07-01") == ["1", "2"]
        assert cache.exists("boxscore:games:2024-07-01")
        assert cache.get_stats()["hits"] == 2

    def test_backend_failure_degrades_to_miss(self, caplog):
        cache = GameCache(BrokenBackend())

        with caplog.at_level(logging.WARNING):
            cache.set("k", "v", 10)
            assert cache.get("k") is None
            cache.delete("k")
            assert cache.keys() == []

        assert cache.get_stats()["errors"] == 3
        assert "treating as miss" in caplog.text


class TestCreateCache:
    def test_memory_by_default(self):
        cache = create_cache(Settings())
        assert isinstance(cache.backend, InMemoryBackend)

    def test_redis_without_url_falls_back(self):
        cache = create_cache(Settings(cache_backend="redis", redis_url=None))
        assert isinstance(cache.backend, InMemoryBackend)
