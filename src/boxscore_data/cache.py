"""
Key-value cache for box scores, discovered game lists and scrape jobs.

Values are plain JSON-compatible structures (dicts, lists, strings). TTLs are
given in minutes:
- Final box scores: 7 days
- Live/scheduled box scores: 10 minutes
- Discovered game lists: 24 hours
- Scrape job snapshots: 7 days

A failing backend never fails the caller: errors are logged and reads
degrade to a miss.
"""

from __future__ import annotations

import fnmatch
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import msgspec

from .core.config import Settings

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """Abstract base class for cache backends. TTLs are in seconds."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def keys(self, pattern: str = "*") -> list[str]:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class InMemoryBackend(CacheBackend):
    """Thread-safe in-memory backend with lazy expiry."""

    MAX_ENTRIES = 50_000

    def __init__(self):
        self._cache: dict[str, tuple[Any, datetime]] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            value, expiry = entry
            if datetime.now(tz=timezone.utc) >= expiry:
                del self._cache[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        expiry = datetime.now(tz=timezone.utc) + timedelta(seconds=ttl)
        with self._lock:
            if len(self._cache) >= self.MAX_ENTRIES and key not in self._cache:
                self._evict_expired_locked()
                if len(self._cache) >= self.MAX_ENTRIES:
                    del self._cache[next(iter(self._cache))]
            self._cache[key] = (value, expiry)

    def _evict_expired_locked(self) -> None:
        now = datetime.now(tz=timezone.utc)
        for k in [k for k, (_, exp) in self._cache.items() if now >= exp]:
            del self._cache[k]

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def keys(self, pattern: str = "*") -> list[str]:
        now = datetime.now(tz=timezone.utc)
        with self._lock:
            return [
                k
                for k, (_, exp) in self._cache.items()
                if now < exp and fnmatch.fnmatch(k, pattern)
            ]

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class RedisBackend(CacheBackend):
    """Redis backend. Values are stored as msgspec-encoded JSON."""

    def __init__(self, url: str, prefix: str = "boxscore-data:"):
        try:
            import redis

            self._redis = redis.from_url(url, decode_responses=False)
            self._prefix = prefix
            self._redis.ping()
            logger.info("Redis cache backend connected")
        except Exception as e:
            logger.warning(f"Redis connection failed: {e}")
            raise

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self._redis.get(self._key(key))
            if data:
                return msgspec.json.decode(data)
        except Exception as e:
            logger.warning(f"Redis get error for {key}: {e}")
        return None

    def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            self._redis.setex(self._key(key), ttl, msgspec.json.encode(value))
        except Exception as e:
            logger.warning(f"Redis set error for {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(self._key(key))
        except Exception as e:
            logger.warning(f"Redis delete error for {key}: {e}")

    def keys(self, pattern: str = "*") -> list[str]:
        try:
            prefix_len = len(self._prefix)
            return [
                (k.decode() if isinstance(k, bytes) else k)[prefix_len:]
                for k in self._redis.keys(f"{self._prefix}{pattern}")
            ]
        except Exception as e:
            logger.warning(f"Redis keys error: {e}")
            return []

    def clear(self) -> None:
        try:
            keys = self._redis.keys(f"{self._prefix}*")
            if keys:
                self._redis.delete(*keys)
        except Exception as e:
            logger.warning(f"Redis clear error: {e}")


class GameCache:
    """
    Cache facade used by the orchestrator.

    Wraps a backend, converts minute TTLs to seconds and keeps hit/miss
    counters. Backend failures surface as misses.
    """

    def __init__(self, backend: Optional[CacheBackend] = None):
        self._backend = backend or InMemoryBackend()
        self._stats = {"hits": 0, "misses": 0, "errors": 0}

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self._backend.get(key)
        except Exception as e:
            self._stats["errors"] += 1
            logger.warning(f"Cache get failed for {key}, treating as miss: {e}")
            value = None
        self._stats["hits" if value is not None else "misses"] += 1
        return value

    def set(self, key: str, value: Any, ttl_minutes: int) -> None:
        try:
            self._backend.set(key, value, int(ttl_minutes * 60))
        except Exception as e:
            self._stats["errors"] += 1
            logger.warning(f"Cache set failed for {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._backend.delete(key)
        except Exception as e:
            self._stats["errors"] += 1
            logger.warning(f"Cache delete failed for {key}: {e}")

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def keys(self, pattern: str = "*") -> list[str]:
        try:
            return self._backend.keys(pattern)
        except Exception as e:
            logger.warning(f"Cache keys failed for {pattern}: {e}")
            return []

    def clear(self) -> None:
        self._backend.clear()

    def get_stats(self) -> dict[str, Any]:
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0
        return {
            **self._stats,
            "hit_rate_pct": round(hit_rate, 2),
            "backend": type(self._backend).__name__,
        }


def create_cache(settings: Settings) -> GameCache:
    """Build the cache from settings, falling back to memory if Redis is down."""
    if settings.cache_backend == "redis" and settings.redis_url:
        try:
            return GameCache(RedisBackend(settings.redis_url, prefix=settings.cache_prefix))
        except Exception:
            logger.info("Redis unavailable, using in-memory cache")
    elif settings.cache_backend == "redis":
        logger.info("No redis_url configured, using in-memory cache")
    return GameCache(InMemoryBackend())
