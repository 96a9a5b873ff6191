"""
Scrape job registry.

Jobs live in memory while the process runs and are snapshotted into the
cache under scrape_job:{id} on every state change, so status lookups still
answer after a restart (until the cache entry expires).
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from ..cache import GameCache
from ..core.models import ScrapeJob
from ..core.types import SCRAPE_JOB_KEY_PREFIX, scrape_job_key

logger = logging.getLogger(__name__)


def new_job_id() -> str:
    """bulk_{epoch millis}_{random suffix}"""
    return f"bulk_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class JobRegistry:
    """In-memory job table backed by the cache."""

    def __init__(self, cache: GameCache, ttl_minutes: int = 10080):
        self.cache = cache
        self.ttl_minutes = ttl_minutes
        self._jobs: dict[str, ScrapeJob] = {}

    def create(self, start_date: date, end_date: date, force_refresh: bool = False) -> ScrapeJob:
        job = ScrapeJob(
            id=new_job_id(),
            start_date=start_date,
            end_date=end_date,
            force_refresh=force_refresh,
            start_time=datetime.now(tz=timezone.utc),
        )
        self._jobs[job.id] = job
        self.save(job)
        return job

    def save(self, job: ScrapeJob) -> None:
        job.last_update = datetime.now(tz=timezone.utc)
        self.cache.set(scrape_job_key(job.id), job.to_dict(), self.ttl_minutes)

    def get(self, job_id: str) -> Optional[ScrapeJob]:
        job = self._jobs.get(job_id)
        if job is not None:
            return job
        return self._load(job_id)

    def _load(self, job_id: str) -> Optional[ScrapeJob]:
        raw = self.cache.get(scrape_job_key(job_id))
        if raw is None:
            return None
        try:
            return ScrapeJob.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning(f"Discarding malformed cached job {job_id}: {e}")
            return None

    def active(self) -> list[ScrapeJob]:
        return [job for job in self._jobs.values() if job.is_active]

    def in_memory_count(self) -> int:
        return len(self._jobs)

    def history(self, limit: int = 10) -> list[ScrapeJob]:
        """Most recent jobs first, including ones only left in the cache."""
        jobs = dict(self._jobs)
        for key in self.cache.keys(f"{SCRAPE_JOB_KEY_PREFIX}*"):
            job_id = key[len(SCRAPE_JOB_KEY_PREFIX):]
            if job_id not in jobs:
                cached = self._load(job_id)
                if cached is not None:
                    jobs[job_id] = cached
        ordered = sorted(jobs.values(), key=lambda j: j.start_time, reverse=True)
        return ordered[:limit]
