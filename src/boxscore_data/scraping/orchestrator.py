"""
Bulk scrape orchestration.

A scrape job runs three phases in a background task:

1. Discovery: ask the provider for each day's games (per-day lists are cached)
2. Filtering: drop games whose box score is already cached, unless forced
3. Batched fetch: fixed-size concurrent batches with a pause between them

Per-day and per-game failures are counted in the job's progress; only an
unexpected error in the phase loop itself fails the job.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Optional

from ..cache import GameCache
from ..core.config import Settings, get_settings
from ..core.errors import ValidationError
from ..core.models import ScrapeJob
from ..core.types import JobStatus, boxscore_key, discovered_games_key
from ..providers.base import BoxScoreProvider
from ..store.game_store import GameDataStore, as_date
from .jobs import JobRegistry

logger = logging.getLogger(__name__)

RECENT_JOBS_FOR_STATUS = 5


def date_range(start: date, end: date) -> list[date]:
    """Inclusive list of days from start to end."""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


class ScrapeOrchestrator:
    """
    Drives bulk scrapes from a provider into the store.

    Args:
        provider: Box score source
        store: Destination for fetched box scores
        cache: Cache for discovered games, box scores and job snapshots
        registry: Job table; built on the cache when omitted
        settings: Batch sizing, delays, timeouts and TTLs
        today: Clock used for "today", backfill and status
    """

    def __init__(
        self,
        provider: BoxScoreProvider,
        store: GameDataStore,
        cache: GameCache,
        registry: Optional[JobRegistry] = None,
        settings: Optional[Settings] = None,
        today: Callable[[], date] = date.today,
    ):
        self.provider = provider
        self.store = store
        self.cache = cache
        self.settings = settings or get_settings()
        self.registry = registry or JobRegistry(cache, ttl_minutes=self.settings.ttl_scrape_job_minutes)
        self._today = today
        self._tasks: dict[str, asyncio.Task] = {}

    # =========================================================================
    # Job entry points
    # =========================================================================

    async def bulk_scrape_games(
        self,
        start_date: date | str,
        end_date: date | str,
        force_refresh: bool = False,
    ) -> str:
        """
        Register a scrape job for an inclusive date range and start it.

        Returns the job id immediately; the work runs in a background task.

        Raises:
            ValidationError: start_date is after end_date or not a date
        """
        try:
            start, end = as_date(start_date), as_date(end_date)
        except ValueError as e:
            raise ValidationError("Dates must be YYYY-MM-DD", str(e)) from e
        if start > end:
            raise ValidationError(
                "start_date must not be after end_date",
                f"{start.isoformat()} > {end.isoformat()}",
            )

        job = self.registry.create(start, end, force_refresh)
        task = asyncio.create_task(self._run_job(job), name=f"scrape-{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda _t, job_id=job.id: self._tasks.pop(job_id, None))

        logger.info(
            f"Queued scrape job {job.id} for {start.isoformat()}..{end.isoformat()}"
            f"{' (force refresh)' if force_refresh else ''}"
        )
        return job.id

    async def discover_and_scrape_today(self) -> str:
        today = self._today()
        return await self.bulk_scrape_games(today, today)

    async def backfill_missing_games(self, days: Optional[int] = None) -> str:
        """Re-run the last N days (default from settings); cached games are skipped."""
        days = days if days is not None else self.settings.backfill_days
        end = self._today()
        start = end - timedelta(days=days)
        logger.info(f"Backfilling games from {start.isoformat()} to {end.isoformat()}")
        return await self.bulk_scrape_games(start, end, force_refresh=False)

    async def scrape_season(self, year: int) -> str:
        start = date.fromisoformat(f"{year}-{self.settings.season_start}")
        end = date.fromisoformat(f"{year}-{self.settings.season_end}")
        logger.info(f"Initiating full season scrape for {year}")
        return await self.bulk_scrape_games(start, end, force_refresh=False)

    async def wait_for_job(self, job_id: str) -> Optional[dict[str, Any]]:
        """Wait for a job's background task, then return its final status."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self.get_job_status(job_id)

    # =========================================================================
    # Job execution
    # =========================================================================

    async def _run_job(self, job: ScrapeJob) -> None:
        """Phase loop. Never raises; the outcome is written into the job."""
        job.status = JobStatus.running
        self.registry.save(job)
        try:
            game_ids = await self._discover(job)
            job.progress.total = len(game_ids)
            self.registry.save(job)

            pending = game_ids if job.force_refresh else self._filter_cached(job, game_ids)
            await self._fetch_in_batches(job, pending)

            job.status = JobStatus.completed
            logger.info(
                f"Job {job.id} completed: {job.progress.completed} stored, "
                f"{job.progress.failed} failed, {job.progress.skipped} skipped "
                f"of {job.progress.total}"
            )
        except asyncio.CancelledError:
            job.status = JobStatus.failed
            job.error = "Job cancelled"
            logger.warning(f"Job {job.id} cancelled")
            raise
        except Exception as e:
            job.status = JobStatus.failed
            job.error = str(e) or type(e).__name__
            logger.error(f"Bulk scrape job {job.id} failed: {job.error}", exc_info=True)
        finally:
            job.end_time = datetime.now(tz=timezone.utc)
            self.registry.save(job)

    async def _discover(self, job: ScrapeJob) -> list[str]:
        game_ids: list[str] = []
        for day in date_range(job.start_date, job.end_date):
            key = discovered_games_key(day.isoformat())
            cached = self.cache.get(key)
            if cached:
                game_ids.extend(str(g) for g in cached)
                continue
            try:
                games = await asyncio.wait_for(
                    self.provider.discover_games(day),
                    timeout=self.settings.fetch_timeout_seconds,
                )
            except Exception as e:
                job.progress.failed_days += 1
                logger.warning(f"Discovery failed for {day.isoformat()}: {e!r}")
                continue

            day_ids = [g.game_id for g in games]
            if day_ids:
                self.cache.set(key, day_ids, self.settings.ttl_discovered_games_minutes)
            game_ids.extend(day_ids)
            logger.debug(f"Discovered {len(day_ids)} games on {day.isoformat()}")

        # Same game can be listed on two days (suspended/resumed)
        return list(dict.fromkeys(game_ids))

    def _filter_cached(self, job: ScrapeJob, game_ids: list[str]) -> list[str]:
        pending = [gid for gid in game_ids if self.cache.get(boxscore_key(gid)) is None]
        job.progress.skipped = len(game_ids) - len(pending)
        if job.progress.skipped:
            logger.info(f"Job {job.id}: skipping {job.progress.skipped} already cached games")
        return pending

    async def _fetch_in_batches(self, job: ScrapeJob, game_ids: list[str]) -> None:
        size = self.settings.scrape_batch_size
        for start in range(0, len(game_ids), size):
            batch = game_ids[start:start + size]
            results = await asyncio.gather(
                *(self._scrape_game(gid) for gid in batch),
                return_exceptions=True,
            )
            for gid, result in zip(batch, results):
                if result is True:
                    job.progress.completed += 1
                else:
                    job.progress.failed += 1
                    if isinstance(result, BaseException):
                        logger.warning(f"Game {gid} failed: {result!r}")
            self.registry.save(job)

            is_last = start + size >= len(game_ids)
            if not is_last and self.settings.scrape_batch_delay_seconds > 0:
                await asyncio.sleep(self.settings.scrape_batch_delay_seconds)

    async def _scrape_game(self, game_id: str) -> bool:
        """Fetch, store and cache one game. False when there is no box score."""
        box = await asyncio.wait_for(
            self.provider.fetch_box_score(game_id),
            timeout=self.settings.fetch_timeout_seconds,
        )
        if box is None:
            logger.info(f"No box score returned for game {game_id}")
            return False

        stored = await asyncio.to_thread(self.store.store_box_score, box)
        ttl = (
            self.settings.ttl_final_game_minutes
            if stored.game_info.is_final
            else self.settings.ttl_live_game_minutes
        )
        self.cache.set(boxscore_key(game_id), stored.to_dict(), ttl)
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    def get_job_status(self, job_id: str) -> Optional[dict[str, Any]]:
        job = self.registry.get(job_id)
        return job.to_dict() if job else None

    def get_active_jobs(self) -> list[dict[str, Any]]:
        return [job.to_dict() for job in self.registry.active()]

    def get_job_history(self, limit: int = 10) -> list[dict[str, Any]]:
        return [job.to_dict() for job in self.registry.history(limit)]

    def get_status(self, scheduler_status: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Service summary: job counts, recent success rate and data coverage."""
        active = self.registry.active()
        recent = self.registry.history(RECENT_JOBS_FOR_STATUS)
        completed = sum(1 for job in recent if job.status == JobStatus.completed)
        success_rate = round(completed / len(recent) * 100) if recent else 100

        service: dict[str, Any] = {"status": "active" if active else "idle"}
        if scheduler_status is not None:
            service.update(scheduler_status)

        return {
            "service": service,
            "jobs": {
                "active": len(active),
                "queued": sum(1 for job in active if job.status == JobStatus.queued),
                "running": sum(1 for job in active if job.status == JobStatus.running),
                "totalJobsInMemory": self.registry.in_memory_count(),
                "recentSuccessRate": f"{success_rate}%",
                "recentJobs": [
                    {
                        "id": job.id,
                        "status": job.status.value,
                        "dateRange": f"{job.start_date.isoformat()} to {job.end_date.isoformat()}",
                        "completedGames": job.progress.completed,
                        "totalGames": job.progress.total,
                    }
                    for job in recent
                ],
            },
            "data": self.store.get_data_info(),
        }
