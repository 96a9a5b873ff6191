"""
Periodic scrape scheduler.

Jobs:
- daily_discovery: discover and scrape today's games (daily, 06:00)
- weekly_backfill: re-run the last week for missed games (Sunday, 02:00)

Pausing only stops the loops from starting new scrape jobs; jobs already
running are left alone.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from ..core.config import Settings, get_settings
from .orchestrator import ScrapeOrchestrator

logger = logging.getLogger(__name__)


def next_daily_run(now: datetime, hour: int) -> datetime:
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def next_weekly_run(now: datetime, weekday: int, hour: int) -> datetime:
    """Next occurrence of weekday (0=Monday) at hour:00, strictly after now."""
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    candidate += timedelta(days=(weekday - now.weekday()) % 7)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


@dataclass
class ScheduledJob:
    """A named trigger and how to compute its next run."""

    name: str
    next_run: Callable[[datetime], datetime]
    enabled: bool = True


class ScrapeScheduler:
    """Runs the orchestrator's periodic jobs on asyncio tasks."""

    def __init__(
        self,
        orchestrator: ScrapeOrchestrator,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.orchestrator = orchestrator
        self.settings = settings or get_settings()
        self._clock = clock
        self._paused = False
        self._running = False
        self._tasks: dict[str, asyncio.Task] = {}
        self.last_job_ids: dict[str, str] = {}

        s = self.settings
        self.jobs = {
            "daily_discovery": ScheduledJob(
                name="daily_discovery",
                next_run=lambda now: next_daily_run(now, s.daily_discovery_hour),
            ),
            "weekly_backfill": ScheduledJob(
                name="weekly_backfill",
                next_run=lambda now: next_weekly_run(now, s.weekly_backfill_weekday, s.weekly_backfill_hour),
            ),
        }

    @property
    def is_active(self) -> bool:
        """True while auto discovery is not paused."""
        return not self._paused

    @property
    def is_running(self) -> bool:
        return self._running

    def pause(self) -> None:
        self._paused = True
        logger.info("Auto discovery paused")

    def resume(self) -> None:
        self._paused = False
        logger.info("Auto discovery resumed")

    async def start(self) -> None:
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._running = True
        for name, job in self.jobs.items():
            if job.enabled:
                self._tasks[name] = asyncio.create_task(self._job_loop(job), name=f"schedule-{name}")
        logger.info(f"Started {len(self._tasks)} scheduled job loops")

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        for task in self._tasks.values():
            task.cancel()
        await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        self._tasks.clear()
        logger.info("Scrape scheduler stopped")

    async def run_job(self, name: str) -> str:
        """
        Trigger a scheduled job immediately, paused or not.

        Raises:
            ValueError: unknown job name
        """
        if name == "daily_discovery":
            job_id = await self.orchestrator.discover_and_scrape_today()
        elif name == "weekly_backfill":
            job_id = await self.orchestrator.backfill_missing_games()
        else:
            raise ValueError(f"No executor for job: {name}")
        self.last_job_ids[name] = job_id
        return job_id

    async def _job_loop(self, job: ScheduledJob) -> None:
        while self._running:
            try:
                now = self._clock()
                wait = (job.next_run(now) - now).total_seconds()
                await asyncio.sleep(max(wait, 0))

                if self._paused:
                    logger.info(f"Skipping {job.name}: auto discovery paused")
                    continue

                logger.info(f"Starting scheduled job: {job.name}")
                await self.run_job(job.name)
                # Step past the trigger instant so it does not fire twice
                await asyncio.sleep(1)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in scheduled job {job.name}: {e}")
                await asyncio.sleep(300)

    def get_status(self) -> dict[str, Any]:
        now = self._clock()
        next_runs = {name: job.next_run(now) for name, job in self.jobs.items() if job.enabled}
        return {
            "autoDiscoveryEnabled": not self._paused,
            "schedulerRunning": self._running,
            "nextScheduledRun": min(next_runs.values()).isoformat() if next_runs else None,
            "nextRuns": {name: when.isoformat() for name, when in next_runs.items()},
            "lastJobIds": dict(self.last_job_ids),
        }
