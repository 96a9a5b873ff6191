"""Tests for the periodic scrape scheduler."""

import asyncio
from datetime import datetime

import pytest

from boxscore_data.scraping import ScrapeScheduler, next_daily_run, next_weekly_run


class FakeOrchestrator:
    def __init__(self):
        self.today_runs = 0
        self.backfill_runs = 0

    async def discover_and_scrape_today(self):
        self.today_runs += 1
        return f"bulk_today_{self.today_runs}"

    async def backfill_missing_games(self, days=None):
        self.backfill_runs += 1
        return f"bulk_backfill_{self.backfill_runs}"


class TestNextRun:
    def test_daily_later_today(self):
        assert next_daily_run(datetime(2024, 7, 15, 5, 30), 6) == datetime(2024, 7, 15, 6, 0)

    def test_daily_rolls_to_tomorrow(self):
        assert next_daily_run(datetime(2024, 7, 15, 6, 0), 6) == datetime(2024, 7, 16, 6, 0)

    def test_weekly_next_sunday(self):
        # 2024-07-15 is a Monday
        assert next_weekly_run(datetime(2024, 7, 15, 12, 0), 6, 2) == datetime(2024, 7, 21, 2, 0)

    def test_weekly_same_day_after_trigger(self):
        assert next_weekly_run(datetime(2024, 7, 21, 3, 0), 6, 2) == datetime(2024, 7, 28, 2, 0)

    def test_weekly_same_day_before_trigger(self):
        assert next_weekly_run(datetime(2024, 7, 21, 1, 0), 6, 2) == datetime(2024, 7, 21, 2, 0)


class TestScheduler:
    def test_pause_and_resume(self, settings):
        scheduler = ScrapeScheduler(FakeOrchestrator(), settings=settings)

        assert scheduler.is_active
        scheduler.pause()
        assert not scheduler.is_active
        assert scheduler.get_status()["autoDiscoveryEnabled"] is False
        scheduler.resume()
        assert scheduler.is_active

    async def test_run_job_dispatches(self, settings):
        orchestrator = FakeOrchestrator()
        scheduler = ScrapeScheduler(orchestrator, settings=settings)

        assert await scheduler.run_job("daily_discovery") == "bulk_today_1"
        assert await scheduler.run_job("weekly_backfill") == "bulk_backfill_1"
        assert scheduler.get_status()["lastJobIds"] == {
            "daily_discovery": "bulk_today_1",
            "weekly_backfill": "bulk_backfill_1",
        }

    async def test_unknown_job(self, settings):
        scheduler = ScrapeScheduler(FakeOrchestrator(), settings=settings)

        with pytest.raises(ValueError):
            await scheduler.run_job("nightly_reindex")

    def test_status_reports_next_runs(self, settings):
        scheduler = ScrapeScheduler(
            FakeOrchestrator(), settings=settings, clock=lambda: datetime(2024, 7, 15, 12, 0)
        )

        status = scheduler.get_status()

        assert status["nextRuns"]["daily_discovery"] == "2024-07-16T06:00:00"
        assert status["nextRuns"]["weekly_backfill"] == "2024-07-21T02:00:00"
        assert status["nextScheduledRun"] == "2024-07-16T06:00:00"

    async def test_paused_loop_starts_no_jobs(self, settings):
        orchestrator = FakeOrchestrator()
        # Just before the daily trigger, so the loop wakes almost immediately
        scheduler = ScrapeScheduler(
            orchestrator, settings=settings, clock=lambda: datetime(2024, 7, 15, 5, 59, 59, 990000)
        )
        scheduler.pause()

        await scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert orchestrator.today_runs == 0
        assert not scheduler.is_running

    async def test_active_loop_triggers_daily_job(self, settings):
        orchestrator = FakeOrchestrator()
        scheduler = ScrapeScheduler(
            orchestrator, settings=settings, clock=lambda: datetime(2024, 7, 15, 5, 59, 59, 990000)
        )

        await scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert orchestrator.today_runs == 1
        assert orchestrator.backfill_runs == 0
