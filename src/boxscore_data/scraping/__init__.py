"""
Scrape job orchestration and scheduling.

Usage:
    from boxscore_data.scraping import ScrapeOrchestrator

    orchestrator = ScrapeOrchestrator(provider, store, cache, settings=settings)
    job_id = await orchestrator.bulk_scrape_games("2024-06-01", "2024-06-07")
    status = await orchestrator.wait_for_job(job_id)
"""

from .jobs import JobRegistry, new_job_id
from .orchestrator import ScrapeOrchestrator, date_range
from .scheduler import ScrapeScheduler, next_daily_run, next_weekly_run

__all__ = [
    "JobRegistry",
    "ScrapeOrchestrator",
    "ScrapeScheduler",
    "date_range",
    "new_job_id",
    "next_daily_run",
    "next_weekly_run",
]
