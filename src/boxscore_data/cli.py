"""Command line interface for scraping box scores and querying analytics."""

import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Any, Optional

import click
import msgspec

from .analytics import AnalyticsEngine
from .cache import GameCache, create_cache
from .core.config import Settings, get_settings
from .core.errors import BoxScoreDataError
from .core.types import JobStatus, Timeframe
from .providers import BoxScoreProvider, get_provider
from .scraping import ScrapeOrchestrator, ScrapeScheduler
from .store import GameDataStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a command needs, wired once."""

    settings: Settings
    cache: GameCache
    store: GameDataStore
    provider: BoxScoreProvider
    engine: AnalyticsEngine
    orchestrator: ScrapeOrchestrator
    scheduler: ScrapeScheduler


def build_services(
    settings: Optional[Settings] = None,
    provider: Optional[BoxScoreProvider] = None,
    cache: Optional[GameCache] = None,
) -> Services:
    settings = settings or get_settings()
    cache = cache or create_cache(settings)
    store = GameDataStore(settings.snapshot_path)
    provider = provider or get_provider(settings)
    orchestrator = ScrapeOrchestrator(provider, store, cache, settings=settings)
    return Services(
        settings=settings,
        cache=cache,
        store=store,
        provider=provider,
        engine=AnalyticsEngine(store),
        orchestrator=orchestrator,
        scheduler=ScrapeScheduler(orchestrator, settings=settings),
    )


def _echo_json(payload: Any) -> None:
    click.echo(msgspec.json.format(msgspec.json.encode(payload), indent=2).decode())


def _run_scrape(start_job) -> None:
    """Start a scrape job, wait for it and print the final status."""

    async def _main() -> Optional[dict[str, Any]]:
        services = build_services()
        try:
            job_id = await start_job(services.orchestrator)
            click.echo(f"Started job {job_id}")
            return await services.orchestrator.wait_for_job(job_id)
        finally:
            await services.provider.close()

    try:
        status = asyncio.run(_main())
    except BoxScoreDataError as e:
        click.echo(f"ERROR: {e.message} ({e.detail})", err=True)
        sys.exit(1)

    _echo_json(status)
    if status is None or status["status"] == JobStatus.failed.value:
        sys.exit(1)


@click.group()
def cli():
    """Box score scraper and analytics CLI."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@cli.command()
@click.argument("start_date")
@click.argument("end_date")
@click.option("--force", is_flag=True, help="Re-fetch games that are already cached")
def scrape(start_date: str, end_date: str, force: bool):
    """Scrape all games from START_DATE to END_DATE (YYYY-MM-DD, inclusive)."""
    _run_scrape(lambda o: o.bulk_scrape_games(start_date, end_date, force_refresh=force))


@cli.command()
def today():
    """Discover and scrape today's games."""
    _run_scrape(lambda o: o.discover_and_scrape_today())


@cli.command()
@click.option("--days", default=None, type=int, help="Days to look back (default: settings)")
def backfill(days: Optional[int]):
    """Re-scrape recent days, skipping games already cached."""
    _run_scrape(lambda o: o.backfill_missing_games(days))


@cli.command()
@click.argument("year", type=int)
def season(year: int):
    """Scrape a full regular season."""
    _run_scrape(lambda o: o.scrape_season(year))


@cli.command()
def status():
    """Show job history and data coverage."""
    services = build_services()
    _echo_json(services.orchestrator.get_status(services.scheduler.get_status()))


@cli.command()
@click.argument("player_id")
@click.option(
    "--timeframe",
    type=click.Choice([tf.value for tf in Timeframe]),
    default=None,
    help="Limit trends to one timeframe",
)
def player(player_id: str, timeframe: Optional[str]):
    """Show a player's summary, or trends for one timeframe."""
    services = build_services()
    try:
        if timeframe:
            if not services.store.has_player(player_id):
                raise click.ClickException(f"Player {player_id} not found")
            _echo_json(services.engine.get_player_trends(player_id, timeframe))
        else:
            _echo_json(services.engine.get_player_stats(player_id))
    except BoxScoreDataError as e:
        click.echo(f"ERROR: {e.message} ({e.detail})", err=True)
        sys.exit(1)


@cli.command()
@click.argument("batter_id")
@click.argument("pitcher_id")
def matchup(batter_id: str, pitcher_id: str):
    """Show the estimated history of BATTER_ID against PITCHER_ID."""
    services = build_services()
    result = services.engine.get_matchup(batter_id, pitcher_id)
    if result is None:
        click.echo(f"No shared games for {batter_id} vs {pitcher_id}", err=True)
        sys.exit(1)
    _echo_json(result.to_dict())


@cli.command()
def schedule():
    """Run the daily discovery and weekly backfill loops until interrupted."""

    async def _main():
        services = build_services()
        await services.scheduler.start()
        click.echo(f"Scheduler running: {services.scheduler.get_status()['nextRuns']}")
        try:
            await asyncio.Event().wait()
        finally:
            await services.scheduler.stop()
            await services.provider.close()

    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        click.echo("Scheduler stopped")


if __name__ == "__main__":
    cli()
