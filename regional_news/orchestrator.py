"""
Scrape orchestration: strategy escalation, scoring, storage and metrics.

Also provides the `regional-news` command line entry point.
"""

import asyncio
import sys
import time
from dataclasses import dataclass

import click
import orjson

from .config import SOURCE_TYPES, Settings, SourceDescriptor, get_settings
from .exceptions import ScraperError, StorageConflict
from .ingest.fetcher import Fetcher
from .ingest.sources import ArticleCandidate, ScrapeResult, SourceHealthMonitor
from .ingest.strategies import ScrapeStrategy, default_strategies
from .logging import (
    PerformanceLogger,
    get_logger,
    log_error,
    log_processing_stage,
    log_scrape_result,
    scrape_context,
    setup_logging,
)
from .processing.dedupe import DuplicateTracker
from .processing.relevance import RelevanceScorer
from .storage import (
    ArticleStore,
    MemoryStore,
    RelevanceFloorPolicy,
    SourceMetrics,
    SourceStore,
    SQLiteStore,
    StoreOutcome,
)
from .utils import extract_domain

logger = get_logger(__name__)


@dataclass
class ScrapeRequest:
    """Inbound trigger for one source."""
    feed_url: str
    source_id: str
    region: str | None = None


class Orchestrator:
    """Runs the RSS, HTML and fallback strategies for a source and stores the results.

    Use as an async context manager so the shared fetch session and any
    pending metrics writes are cleaned up.
    """

    def __init__(
        self,
        store: ArticleStore,
        source_store: SourceStore | None = None,
        fetcher: Fetcher | None = None,
        settings: Settings | None = None,
        scorer: RelevanceScorer | None = None,
        strategies: list[ScrapeStrategy] | None = None,
        health_monitor: SourceHealthMonitor | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        if source_store is None and isinstance(store, SourceStore):
            source_store = store
        self.source_store = source_store
        self.fetcher = fetcher or Fetcher(self.settings)
        self.scorer = scorer or RelevanceScorer()
        self.strategies = strategies or default_strategies(self.fetcher, self.settings)
        self.health_monitor = health_monitor or SourceHealthMonitor()
        self._pending: set[asyncio.Task] = set()

    async def __aenter__(self) -> "Orchestrator":
        await self.fetcher.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.drain()
        await self.fetcher.__aexit__(exc_type, exc_val, exc_tb)

    async def drain(self) -> None:
        """Wait for outstanding metrics writes."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def scrape(self, request: ScrapeRequest) -> ScrapeResult:
        """Scrape one source. Never raises; failures are reported in the result."""
        with scrape_context(request.source_id, request.feed_url):
            return await self._scrape(request)

    async def _scrape(self, request: ScrapeRequest) -> ScrapeResult:
        start = time.monotonic()
        result = ScrapeResult(success=False, source_id=request.source_id)

        source = await self._load_source(request.source_id)
        source_type = source.source_type if source else "national"
        region = request.region or (source.region if source else None) or None

        candidates: list[ArticleCandidate] = []
        for strategy in self.strategies:
            try:
                with PerformanceLogger(f"strategy_{strategy.name}", logger):
                    candidates = await strategy.run(request.feed_url)
            except ScraperError as e:
                result.errors.append(f"{strategy.name}: {e}")
                continue
            except Exception as e:
                logger.error(**log_error(e, context=f"strategy_{strategy.name}", url=request.feed_url))
                result.errors.append(f"{strategy.name}: unexpected {e.__class__.__name__}: {e}")
                continue
            result.method = strategy.name
            break

        if candidates:
            result.success = True
            result.articles_found = len(candidates)
            await self._store_candidates(candidates, request.source_id, region, source_type, result)

        result.duration_ms = int((time.monotonic() - start) * 1000)
        self._report(request, result)
        return result

    async def scrape_many(
        self,
        requests: list[ScrapeRequest],
        job_timeout: float | None = None,
    ) -> list[ScrapeResult]:
        """Scrape several sources concurrently, each under its own timeout."""
        job_timeout = job_timeout or self.settings.job_timeout_seconds

        async def _guarded(request: ScrapeRequest) -> ScrapeResult:
            if self.health_monitor.should_skip_source(request.source_id):
                return ScrapeResult(
                    success=False,
                    source_id=request.source_id,
                    errors=["skipped: source marked unhealthy"],
                )
            start = time.monotonic()
            try:
                return await asyncio.wait_for(self.scrape(request), timeout=job_timeout)
            except asyncio.TimeoutError:
                logger.warning("Source scrape timed out", source_id=request.source_id, timeout=job_timeout)
                result = ScrapeResult(
                    success=False,
                    source_id=request.source_id,
                    errors=[f"timeout: scrape exceeded {job_timeout}s"],
                    duration_ms=int((time.monotonic() - start) * 1000),
                )
                with scrape_context(request.source_id, request.feed_url):
                    self._report(request, result)
                return result

        with PerformanceLogger("scrape_all_sources", logger):
            results = await asyncio.gather(*(_guarded(r) for r in requests))

        logger.info(**log_processing_stage(
            stage="scrape_all_sources",
            input_count=len(requests),
            output_count=sum(1 for r in results if r.success),
        ))
        return list(results)

    async def _load_source(self, source_id: str) -> SourceDescriptor | None:
        if self.source_store is None:
            return None
        try:
            source = await self.source_store.get_source(source_id)
        except Exception as e:
            logger.warning("Source lookup failed", source_id=source_id, error=str(e))
            return None
        if source is None:
            logger.info("No descriptor for source, scoring as national", source_id=source_id)
        return source

    async def _store_candidates(
        self,
        candidates: list[ArticleCandidate],
        source_id: str,
        region: str | None,
        source_type: str,
        result: ScrapeResult,
    ) -> None:
        tracker = DuplicateTracker()

        for candidate in candidates:
            url = candidate['source_url']
            if tracker.check_and_add(url):
                result.duplicates += 1
                continue

            try:
                if await self.store.exists(url):
                    result.duplicates += 1
                    continue
            except Exception as e:
                result.errors.append(f"storage: {url}: {e}")
                continue

            details = self.scorer.score_details(
                candidate['title'],
                candidate['body'],
                candidate.get('summary', ''),
                source_type=source_type,
                region=region,
            )
            candidate['regional_relevance_score'] = details.score
            candidate['import_metadata']['relevance_matches'] = details.matched

            try:
                outcome = await self.store.insert(candidate, source_id, region, source_type)
            except StorageConflict:
                result.duplicates += 1
                continue
            except Exception as e:
                logger.error(**log_error(e, context="article_insert", url=url))
                result.errors.append(f"storage: {url}: {e}")
                continue

            if outcome is StoreOutcome.STORED:
                result.articles_scraped += 1
                result.articles.append(candidate)
            elif outcome is StoreOutcome.DUPLICATE:
                result.duplicates += 1
            else:
                result.discarded += 1

    def _report(self, request: ScrapeRequest, result: ScrapeResult) -> None:
        if result.success:
            self.health_monitor.record_success(
                request.source_id, result.duration_ms / 1000, result.articles_found, result.method
            )
        else:
            self.health_monitor.record_failure(request.source_id, "; ".join(result.errors))

        logger.info(**log_scrape_result(result))

        if self.source_store is None:
            return
        metrics = SourceMetrics(
            source_id=request.source_id,
            success=result.success,
            method=result.method,
            response_time_ms=result.duration_ms,
            articles_found=result.articles_found,
            articles_scraped=result.articles_scraped,
        )
        task = asyncio.create_task(self._record_metrics(metrics))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record_metrics(self, metrics: SourceMetrics) -> None:
        try:
            await self.source_store.record_metrics(metrics)
        except Exception as e:
            logger.warning("Metrics write failed", source_id=metrics.source_id, error=str(e))


async def run_scrape(
    request: ScrapeRequest,
    settings: Settings,
    source: SourceDescriptor | None = None,
    dry_run: bool = False,
) -> ScrapeResult:
    """Scrape one source against a memory or SQLite store."""
    floor = RelevanceFloorPolicy(enabled=settings.relevance_floor_enabled)

    if dry_run:
        store = MemoryStore(relevance_floor=floor)
        if source:
            store.add_source(source)
        async with Orchestrator(store, settings=settings) as orchestrator:
            return await orchestrator.scrape(request)

    async with SQLiteStore(settings.database_path, relevance_floor=floor) as store:
        if source:
            await store.add_source(source)
        async with Orchestrator(store, settings=settings) as orchestrator:
            return await orchestrator.scrape(request)


def configure_cli_logging(log_level: str, verbose: bool) -> None:
    """Console logging for interactive use; library loggers stay quiet unless verbose."""
    setup_logging(
        log_level="DEBUG" if verbose else log_level,
        json_logging=False,
        quiet_libraries=not verbose,
    )


@click.group()
def cli():
    """Regional news ingest core."""


@cli.command()
@click.argument("feed_url")
@click.option("--source-id", help="Source identifier (default: the feed's domain)")
@click.option("--region", help="Region to score relevance against")
@click.option("--source-type", type=click.Choice(SOURCE_TYPES), help="Register the source with this type")
@click.option("--db", "db_path", type=click.Path(dir_okay=False), help="SQLite database path")
@click.option("--dry-run", is_flag=True, help="Use an in-memory store; nothing is persisted")
@click.option("--log-level", default="WARNING", help="Log level")
@click.option("--verbose", is_flag=True, help="Show debug logging")
def scrape(feed_url, source_id, region, source_type, db_path, dry_run, log_level, verbose):
    """Scrape FEED_URL and print the result as JSON."""
    configure_cli_logging(log_level, verbose)

    settings = get_settings()
    if db_path:
        settings.database_path = db_path

    source_id = source_id or extract_domain(feed_url)
    source = None
    if source_type or region:
        source = SourceDescriptor(
            id=source_id,
            feed_url=feed_url,
            source_type=source_type or "national",
            region=region or "",
            canonical_domain=extract_domain(feed_url),
        )

    request = ScrapeRequest(feed_url=feed_url, source_id=source_id, region=region)
    try:
        result = asyncio.run(run_scrape(request, settings, source=source, dry_run=dry_run))
    except Exception as e:
        logger.error("CLI execution failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(orjson.dumps(result.to_dict(), option=orjson.OPT_INDENT_2).decode())
    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    cli()
