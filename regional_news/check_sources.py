#!/usr/bin/env python3
"""Source health check utility."""

import asyncio
import sys
from pathlib import Path

import click
import orjson
import yaml
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import SourceDescriptor, get_settings
from .logging import get_logger
from .orchestrator import Orchestrator, ScrapeRequest, configure_cli_logging
from .storage import MemoryStore, RelevanceFloorPolicy, SQLiteStore
from .utils import truncate_text

logger = get_logger(__name__)
console = Console()


def load_sources_file(path: Path) -> list[SourceDescriptor]:
    """Read source descriptors from a YAML file with a top-level ``sources`` list."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return [SourceDescriptor(**entry) for entry in data.get("sources") or []]


async def load_sources_db(db_path: Path) -> list[SourceDescriptor]:
    async with SQLiteStore(db_path) as store:
        return await store.list_sources()


async def check_all_sources(sources: list[SourceDescriptor], timeout: float | None = None) -> dict:
    """Scrape every source into a throwaway store and collect a health report."""
    settings = get_settings()
    store = MemoryStore(relevance_floor=RelevanceFloorPolicy(enabled=settings.relevance_floor_enabled))
    for source in sources:
        store.add_source(source)

    console.print(f"\n[bold cyan]Checking {len(sources)} sources...[/bold cyan]\n")

    async with Orchestrator(store, settings=settings) as orchestrator:
        results = await orchestrator.scrape_many(
            [ScrapeRequest(feed_url=s.feed_url, source_id=s.id) for s in sources],
            job_timeout=timeout,
        )
        report = orchestrator.health_monitor.get_health_report()

    report['results'] = [result.to_dict() for result in results]
    for result in report['results']:
        result.pop('articles', None)
    return report


def display_health_report(report: dict):
    """Display health report in formatted tables."""
    console.print("\n")

    summary = report['summary']
    summary_text = (
        f"[green]Healthy: {summary['healthy']}[/green] | "
        f"[yellow]Degraded: {summary['degraded']}[/yellow] | "
        f"[red]Unhealthy: {summary['unhealthy']}[/red] | "
        f"Total: {summary['total']}"
    )
    console.print(Panel(summary_text, title="[bold]Source Health Summary[/bold]", border_style="cyan"))

    if not report['results']:
        return

    table = Table(
        title="\nScrape Results",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Source", style="dim", overflow="fold")
    table.add_column("Method", justify="center")
    table.add_column("Found", justify="right")
    table.add_column("Kept", justify="right")
    table.add_column("Dupes", justify="right")
    table.add_column("Below floor", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Errors", overflow="fold")

    for result in report['results']:
        method_color = {
            'rss': 'green',
            'html': 'yellow',
            'fallback': 'magenta',
        }.get(result['method'], 'red')

        errors = truncate_text("; ".join(result['errors']), 80) or "-"

        table.add_row(
            result['sourceId'],
            f"[{method_color}]{result['method'].upper()}[/{method_color}]",
            str(result['articlesFound']),
            str(result['articlesScraped']),
            str(result['duplicates']),
            str(result['discarded']),
            f"{result['durationMs'] / 1000:.2f}s",
            errors,
        )

    console.print(table)


@click.command()
@click.option('--sources', 'sources_file', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='YAML file with a list of sources')
@click.option('--db', 'db_path', type=click.Path(dir_okay=False, path_type=Path),
              help='Read sources from this SQLite database')
@click.option('--timeout', type=float, help='Per-source timeout in seconds')
@click.option('--verbose', '-v', is_flag=True, help='Show verbose output')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSON')
def main(sources_file, db_path, timeout, verbose, output_json):
    """Scrape every configured source once and report its health."""
    configure_cli_logging("WARNING", verbose)

    try:
        if sources_file:
            sources = load_sources_file(sources_file)
        else:
            sources = asyncio.run(load_sources_db(db_path or get_settings().database_path))

        if not sources:
            console.print("[yellow]No sources configured[/yellow]")
            sys.exit(1)

        report = asyncio.run(check_all_sources(sources, timeout))

        if output_json:
            click.echo(orjson.dumps(report, option=orjson.OPT_INDENT_2, default=str).decode())
        else:
            display_health_report(report)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        logger.error("Source check failed", error=str(e))
        console.print(f"\n[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
