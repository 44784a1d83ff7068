"""Tests for the source health check tool."""

from pathlib import Path
from unittest.mock import patch

import orjson
import pytest
from click.testing import CliRunner
from conftest import FakeFetcher, html_page, prose, rss_feed

from regional_news.check_sources import check_all_sources, load_sources_file, main
from regional_news.config import SourceDescriptor

EXAMPLE_SOURCES = Path(__file__).parent.parent / "sources.example.yaml"


def scripted_fetcher() -> FakeFetcher:
    fetcher = FakeFetcher()
    fetcher.add("https://good.example.com/rss", rss_feed([
        {"title": "Eastbourne bandstand concert", "link": "https://good.example.com/bandstand"},
    ]))
    fetcher.add("https://good.example.com/bandstand",
                html_page(f'<article class="story"><p>{prose(80)}</p></article>'))
    return fetcher


SOURCES = [
    SourceDescriptor(id="good", feed_url="https://good.example.com/rss",
                     source_type="hyperlocal", region="Eastbourne"),
    SourceDescriptor(id="dead", feed_url="https://dead.example.com/rss"),
]


def test_load_example_sources_file():
    sources = load_sources_file(EXAMPLE_SOURCES)

    assert [s.id for s in sources] == ["eastbourne-gazette", "argus", "national-wire"]
    assert sources[1].source_type == "regional"


@pytest.mark.asyncio
async def test_check_all_sources_report():
    with patch("regional_news.orchestrator.Fetcher", return_value=scripted_fetcher()):
        report = await check_all_sources(SOURCES, timeout=5)

    assert report["summary"]["total"] == 2
    assert report["summary"]["healthy"] == 1
    by_id = {r["sourceId"]: r for r in report["results"]}
    assert by_id["good"]["method"] == "rss"
    assert by_id["good"]["articlesScraped"] == 1
    assert "articles" not in by_id["good"]
    assert by_id["dead"]["method"] == "none"


def test_cli_json_output(temp_dir):
    sources_file = temp_dir / "sources.yaml"
    sources_file.write_text(
        "sources:\n"
        "  - id: good\n"
        "    feed_url: https://good.example.com/rss\n"
        "    source_type: hyperlocal\n"
        "    region: Eastbourne\n"
    )

    with patch("regional_news.orchestrator.Fetcher", return_value=scripted_fetcher()), \
            patch("regional_news.check_sources.configure_cli_logging"):
        result = CliRunner().invoke(main, ["--sources", str(sources_file), "--json"])

    assert result.exit_code == 0
    payload = orjson.loads(result.output[result.output.index("{"):])
    assert payload["summary"]["healthy"] == 1
