"""Pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Set test environment
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["JSON_LOGGING"] = "false"

from regional_news.config import RegionRegistry, SourceDescriptor  # noqa: E402
from regional_news.exceptions import FetchError  # noqa: E402
from regional_news.ingest.fetcher import FetchResponse  # noqa: E402
from regional_news.storage import MemoryStore  # noqa: E402

# None of these words or phrases is a region term or a boilerplate marker
VOCAB = (
    "residents gathered at the town hall on tuesday evening to hear plans for "
    "the new seafront cycle path which councillors say will open next spring "
    "after months of public consultation and careful design work"
).split()


def prose(n_words: int, offset: int = 0) -> str:
    """Sentence-shaped filler text with exactly ``n_words`` words."""
    words = [VOCAB[(i + offset) % len(VOCAB)] for i in range(n_words)]
    sentences = []
    for i in range(0, n_words, 12):
        chunk = words[i:i + 12]
        chunk[0] = chunk[0].capitalize()
        sentences.append(" ".join(chunk) + ".")
    return " ".join(sentences)


def html_page(body: str, title: str = "Local News Page Title", head: str = "") -> str:
    return (
        f"<html><head><title>{title}</title>{head}</head>"
        f"<body>{body}</body></html>"
    )


def rss_feed(items: list[dict], title: str = "Local Gazette") -> str:
    """Build an RSS 2.0 document from dicts with title/link/description keys."""
    entries = []
    for item in items:
        parts = []
        if item.get("title") is not None:
            parts.append(f"<title>{item['title']}</title>")
        if item.get("link") is not None:
            parts.append(f"<link>{item['link']}</link>")
        if item.get("description") is not None:
            parts.append(f"<description><![CDATA[{item['description']}]]></description>")
        if item.get("pubDate"):
            parts.append(f"<pubDate>{item['pubDate']}</pubDate>")
        if item.get("creator"):
            parts.append(f"<dc:creator>{item['creator']}</dc:creator>")
        entries.append(f"<item>{''.join(parts)}</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">'
        f"<channel><title>{title}</title><link>https://news.example.com/</link>"
        f"{''.join(entries)}</channel></rss>"
    )


class FakeFetcher:
    """Scripted stand-in for ``Fetcher``.

    Responses are keyed by exact URL; an unknown URL behaves like a 404.
    """

    def __init__(self, responses: dict | None = None):
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, str, float | None]] = []

    def add(self, url: str, text: str = "", status: int = 200):
        self.responses[url] = (status, text)

    def fail(self, url: str, error: Exception):
        self.responses[url] = error

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def fetch(self, url, accept="", timeout=None):
        self.calls.append((url, accept, timeout))
        entry = self.responses.get(url)
        if entry is None:
            raise FetchError(url, status=404, reason="Not Found")
        if isinstance(entry, Exception):
            raise entry
        status, text = entry
        if not 200 <= status < 300:
            raise FetchError(url, status=status)
        return FetchResponse(status=status, text=text, url=url, elapsed_ms=5)

    def urls(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def region_registry() -> RegionRegistry:
    """The packaged region table."""
    return RegionRegistry()


@pytest.fixture
def memory_store() -> MemoryStore:
    store = MemoryStore()
    store.add_source(SourceDescriptor(
        id="eastbourne-herald",
        feed_url="https://news.example.com/feed.xml",
        source_type="hyperlocal",
        region="Eastbourne",
        canonical_domain="news.example.com",
        name="Eastbourne Herald",
    ))
    return store
