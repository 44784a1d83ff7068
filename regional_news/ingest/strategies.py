"""Scrape strategies tried in escalation order for one source."""

from abc import ABC, abstractmethod

from ..config import Settings, get_settings
from ..exceptions import ExtractionEmpty
from ..logging import get_logger
from .discovery import FeedDiscovery
from .enricher import ArticleEnricher
from .feeds import parse_feed
from .fetcher import FEED_ACCEPT, HTML_ACCEPT, Fetcher
from .html_scanner import HTMLArticleScanner
from .sources import ArticleCandidate

logger = get_logger(__name__)


class ScrapeStrategy(ABC):
    """Abstract base class for scrape strategies.

    ``run`` either returns at least one candidate or raises a
    ``ScraperError`` describing why the strategy failed.
    """

    name: str = ""

    def __init__(self, fetcher: Fetcher, settings: Settings | None = None):
        self.fetcher = fetcher
        self.settings = settings or get_settings()

    @abstractmethod
    async def run(self, feed_url: str) -> list[ArticleCandidate]:
        """Obtain candidates for the source at ``feed_url``."""


class RSSStrategy(ScrapeStrategy):
    """Parse the configured feed and enrich each entry from its page."""

    name = "rss"

    def __init__(
        self,
        fetcher: Fetcher,
        settings: Settings | None = None,
        enricher: ArticleEnricher | None = None,
    ):
        super().__init__(fetcher, settings)
        self.enricher = enricher or ArticleEnricher(fetcher, self.settings)

    async def run(self, feed_url: str) -> list[ArticleCandidate]:
        response = await self.fetcher.fetch(
            feed_url, accept=FEED_ACCEPT, timeout=self.settings.feed_timeout_seconds
        )
        items = parse_feed(response.text, response.url or feed_url, self.settings.max_feed_items)
        if not items:
            raise ExtractionEmpty(f"Feed at {feed_url} contained no usable items")

        candidates = await self.enricher.enrich_all(items, feed_url)
        if not candidates:
            raise ExtractionEmpty(f"No feed item from {feed_url} reached the word floor")
        return candidates


class HTMLStrategy(ScrapeStrategy):
    """Treat the configured URL as a listing page and scan its article blocks."""

    name = "html"

    def __init__(
        self,
        fetcher: Fetcher,
        settings: Settings | None = None,
        scanner: HTMLArticleScanner | None = None,
    ):
        super().__init__(fetcher, settings)
        self.scanner = scanner or HTMLArticleScanner(self.settings)

    async def run(self, feed_url: str) -> list[ArticleCandidate]:
        response = await self.fetcher.fetch(
            feed_url, accept=HTML_ACCEPT, timeout=self.settings.default_timeout_seconds
        )
        candidates = self.scanner.scan(response.text, response.url or feed_url)
        if not candidates:
            raise ExtractionEmpty(f"No article blocks found on {feed_url}")
        return candidates


class FallbackStrategy(ScrapeStrategy):
    """Discover a feed on the site root, else extract the root page itself."""

    name = "fallback"

    def __init__(
        self,
        fetcher: Fetcher,
        settings: Settings | None = None,
        discovery: FeedDiscovery | None = None,
    ):
        super().__init__(fetcher, settings)
        self.discovery = discovery or FeedDiscovery(fetcher, settings=self.settings)

    async def run(self, feed_url: str) -> list[ArticleCandidate]:
        return await self.discovery.discover(feed_url)


def default_strategies(fetcher: Fetcher, settings: Settings | None = None) -> list[ScrapeStrategy]:
    """RSS, then HTML scan, then discovery, sharing one enricher."""
    settings = settings or get_settings()
    enricher = ArticleEnricher(fetcher, settings)
    return [
        RSSStrategy(fetcher, settings, enricher=enricher),
        HTMLStrategy(fetcher, settings),
        FallbackStrategy(fetcher, settings, discovery=FeedDiscovery(fetcher, enricher, settings)),
    ]
