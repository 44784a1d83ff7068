"""Source ingestion: fetching, feed parsing, enrichment and scrape strategies."""

from .discovery import FeedDiscovery, basic_extract, discover_feed_urls
from .enricher import ArticleEnricher
from .feeds import FeedItem, looks_like_feed, parse_feed
from .fetcher import FEED_ACCEPT, HTML_ACCEPT, Fetcher, FetchResponse
from .html_scanner import HTMLArticleScanner
from .sources import ArticleCandidate, ScrapeResult, SourceHealthMonitor
from .strategies import (
    FallbackStrategy,
    HTMLStrategy,
    RSSStrategy,
    ScrapeStrategy,
    default_strategies,
)

__all__ = [
    'ArticleCandidate',
    'ScrapeResult',
    'SourceHealthMonitor',
    'Fetcher',
    'FetchResponse',
    'FEED_ACCEPT',
    'HTML_ACCEPT',
    'FeedItem',
    'looks_like_feed',
    'parse_feed',
    'ArticleEnricher',
    'HTMLArticleScanner',
    'FeedDiscovery',
    'basic_extract',
    'discover_feed_urls',
    'ScrapeStrategy',
    'RSSStrategy',
    'HTMLStrategy',
    'FallbackStrategy',
    'default_strategies',
]
