"""Article candidate and scrape result types, plus source health tracking."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from ..config import get_settings
from ..exceptions import ExtractionEmpty
from ..logging import get_logger
from ..utils import count_words, extract_domain, utc_now

logger = get_logger(__name__)

EXTRACTOR_VERSION = "2.0"

SCRAPE_METHODS = ("rss", "html", "fallback", "none")


class ArticleCandidate(Dict[str, Any]):
    """Extracted article with validation.

    Raises ``ExtractionEmpty`` when the body is below the word floor, so a
    thin candidate can never be constructed, let alone stored.
    """

    def __init__(self, **kwargs):
        # Required fields
        required_fields = ['title', 'body', 'source_url']
        for name in required_fields:
            if not kwargs.get(name):
                raise ValueError(f"Missing required field: {name}")

        word_count = count_words(kwargs['body'])
        min_words = get_settings().min_word_count
        if word_count < min_words:
            raise ExtractionEmpty(
                f"{word_count} words extracted from {kwargs['source_url']}, need {min_words}"
            )
        kwargs['word_count'] = word_count

        # Set defaults for optional fields
        defaults = {
            'author': None,
            'summary': '',
            'extraction_method': 'basic',
            'content_quality_score': 0,
            'regional_relevance_score': 0,
        }
        for key, default_value in defaults.items():
            kwargs.setdefault(key, default_value)

        if kwargs.get('published_at') is None:
            kwargs['published_at'] = utc_now()

        metadata = {
            'extraction_method': kwargs['extraction_method'],
            'rss_description': kwargs['summary'],
            'source_domain': extract_domain(kwargs['source_url']),
            'scrape_timestamp': utc_now().isoformat(),
            'extractor_version': EXTRACTOR_VERSION,
        }
        metadata.update(kwargs.get('import_metadata') or {})
        kwargs['import_metadata'] = metadata

        super().__init__(**kwargs)

    @property
    def domain(self) -> str:
        """Get domain from URL."""
        return extract_domain(self['source_url'])

    @property
    def word_count(self) -> int:
        return self['word_count']

    def to_record(self) -> dict[str, Any]:
        """Flat, JSON-friendly form."""
        record = dict(self)
        published = record.get('published_at')
        if isinstance(published, datetime):
            record['published_at'] = published.isoformat()
        return record


@dataclass
class ScrapeResult:
    """Outcome of one orchestrated scrape of a source."""
    success: bool
    method: str = "none"
    articles_found: int = 0
    articles_scraped: int = 0
    duplicates: int = 0
    discarded: int = 0
    articles: list[ArticleCandidate] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0
    source_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Wire form with camelCase keys."""
        return {
            'success': self.success,
            'method': self.method,
            'articlesFound': self.articles_found,
            'articlesScraped': self.articles_scraped,
            'duplicates': self.duplicates,
            'discarded': self.discarded,
            'articles': [article.to_record() for article in self.articles],
            'errors': list(self.errors),
            'durationMs': self.duration_ms,
            'sourceId': self.source_id,
        }


class SourceHealthMonitor:
    """Monitor source health across scrapes."""

    def __init__(self, failure_threshold: int = 3, check_interval: int = 3600):
        self.source_status: dict[str, dict[str, Any]] = {}
        self.failure_threshold = failure_threshold
        self.check_interval = check_interval

    def record_success(self, name: str, response_time: float, entry_count: int, method: str = ""):
        """Record successful source scrape."""
        self.source_status[name] = {
            'status': 'healthy',
            'last_success': utc_now(),
            'response_time': response_time,
            'entry_count': entry_count,
            'method': method,
            'consecutive_failures': 0,
            'last_error': None,
        }
        logger.debug(
            "Source health: success recorded",
            name=name,
            response_time=response_time,
            entries=entry_count,
            method=method,
        )

    def record_failure(self, name: str, error: str):
        """Record failed source scrape."""
        status = self.source_status.setdefault(name, {
            'status': 'unknown',
            'consecutive_failures': 0,
        })

        status['consecutive_failures'] += 1
        status['last_error'] = error
        status['last_failure'] = utc_now()

        if status['consecutive_failures'] >= self.failure_threshold:
            status['status'] = 'unhealthy'
            logger.error(
                "Source marked as unhealthy",
                name=name,
                failures=status['consecutive_failures'],
                error=error,
            )
        else:
            status['status'] = 'degraded'
            logger.warning(
                "Source experiencing issues",
                name=name,
                failures=status['consecutive_failures'],
                error=error,
            )

    def get_health_report(self) -> dict[str, Any]:
        """Get health report for all monitored sources."""
        statuses = [s['status'] for s in self.source_status.values()]
        summary = {
            'total': len(statuses),
            'healthy': statuses.count('healthy'),
            'degraded': statuses.count('degraded'),
            'unhealthy': statuses.count('unhealthy'),
        }
        logger.info("Source health report", **summary)
        return {
            'timestamp': utc_now().isoformat(),
            'summary': summary,
            'sources': self.source_status,
        }

    def should_skip_source(self, name: str) -> bool:
        """Check if source should be skipped due to poor health."""
        status = self.source_status.get(name)
        if not status or status['status'] != 'unhealthy':
            return False
        last_failure = status.get('last_failure')
        if last_failure is None:
            return False
        elapsed = (utc_now() - last_failure).total_seconds()
        if elapsed < self.check_interval:
            logger.info("Skipping unhealthy source", name=name, time_since_failure=elapsed)
            return True
        return False
