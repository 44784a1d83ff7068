"""
Storage collaborators for the ingest core.

The core writes through two narrow contracts: an article store with an
idempotent insert keyed by canonical URL, and a source store that reads
source descriptors and accepts per-scrape metrics. ``MemoryStore`` backs
tests and dry runs; ``SQLiteStore`` persists with aiosqlite.
"""

import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite
import orjson

from .config import SourceDescriptor
from .exceptions import StorageConflict
from .ingest.sources import ArticleCandidate
from .logging import get_logger
from .utils import ensure_directory, normalize_url, utc_now

logger = get_logger(__name__)


class StoreOutcome(str, Enum):
    """Result of an article insert."""
    STORED = "stored"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"


@dataclass
class SourceMetrics:
    """One scrape's metrics for a source."""
    source_id: str
    success: bool
    method: str
    response_time_ms: int
    last_scraped_at: datetime = field(default_factory=utc_now)
    articles_found: int = 0
    articles_scraped: int = 0


@dataclass
class RelevanceFloorPolicy:
    """Minimum relevance score per source type for an article to be stored."""
    thresholds: dict[str, int] = field(default_factory=lambda: {
        'hyperlocal': 5,
        'regional': 8,
        'national': 15,
    })
    enabled: bool = True

    def allows(self, score: int, source_type: str | None) -> bool:
        if not self.enabled:
            return True
        floor = self.thresholds.get((source_type or 'national').lower(), self.thresholds['national'])
        return score >= floor


def running_average(old_avg: float, count: int, sample: float) -> float:
    """Average after adding the ``count``-th sample."""
    if count <= 1:
        return float(sample)
    return (old_avg * (count - 1) + sample) / count


class ArticleStore(ABC):
    """Write sink for article candidates."""

    @abstractmethod
    async def exists(self, url: str) -> bool:
        """Whether an article with this canonical URL is already stored."""

    @abstractmethod
    async def insert(
        self,
        candidate: ArticleCandidate,
        source_id: str,
        region: str | None = None,
        source_type: str = "national",
    ) -> StoreOutcome:
        """Insert a candidate unless its URL is already stored.

        Raises:
            StorageConflict: If a concurrent writer stored the same URL first
        """


class SourceStore(ABC):
    """Read source for descriptors, write sink for metrics."""

    @abstractmethod
    async def get_source(self, source_id: str) -> SourceDescriptor | None:
        """Look up a source descriptor."""

    @abstractmethod
    async def record_metrics(self, metrics: SourceMetrics) -> None:
        """Fold one scrape's metrics into the source's aggregates."""


class MemoryStore(ArticleStore, SourceStore):
    """In-process store."""

    def __init__(self, relevance_floor: RelevanceFloorPolicy | None = None):
        self.relevance_floor = relevance_floor or RelevanceFloorPolicy()
        self.articles: dict[str, dict[str, Any]] = {}
        self.sources: dict[str, SourceDescriptor] = {}
        self.source_stats: dict[str, dict[str, Any]] = {}
        self.history: list[dict[str, Any]] = []

    def add_source(self, source: SourceDescriptor) -> None:
        self.sources[source.id] = source

    async def get_source(self, source_id: str) -> SourceDescriptor | None:
        return self.sources.get(source_id)

    async def exists(self, url: str) -> bool:
        return normalize_url(url) in self.articles

    async def insert(
        self,
        candidate: ArticleCandidate,
        source_id: str,
        region: str | None = None,
        source_type: str = "national",
    ) -> StoreOutcome:
        key = normalize_url(candidate['source_url'])

        if key in self.articles:
            outcome = StoreOutcome.DUPLICATE
        elif not self.relevance_floor.allows(candidate['regional_relevance_score'], source_type):
            outcome = StoreOutcome.REJECTED
        else:
            self.articles[key] = {**candidate, 'source_id': source_id, 'region': region}
            outcome = StoreOutcome.STORED

        self.history.append({
            'url': key,
            'source_id': source_id,
            'outcome': outcome.value,
            'scraped_at': utc_now(),
        })
        return outcome

    async def record_metrics(self, metrics: SourceMetrics) -> None:
        stats = self.source_stats.setdefault(metrics.source_id, {
            'scrape_count': 0,
            'success_count': 0,
            'avg_response_time_ms': 0.0,
        })
        stats['scrape_count'] += 1
        stats['success_count'] += int(metrics.success)
        stats['avg_response_time_ms'] = running_average(
            stats['avg_response_time_ms'], stats['scrape_count'], metrics.response_time_ms
        )
        stats['success_rate'] = 100.0 * stats['success_count'] / stats['scrape_count']
        stats['last_scraped_at'] = metrics.last_scraped_at
        stats['last_method'] = metrics.method


SCHEMA = """
CREATE TABLE IF NOT EXISTS content_sources (
    id TEXT PRIMARY KEY,
    feed_url TEXT NOT NULL,
    source_type TEXT NOT NULL DEFAULT 'national',
    region TEXT NOT NULL DEFAULT '',
    canonical_domain TEXT NOT NULL DEFAULT '',
    name TEXT NOT NULL DEFAULT '',
    last_scraped_at TEXT,
    last_method TEXT,
    avg_response_time_ms REAL NOT NULL DEFAULT 0,
    success_rate REAL NOT NULL DEFAULT 0,
    scrape_count INTEGER NOT NULL DEFAULT 0,
    success_count INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS articles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source_url TEXT NOT NULL UNIQUE,
    source_id TEXT NOT NULL,
    region TEXT,
    title TEXT NOT NULL,
    body TEXT NOT NULL,
    summary TEXT,
    author TEXT,
    published_at TEXT,
    word_count INTEGER NOT NULL,
    content_quality_score INTEGER NOT NULL,
    regional_relevance_score INTEGER NOT NULL,
    extraction_method TEXT,
    import_metadata TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS scraped_urls_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL,
    source_id TEXT NOT NULL,
    outcome TEXT NOT NULL,
    scraped_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_articles_source ON articles(source_id);
CREATE INDEX IF NOT EXISTS idx_history_url ON scraped_urls_history(url);
"""


class SQLiteStore(ArticleStore, SourceStore):
    """aiosqlite-backed store.

    Use as an async context manager; the UNIQUE constraint on
    ``articles.source_url`` settles races between concurrent scrapers.
    """

    def __init__(self, db_path: str | Path, relevance_floor: RelevanceFloorPolicy | None = None):
        self.db_path = Path(db_path)
        self.relevance_floor = relevance_floor or RelevanceFloorPolicy()
        self.db: aiosqlite.Connection | None = None

    async def __aenter__(self) -> "SQLiteStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def connect(self) -> None:
        if self.db is not None:
            return
        if str(self.db_path) != ":memory:":
            ensure_directory(self.db_path.parent)
        self.db = await aiosqlite.connect(self.db_path)
        self.db.row_factory = aiosqlite.Row
        await self.db.executescript(SCHEMA)
        await self.db.commit()
        logger.debug("SQLite store opened", path=str(self.db_path))

    async def close(self) -> None:
        if self.db is not None:
            await self.db.close()
            self.db = None

    @property
    def _conn(self) -> aiosqlite.Connection:
        if self.db is None:
            raise RuntimeError("Store not connected. Use async context manager.")
        return self.db

    async def add_source(self, source: SourceDescriptor) -> None:
        """Insert or update a source descriptor, keeping its metrics."""
        await self._conn.execute(
            """
            INSERT INTO content_sources (id, feed_url, source_type, region, canonical_domain, name)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                feed_url = excluded.feed_url,
                source_type = excluded.source_type,
                region = excluded.region,
                canonical_domain = excluded.canonical_domain,
                name = excluded.name
            """,
            (source.id, source.feed_url, source.source_type, source.region,
             source.canonical_domain, source.name),
        )
        await self._conn.commit()

    async def list_sources(self) -> list[SourceDescriptor]:
        async with self._conn.execute("SELECT * FROM content_sources ORDER BY id") as cursor:
            rows = await cursor.fetchall()
        return [_row_to_source(row) for row in rows]

    async def get_source(self, source_id: str) -> SourceDescriptor | None:
        async with self._conn.execute(
            "SELECT * FROM content_sources WHERE id = ?", (source_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_source(row) if row else None

    async def get_source_stats(self, source_id: str) -> dict[str, Any] | None:
        async with self._conn.execute(
            "SELECT * FROM content_sources WHERE id = ?", (source_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return dict(row) if row else None

    async def exists(self, url: str) -> bool:
        async with self._conn.execute(
            "SELECT 1 FROM articles WHERE source_url = ?", (normalize_url(url),)
        ) as cursor:
            return await cursor.fetchone() is not None

    async def insert(
        self,
        candidate: ArticleCandidate,
        source_id: str,
        region: str | None = None,
        source_type: str = "national",
    ) -> StoreOutcome:
        key = normalize_url(candidate['source_url'])

        if await self.exists(key):
            outcome = StoreOutcome.DUPLICATE
        elif not self.relevance_floor.allows(candidate['regional_relevance_score'], source_type):
            outcome = StoreOutcome.REJECTED
        else:
            try:
                await self._conn.execute(
                    """
                    INSERT INTO articles (
                        source_url, source_id, region, title, body, summary, author,
                        published_at, word_count, content_quality_score,
                        regional_relevance_score, extraction_method, import_metadata, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        key, source_id, region, candidate['title'], candidate['body'],
                        candidate.get('summary'), candidate.get('author'),
                        _iso(candidate.get('published_at')), candidate['word_count'],
                        candidate['content_quality_score'], candidate['regional_relevance_score'],
                        candidate.get('extraction_method'),
                        orjson.dumps(candidate.get('import_metadata') or {}).decode(),
                        utc_now().isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as e:
                await self._conn.rollback()
                raise StorageConflict(key) from e
            outcome = StoreOutcome.STORED

        await self._conn.execute(
            "INSERT INTO scraped_urls_history (url, source_id, outcome, scraped_at) VALUES (?, ?, ?, ?)",
            (key, source_id, outcome.value, utc_now().isoformat()),
        )
        await self._conn.commit()
        return outcome

    async def record_metrics(self, metrics: SourceMetrics) -> None:
        stats = await self.get_source_stats(metrics.source_id)
        if stats is None:
            logger.debug("Metrics for unknown source ignored", source_id=metrics.source_id)
            return

        scrape_count = stats['scrape_count'] + 1
        success_count = stats['success_count'] + int(metrics.success)
        avg = running_average(stats['avg_response_time_ms'], scrape_count, metrics.response_time_ms)

        await self._conn.execute(
            """
            UPDATE content_sources SET
                last_scraped_at = ?, last_method = ?, avg_response_time_ms = ?,
                success_rate = ?, scrape_count = ?, success_count = ?
            WHERE id = ?
            """,
            (
                metrics.last_scraped_at.isoformat(), metrics.method, avg,
                100.0 * success_count / scrape_count, scrape_count, success_count,
                metrics.source_id,
            ),
        )
        await self._conn.commit()

    async def count_articles(self, source_id: str | None = None) -> int:
        query, params = "SELECT COUNT(*) FROM articles", ()
        if source_id:
            query, params = query + " WHERE source_id = ?", (source_id,)
        async with self._conn.execute(query, params) as cursor:
            row = await cursor.fetchone()
        return row[0]


def _row_to_source(row: Any) -> SourceDescriptor:
    return SourceDescriptor(
        id=row['id'],
        feed_url=row['feed_url'],
        source_type=row['source_type'],
        region=row['region'],
        canonical_domain=row['canonical_domain'],
        name=row['name'],
    )


def _iso(value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.isoformat()
    return value
