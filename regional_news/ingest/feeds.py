"""RSS and Atom feed parsing."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import feedparser

from ..config import get_settings
from ..exceptions import NotFeedContent
from ..logging import get_logger
from ..utils import is_valid_url, parse_date_string, resolve_url, strip_html

logger = get_logger(__name__)

FEED_MARKERS = ('<rss', '<feed', '<item', '<entry>')


@dataclass
class FeedItem:
    """One feed entry before enrichment."""
    title: str
    link: str
    summary: str = ""
    published_at: datetime | None = None
    author: str | None = None


def looks_like_feed(text: str) -> bool:
    """Cheap check for syndication markup."""
    if not text:
        return False
    lowered = text.lower()
    return any(marker in lowered for marker in FEED_MARKERS)


def parse_feed(text: str, feed_url: str = "", max_items: int | None = None) -> list[FeedItem]:
    """Parse an RSS or Atom document into feed items.

    Args:
        text: Raw response body
        feed_url: URL the feed was fetched from, used to resolve relative links
        max_items: Maximum number of items returned (defaults to ``max_feed_items``)

    Returns:
        Up to ``max_items`` FeedItems in document order

    Raises:
        NotFeedContent: If the body carries no feed markup
    """
    if not looks_like_feed(text):
        raise NotFeedContent(f"No RSS/Atom markup in response from {feed_url or 'input'}")

    max_items = max_items or get_settings().max_feed_items
    parsed = feedparser.parse(
        text,
        response_headers={'content-location': feed_url} if feed_url else {},
    )

    if parsed.bozo and not parsed.entries:
        logger.warning(
            "Feed could not be parsed",
            url=feed_url,
            error=str(parsed.get('bozo_exception', '')),
        )

    items: list[FeedItem] = []
    skipped = 0
    for entry in parsed.entries:
        item = _entry_to_item(entry, feed_url)
        if item is None:
            skipped += 1
            continue
        items.append(item)
        if len(items) >= max_items:
            break

    logger.info("Feed parsed", url=feed_url, entries=len(parsed.entries), items=len(items), skipped=skipped)
    return items


def _entry_to_item(entry: Any, feed_url: str) -> FeedItem | None:
    title = strip_html(entry.get('title', ''))
    link = _entry_link(entry, feed_url)

    if not title and not link:
        return None

    return FeedItem(
        title=title,
        link=link,
        summary=_entry_summary(entry),
        published_at=_entry_date(entry),
        author=_entry_author(entry),
    )


def _entry_link(entry: Any, feed_url: str) -> str:
    candidates = [entry.get('link', '')]
    candidates.extend(
        link.get('href', '') for link in entry.get('links', [])
        if link.get('rel', 'alternate') == 'alternate'
    )
    candidates.append(entry.get('id', ''))

    for candidate in candidates:
        if not candidate:
            continue
        resolved = resolve_url(candidate, feed_url) if feed_url else candidate.strip()
        if is_valid_url(resolved):
            return resolved
    return ""


def _entry_summary(entry: Any) -> str:
    summary = entry.get('summary') or entry.get('description') or ''
    if not summary:
        for content in entry.get('content', []):
            if content.get('value'):
                summary = content['value']
                break
    return summary


def _entry_date(entry: Any) -> datetime | None:
    for key in ('published', 'updated', 'created'):
        value = entry.get(key)
        if value:
            parsed = parse_date_string(value)
            if parsed:
                return parsed

    for key in ('published_parsed', 'updated_parsed'):
        struct = entry.get(key)
        if struct:
            return datetime(*struct[:6], tzinfo=UTC)
    return None


def _entry_author(entry: Any) -> str | None:
    author = entry.get('author') or entry.get('dc_creator')
    if not author:
        detail = entry.get('author_detail') or {}
        author = detail.get('name')
    if not author:
        return None
    return strip_html(author) or None
