"""Utility functions for the regional news ingest core."""

import html
import re
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from pathlib import Path
from urllib.parse import urljoin, urlparse

from .logging import get_logger

logger = get_logger(__name__)

_WHITESPACE_RE = re.compile(r'\s+')
_TAG_RE = re.compile(r'<[^>]+>')
_NON_HTTP_SCHEMES = ('javascript:', 'mailto:', 'tel:', 'data:')


def normalize_url(url: str) -> str:
    """Normalize URL for duplicate detection.

    Lower-cases scheme and host, drops the fragment and any trailing slash
    on the path, keeps the query string.

    Args:
        url: Raw URL string

    Returns:
        Normalized URL
    """
    parsed = urlparse(url.strip())
    path = parsed.path.rstrip('/')
    normalized = f"{parsed.scheme.lower()}://{parsed.netloc.lower()}{path}"

    if parsed.query:
        normalized += f"?{parsed.query}"

    return normalized


def resolve_url(href: str, base_url: str) -> str:
    """Resolve a possibly relative link against the page or feed it came from.

    Args:
        href: Link as found in the document
        base_url: URL of the document

    Returns:
        Absolute URL, or an empty string for non-navigable links
    """
    href = html.unescape((href or '').strip())
    if not href or href.startswith('#') or href.lower().startswith(_NON_HTTP_SCHEMES):
        return ''
    return urljoin(base_url, href)


def extract_domain(url: str) -> str:
    """Extract domain from URL.

    Args:
        url: URL string

    Returns:
        Domain name without a leading ``www.``
    """
    domain = urlparse(url).netloc.lower()
    if domain.startswith('www.'):
        domain = domain[4:]
    return domain


def site_root(url: str) -> str:
    """Return the scheme and host of a URL with a trailing slash."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}/"


def is_valid_url(url: str) -> bool:
    """Check if URL is an absolute http(s) URL.

    Args:
        url: URL to validate

    Returns:
        True if URL is valid
    """
    try:
        result = urlparse(url)
    except ValueError:
        return False
    return result.scheme in ('http', 'https') and bool(result.netloc)


def parse_date_string(date_str: str) -> datetime | None:
    """Parse various date string formats.

    Args:
        date_str: Date string to parse

    Returns:
        Timezone-aware datetime or None if parsing fails
    """
    if not date_str:
        return None

    date_str = date_str.strip()

    # RFC 2822, common in RSS feeds: "Thu, 17 Jul 2025 23:17:14 GMT"
    try:
        parsed = parsedate_to_datetime(date_str)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed
    except (ValueError, TypeError, IndexError):
        pass

    try:
        parsed = datetime.fromisoformat(date_str.replace('Z', '+00:00'))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed
    except ValueError:
        pass

    formats = [
        "%Y-%m-%d",
        "%Y-%m-%dT%H:%M:%S.%fZ",
        "%Y-%m-%d %H:%M:%S",
        "%d/%m/%Y",
        "%B %d, %Y",
        "%b %d, %Y",
        "%d %B %Y",
        "%d %b %Y",
        "%a, %d %b %Y %H:%M:%S %Z",
        "%a, %d %b %Y %H:%M:%S",
    ]

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue

    logger.debug("Failed to parse date string", date_string=date_str)
    return None


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def clean_text(text: str) -> str:
    """Unescape HTML entities and collapse whitespace.

    Args:
        text: Raw text

    Returns:
        Cleaned text
    """
    if not text:
        return ""
    text = html.unescape(text).replace('\xa0', ' ')
    return _WHITESPACE_RE.sub(' ', text).strip()


def strip_html(markup: str) -> str:
    """Remove tags from a fragment of markup and clean the remaining text.

    Feed descriptions are often escaped HTML, so entities are decoded first
    and any tags that appear are removed afterwards.
    """
    if not markup:
        return ""
    text = html.unescape(markup)
    text = _TAG_RE.sub(' ', text)
    return clean_text(text)


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    if not text:
        return 0
    return len(text.split())


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix


def ensure_directory(path: str | Path, mode: int = 0o700) -> Path:
    """Ensure directory exists with secure permissions.

    Args:
        path: Directory path
        mode: Directory permissions (default: 0o700 - owner read/write/execute only)

    Returns:
        Path object
    """
    path_obj = Path(path)
    path_obj.mkdir(parents=True, exist_ok=True, mode=mode)
    return path_obj
