"""Last-resort feed discovery and basic page extraction."""

from selectolax.parser import HTMLParser

from ..config import Settings, get_settings
from ..exceptions import ExtractionEmpty, FetchError, NotFeedContent
from ..logging import get_logger
from ..processing.extractor import node_text
from ..processing.scoring import ExtractionMethod, quality_score
from ..processing.text_utils import is_advertising_text, is_navigation_text
from ..utils import clean_text, count_words, normalize_url, resolve_url, site_root
from .enricher import ArticleEnricher
from .feeds import parse_feed
from .fetcher import FEED_ACCEPT, HTML_ACCEPT, Fetcher
from .sources import ArticleCandidate

logger = get_logger(__name__)

FEED_REL_TOKENS = {'alternate', 'feed', 'rss', 'atom'}
FEED_MIME_TYPES = {
    'application/rss+xml',
    'application/atom+xml',
    'application/feed+json',
    'application/rdf+xml',
    'application/xml',
    'text/xml',
}
COMMON_FEED_PATHS = ['/feed', '/rss', '/feed.xml', '/rss.xml', '/atom.xml', '/feeds/all.atom.xml']

MIN_DESCRIPTION_WORDS = 20
MAX_BASIC_PARAGRAPHS = 5
MIN_BASIC_PARAGRAPH_CHARS = 50


def discover_feed_urls(html: str, root_url: str) -> list[str]:
    """Candidate feed URLs for a site, link hints first, then common paths.

    Args:
        html: Root page markup (may be empty)
        root_url: Site root the paths are resolved against

    Returns:
        Absolute URLs, deduplicated in order
    """
    candidates: list[str] = []

    if html:
        tree = HTMLParser(html)
        for link in tree.css('link[href]'):
            rel_tokens = set((link.attributes.get('rel') or '').lower().split())
            mime = (link.attributes.get('type') or '').lower().split(';')[0].strip()

            is_feed_rel = bool(rel_tokens & FEED_REL_TOKENS)
            if 'alternate' in rel_tokens and mime and mime not in FEED_MIME_TYPES:
                # hreflang and print alternates
                is_feed_rel = False
            if is_feed_rel or mime in FEED_MIME_TYPES:
                href = resolve_url(link.attributes.get('href') or '', root_url)
                if href:
                    candidates.append(href)

    candidates.extend(resolve_url(path, root_url) for path in COMMON_FEED_PATHS)

    seen: set[str] = set()
    unique = []
    for url in candidates:
        key = normalize_url(url)
        if key not in seen:
            seen.add(key)
            unique.append(url)
    return unique


def basic_extract(html: str, page_url: str, min_words: int = 50) -> ArticleCandidate:
    """Title plus meta description (or leading paragraphs) from a page.

    Raises:
        ExtractionEmpty: If no title was found or the text is under ``min_words``
    """
    tree = HTMLParser(html or "")
    tree.strip_tags(['script', 'style', 'noscript'])

    title = ""
    h1 = tree.css_first('h1')
    title_node = tree.css_first('title')
    for candidate in (
        node_text(h1) if h1 is not None else "",
        node_text(title_node) if title_node is not None else "",
        _meta(tree, 'og:title'),
    ):
        if candidate:
            title = candidate
            break

    description = ""
    for key in ('description', 'og:description', 'twitter:description'):
        description = _meta(tree, key)
        if description:
            break

    body = description
    if count_words(description) < MIN_DESCRIPTION_WORDS:
        paragraphs = []
        for p in tree.css('p'):
            text = node_text(p)
            if len(text) < MIN_BASIC_PARAGRAPH_CHARS:
                continue
            if is_navigation_text(text) or is_advertising_text(text):
                continue
            paragraphs.append(text)
            if len(paragraphs) >= MAX_BASIC_PARAGRAPHS:
                break
        body = "\n\n".join(([description] if description else []) + paragraphs)

    words = count_words(body)
    if not title or words < min_words:
        raise ExtractionEmpty(f"Basic extraction found {words} words on {page_url}")

    return ArticleCandidate(
        title=title,
        body=body,
        source_url=page_url,
        summary=description,
        extraction_method=ExtractionMethod.BASIC.value,
        content_quality_score=quality_score(words, ExtractionMethod.BASIC),
    )


class FeedDiscovery:
    """Looks for a working feed on the source's site, else scrapes the root page."""

    def __init__(
        self,
        fetcher: Fetcher,
        enricher: ArticleEnricher | None = None,
        settings: Settings | None = None,
    ):
        self.fetcher = fetcher
        self.settings = settings or get_settings()
        self.enricher = enricher or ArticleEnricher(fetcher, self.settings)

    async def discover(self, feed_url: str) -> list[ArticleCandidate]:
        """Find candidates for a source whose configured feed failed.

        Args:
            feed_url: The configured (failing) feed URL

        Returns:
            Non-empty list of candidates

        Raises:
            FetchError: If the root page could not be fetched and no feed was found
            ExtractionEmpty: If the root page had too little text
        """
        root_url = site_root(feed_url)
        root_html, root_error = "", None
        try:
            response = await self.fetcher.fetch(
                root_url, accept=HTML_ACCEPT, timeout=self.settings.default_timeout_seconds
            )
            root_html, root_url = response.text, response.url or root_url
        except FetchError as e:
            root_error = e
            logger.info("Root page fetch failed", url=root_url, error=str(e))

        skip = normalize_url(feed_url)
        for candidate_url in discover_feed_urls(root_html, root_url):
            if normalize_url(candidate_url) == skip:
                continue
            candidates = await self._try_feed(candidate_url)
            if candidates:
                logger.info("Discovered working feed", source_feed=feed_url, feed=candidate_url)
                return candidates

        if root_error is not None:
            raise root_error

        return [basic_extract(root_html, root_url, self.settings.min_word_count)]

    async def _try_feed(self, url: str) -> list[ArticleCandidate]:
        try:
            response = await self.fetcher.fetch(
                url, accept=FEED_ACCEPT, timeout=self.settings.feed_timeout_seconds
            )
            items = parse_feed(response.text, response.url or url, self.settings.max_feed_items)
        except (FetchError, NotFeedContent) as e:
            logger.debug("Feed candidate rejected", url=url, error=str(e))
            return []
        if not items:
            return []
        return await self.enricher.enrich_all(items, url)


def _meta(tree: HTMLParser, key: str) -> str:
    node = tree.css_first(f'meta[name="{key}"]') or tree.css_first(f'meta[property="{key}"]')
    if node is None:
        return ""
    return clean_text(node.attributes.get("content") or "")
