"""Replace thin feed summaries with full article text."""

import asyncio

from ..config import Settings, get_settings
from ..exceptions import ExtractionEmpty, FetchError
from ..logging import get_logger, log_processing_stage
from ..processing.extractor import ContentExtractor
from ..processing.scoring import ExtractionMethod, quality_score
from ..utils import count_words, is_valid_url, strip_html
from .feeds import FeedItem
from .fetcher import HTML_ACCEPT, Fetcher
from .sources import ArticleCandidate

logger = get_logger(__name__)

ENRICHED_MIN_CHARS = 200
SHORT_MIN_CHARS = 50


class ArticleEnricher:
    """Fetches each feed item's page and picks the best available body."""

    def __init__(
        self,
        fetcher: Fetcher,
        settings: Settings | None = None,
        extractor: ContentExtractor | None = None,
    ):
        self.fetcher = fetcher
        self.settings = settings or get_settings()
        self.extractor = extractor or ContentExtractor()

    async def enrich_all(self, items: list[FeedItem], feed_url: str = "") -> list[ArticleCandidate]:
        """Enrich feed items through a bounded pool, keeping feed order.

        Items whose best body is under the word floor are dropped.
        """
        semaphore = asyncio.Semaphore(self.settings.enrichment_concurrency)

        async def _bounded(item: FeedItem) -> ArticleCandidate | None:
            async with semaphore:
                return await self.enrich(item)

        results = await asyncio.gather(*(_bounded(item) for item in items), return_exceptions=True)

        candidates = []
        for item, result in zip(items, results):
            if isinstance(result, Exception):
                logger.warning("Feed item enrichment failed", link=item.link, error=str(result))
            elif result is not None:
                candidates.append(result)

        logger.info(**log_processing_stage(
            stage="enrich",
            input_count=len(items),
            output_count=len(candidates),
            feed_url=feed_url,
        ))
        return candidates

    async def enrich(self, item: FeedItem) -> ArticleCandidate | None:
        """Build a candidate for one feed item, or None if it is too thin."""
        if not is_valid_url(item.link):
            logger.debug("Feed item has no usable link", title=item.title)
            return None

        summary = strip_html(item.summary)
        body, method, extracted_title = "", ExtractionMethod.FEED_SUMMARY, ""

        try:
            response = await self.fetcher.fetch(
                item.link,
                accept=HTML_ACCEPT,
                timeout=self.settings.article_timeout_seconds,
            )
        except FetchError as e:
            logger.info("Article fetch failed, using feed summary", link=item.link, error=str(e))
        else:
            extracted = self.extractor.extract(response.text)
            extracted_title = extracted.title
            body, method = choose_body(extracted.content, summary, self.settings.min_word_count)

        if not body:
            body, method = summary, ExtractionMethod.FEED_SUMMARY

        title = item.title or extracted_title
        words = count_words(body)
        if not title or words < self.settings.min_word_count:
            logger.debug("Dropping thin feed item", link=item.link, words=words, method=method.value)
            return None

        try:
            return ArticleCandidate(
                title=title,
                body=body,
                source_url=item.link,
                published_at=item.published_at,
                author=item.author,
                summary=summary,
                extraction_method=method.value,
                content_quality_score=quality_score(words, method),
            )
        except ExtractionEmpty:
            return None


def choose_body(extracted: str, summary: str, min_words: int = 50) -> tuple[str, ExtractionMethod]:
    """Pick the body text for an enriched item.

    Extracted page text wins when it is long enough in characters and in
    words; otherwise the cleaned feed summary is used.
    """
    if extracted and count_words(extracted) >= min_words:
        if len(extracted) >= ENRICHED_MIN_CHARS:
            return extracted, ExtractionMethod.ENRICHED
        if len(extracted) >= SHORT_MIN_CHARS:
            return extracted, ExtractionMethod.ENRICHED_SHORT
    return summary, ExtractionMethod.FEED_SUMMARY
