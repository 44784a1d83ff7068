"""
Content quality scoring for extracted articles.

Quality is a word-count-derived 0-100 score whose multiplier and ceiling
depend on how the text was obtained. Enriched feed content is trusted most,
listing-page scans less, and meta-description extraction least.
"""

from enum import Enum


class ExtractionMethod(str, Enum):
    """How an article body was obtained."""
    ENRICHED = "enriched"              # full page text, >= 200 chars
    ENRICHED_SHORT = "enriched_short"  # full page text, 50-199 chars
    FEED_SUMMARY = "feed_summary"      # feed description used as body
    HTML_SCAN = "html_scan"            # listing-page block
    BASIC = "basic"                    # root page title + meta description


FEED_METHODS = frozenset({
    ExtractionMethod.ENRICHED,
    ExtractionMethod.ENRICHED_SHORT,
    ExtractionMethod.FEED_SUMMARY,
})


def feed_quality_score(word_count: int) -> int:
    """Quality of feed-derived content: two points per word, capped at 100."""
    return min(100, word_count * 2)


def html_scan_quality_score(word_count: int) -> int:
    """Quality of listing-page blocks: 1.5 points per word, capped at 100."""
    return min(100, int(word_count * 1.5))


def basic_quality_score(word_count: int) -> int:
    """Quality of meta/paragraph scraps: one point per word, capped at 75."""
    return min(75, word_count)


def quality_score(word_count: int, method: ExtractionMethod | str) -> int:
    """Score content by word count using the multiplier for its extraction method.

    Args:
        word_count: Whitespace-tokenized word count of the body
        method: Extraction method that produced the body

    Returns:
        Integer quality score in [0, 100]
    """
    method = ExtractionMethod(method)
    word_count = max(0, word_count)

    if method in FEED_METHODS:
        return feed_quality_score(word_count)
    if method is ExtractionMethod.HTML_SCAN:
        return html_scan_quality_score(word_count)
    return basic_quality_score(word_count)
