"""
Progressive article text extraction.

One HTML document goes in. The extractor scans for the title first, then
runs an ordered cascade of container strategies, a whole-document paragraph
scan and a readability-style div scorer. Each step runs at most once per
document and the first sufficient result wins.
"""

from dataclasses import dataclass
from typing import Any

import orjson
from selectolax.parser import HTMLParser, Node

from ..logging import get_logger
from ..utils import clean_text, count_words
from .text_utils import (
    count_promotional_terms,
    count_proper_nouns,
    count_sentences,
    is_quality_paragraph,
)

logger = get_logger(__name__)

MIN_TITLE_LENGTH = 10
MIN_STRATEGY_CHARS = 200
MIN_SUFFICIENT_WORDS = 50
CONTAINER_PARAGRAPH_MIN = 30
DOCUMENT_PARAGRAPH_MIN = 40
MAX_FALLBACK_PARAGRAPHS = 15
MIN_READABILITY_SCORE = 10

STRIP_TAGS = ['script', 'style', 'noscript', 'nav', 'header', 'footer']

CLASS_HEADING_SELECTORS = [
    'h1[class*="headline"], h2[class*="headline"], h3[class*="headline"]',
    'h1[class*="entry-title"], h2[class*="entry-title"], h3[class*="entry-title"]',
    'h1[class*="article-title"], h2[class*="article-title"], h3[class*="article-title"]',
]

NEWS_CONTAINER_CLASSES = ['story', 'article', 'post', 'entry', 'main-content']

CMS_CONTAINER_SELECTORS = [
    '[class*="entry-content"]',
    '[class*="post-content"]',
    '[class*="article-content"]',
    '[class*="article-body"]',
    '[class*="story-body"]',
    '[class*="post-body"]',
    '#content',
    '.content',
    '[data-testid="article-body"]',
]

# Body strategies in cascade order
BODY_STRATEGIES: list[tuple[str, list[str]]] = [
    ('news_container', [
        f'{tag}[class*="{cls}"]'
        for cls in NEWS_CONTAINER_CLASSES
        for tag in ('article', 'div', 'section')
    ]),
    ('structured_data', ['[itemprop="articleBody"]']),
    ('cms_container', CMS_CONTAINER_SELECTORS),
    ('semantic', ['main', 'article']),
]


@dataclass
class ExtractedContent:
    """Extraction result for one document."""
    title: str
    content: str
    strategy: str

    @property
    def word_count(self) -> int:
        return count_words(self.content)

    @property
    def is_empty(self) -> bool:
        return not self.content


@dataclass
class DivScore:
    """Readability score breakdown for one div."""
    score: int
    sentences: int
    proper_nouns: int
    length_bonus: int
    promotional_hits: int
    cookie_penalty: int


def node_text(node: Node) -> str:
    """Cleaned, whitespace-collapsed text of a node and its descendants."""
    return clean_text(node.text(deep=True, separator=' '))


def is_sufficient(text: str) -> bool:
    """Whether extracted text clears both the character and word bars."""
    return len(text) >= MIN_STRATEGY_CHARS and count_words(text) >= MIN_SUFFICIENT_WORDS


def score_div_text(text: str) -> DivScore:
    """Readability score of a block of text.

    score = sentences * 2 + proper nouns + (10 if longer than 500 chars)
            - 5 * promotional terms - (10 if it mentions cookies)
    """
    text = clean_text(text)
    sentences = count_sentences(text)
    proper_nouns = count_proper_nouns(text)
    length_bonus = 10 if len(text) > 500 else 0
    promotional_hits = count_promotional_terms(text)
    cookie_penalty = 10 if 'cookie' in text.lower() else 0

    score = sentences * 2 + proper_nouns + length_bonus - 5 * promotional_hits - cookie_penalty
    return DivScore(
        score=score,
        sentences=sentences,
        proper_nouns=proper_nouns,
        length_bonus=length_bonus,
        promotional_hits=promotional_hits,
        cookie_penalty=cookie_penalty,
    )


class ContentExtractor:
    """Multi-strategy article extractor over a selectolax DOM."""

    def extract(self, html: str) -> ExtractedContent:
        """Extract title and body text from an HTML document.

        Args:
            html: Raw HTML

        Returns:
            ExtractedContent; ``content`` is empty when nothing usable was found
        """
        if not html or not html.strip():
            return ExtractedContent(title="", content="", strategy="empty")

        tree = HTMLParser(html)

        json_ld = self._read_json_ld(tree)
        title = self.extract_title(tree, json_ld)

        tree.strip_tags(STRIP_TAGS)

        cascade_text, strategy = self._run_cascade(tree)
        if cascade_text:
            return ExtractedContent(title=title, content=cascade_text, strategy=strategy)

        scanned = self._scan_document_paragraphs(tree)
        if is_sufficient(scanned):
            logger.debug("Extraction used document paragraph scan", words=count_words(scanned))
            return ExtractedContent(title=title, content=scanned, strategy='paragraph_scan')

        readable = self._best_readability_div(tree)
        if readable:
            logger.debug("Extraction used readability fallback", words=count_words(readable))
            return ExtractedContent(title=title, content=readable, strategy='readability')

        if scanned:
            return ExtractedContent(title=title, content=scanned, strategy='paragraph_scan')

        logger.debug("Extraction found no usable content")
        return ExtractedContent(title=title, content="", strategy='empty')

    # ── Title ──────────────────────────────────────────────────────────────

    def extract_title(self, tree: HTMLParser, json_ld: list[Any] | None = None) -> str:
        """First candidate title longer than 10 characters, in priority order."""
        for candidate in self._title_candidates(tree, json_ld or []):
            cleaned = clean_text(candidate)
            if len(cleaned) > MIN_TITLE_LENGTH:
                return cleaned
        return ""

    def _title_candidates(self, tree: HTMLParser, json_ld: list[Any]):
        for selector in CLASS_HEADING_SELECTORS:
            for node in tree.css(selector):
                yield node_text(node)

        for itemprop in ('headline', 'name'):
            for node in tree.css(f'[itemprop="{itemprop}"]'):
                yield node.attributes.get('content') or node_text(node)

        yield _meta_content(tree, 'og:title')
        yield _meta_content(tree, 'twitter:title')

        for headline in _json_ld_headlines(json_ld):
            yield headline

        for node in tree.css('h1'):
            yield node_text(node)

        title_node = tree.css_first('title')
        if title_node is not None:
            yield node_text(title_node)

    def _read_json_ld(self, tree: HTMLParser) -> list[Any]:
        blocks = []
        for node in tree.css('script[type="application/ld+json"]'):
            raw = node.text(deep=True) or ''
            if not raw.strip():
                continue
            try:
                blocks.append(orjson.loads(raw))
            except orjson.JSONDecodeError:
                logger.debug("Skipping malformed JSON-LD block")
        return blocks

    # ── Body ───────────────────────────────────────────────────────────────

    def _run_cascade(self, tree: HTMLParser) -> tuple[str, str]:
        """Run container strategies in order; first to reach 200 chars wins."""
        for strategy, selectors in BODY_STRATEGIES:
            for selector in selectors:
                for container in tree.css(selector):
                    text = self._container_paragraphs(container)
                    if len(text) >= MIN_STRATEGY_CHARS:
                        logger.debug(
                            "Body strategy matched",
                            strategy=strategy,
                            selector=selector,
                            chars=len(text),
                        )
                        return text, strategy
        return "", "none"

    def _container_paragraphs(self, container: Node) -> str:
        paragraphs = [
            node_text(p) for p in container.css('p')
        ]
        kept = [p for p in paragraphs if is_quality_paragraph(p, CONTAINER_PARAGRAPH_MIN)]
        return "\n\n".join(kept)

    def _scan_document_paragraphs(self, tree: HTMLParser) -> str:
        """Whole-document pass with the strict paragraph filter."""
        kept: list[str] = []
        for p in tree.css('p'):
            text = node_text(p)
            if is_quality_paragraph(text, DOCUMENT_PARAGRAPH_MIN, strict=True):
                kept.append(text)
                if len(kept) >= MAX_FALLBACK_PARAGRAPHS:
                    break
        return "\n\n".join(kept)

    def _best_readability_div(self, tree: HTMLParser) -> str:
        """Highest-scoring div that holds no other qualifying div.

        Scores accumulate over all descendant text, so a wrapper always
        outscores its children; only innermost qualifying divs compete.
        """
        scored: list[tuple[Node, str, int]] = []
        for div in tree.css('div'):
            text = node_text(div)
            if not text:
                continue
            score = score_div_text(text).score
            if score > MIN_READABILITY_SCORE:
                scored.append((div, text, score))

        wrappers: set[int] = set()
        for div, _, _ in scored:
            parent = div.parent
            while parent is not None:
                wrappers.add(parent.mem_id)
                parent = parent.parent

        best_text = ""
        best_score = MIN_READABILITY_SCORE
        for div, text, score in scored:
            if div.mem_id in wrappers:
                continue
            if score > best_score:
                best_score = score
                best_text = text
        return best_text


def _meta_content(tree: HTMLParser, key: str) -> str:
    node = tree.css_first(f'meta[property="{key}"]') or tree.css_first(f'meta[name="{key}"]')
    if node is None:
        return ""
    return node.attributes.get('content') or ""


def _json_ld_headlines(blocks: list[Any]):
    """Yield every string ``headline`` value found in JSON-LD blocks."""
    stack = list(blocks)
    while stack:
        item = stack.pop(0)
        if isinstance(item, dict):
            headline = item.get('headline')
            if isinstance(headline, str):
                yield headline
            stack.extend(v for v in item.values() if isinstance(v, (dict, list)))
        elif isinstance(item, list):
            stack.extend(item)


_default_extractor = ContentExtractor()


def extract_content(html: str) -> ExtractedContent:
    """Extract with a shared extractor instance."""
    return _default_extractor.extract(html)
