"""Article-block scanning for listing pages without a feed."""

from selectolax.parser import HTMLParser, Node

from ..config import Settings, get_settings
from ..exceptions import ExtractionEmpty
from ..logging import get_logger, log_processing_stage
from ..processing.extractor import node_text
from ..processing.scoring import ExtractionMethod, quality_score
from ..utils import count_words, parse_date_string, resolve_url
from .sources import ArticleCandidate

logger = get_logger(__name__)

BLOCK_CLASS_TOKENS = ('story', 'article', 'post', 'entry', 'news')
BLOCK_TAGS = 'article, div, section, li'

HEADING_SELECTORS = [
    'h1', 'h2', 'h3', 'h4',
    '.title, .headline, [class*="title"], [class*="headline"]',
    'a',
]

CONTENT_DIV_SELECTOR = (
    'div[class*="content"], div[class*="summary"], div[class*="excerpt"], '
    'div[class*="body"], div[class*="text"]'
)

MIN_TITLE_LENGTH = 10


class HTMLArticleScanner:
    """Finds repeated article-shaped blocks on a listing page."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def scan(self, html: str, page_url: str) -> list[ArticleCandidate]:
        """Extract article candidates from a listing page.

        Args:
            html: Listing page markup
            page_url: URL of the page, used to resolve block links

        Returns:
            Candidates for blocks with a real title and at least 50 words
        """
        tree = HTMLParser(html or "")
        tree.strip_tags(['script', 'style', 'noscript'])
        blocks, tier = self.find_blocks(tree)

        candidates = []
        for block in blocks:
            title = self._block_title(block)
            body = self._block_body(block)
            words = count_words(body)
            if len(title) <= MIN_TITLE_LENGTH or words < self.settings.min_word_count:
                continue

            try:
                candidates.append(ArticleCandidate(
                    title=title,
                    body=body,
                    source_url=self._block_link(block, page_url),
                    published_at=self._block_date(block),
                    extraction_method=ExtractionMethod.HTML_SCAN.value,
                    content_quality_score=quality_score(words, ExtractionMethod.HTML_SCAN),
                ))
            except (ExtractionEmpty, ValueError) as e:
                logger.debug("Skipping listing block", url=page_url, error=str(e))

        logger.info(**log_processing_stage(
            stage="html_scan",
            input_count=len(blocks),
            output_count=len(candidates),
            url=page_url,
            tier=tier,
        ))
        return candidates

    def find_blocks(self, tree: HTMLParser) -> tuple[list[Node], str]:
        """Select candidate blocks from the first tier that yields any."""
        limit = self.settings.max_scan_blocks
        tiers = [
            ('class_tagged', [
                node for node in tree.css(BLOCK_TAGS)
                if _class_contains(node, BLOCK_CLASS_TOKENS)
            ]),
            ('article_tag', tree.css('article')),
            ('content_div', tree.css('div[class*="content"]')),
        ]
        for tier, nodes in tiers:
            outermost = _outermost(nodes)
            if outermost:
                return outermost[:limit], tier
        return [], 'none'

    def _block_title(self, block: Node) -> str:
        for selector in HEADING_SELECTORS:
            node = block.css_first(selector)
            if node is not None:
                text = node_text(node)
                if text:
                    return text
        return ""

    def _block_body(self, block: Node) -> str:
        content_node = block.css_first(CONTENT_DIV_SELECTOR)
        content_text = node_text(content_node) if content_node is not None else ""
        paragraphs = [node_text(p) for p in block.css('p')]
        paragraph_text = "\n\n".join(p for p in paragraphs if p)
        return content_text if len(content_text) > len(paragraph_text) else paragraph_text

    def _block_link(self, block: Node, page_url: str) -> str:
        for selector in ('a[href]', 'link[href]'):
            for node in block.css(selector):
                resolved = resolve_url(node.attributes.get('href') or '', page_url)
                if resolved:
                    return resolved
        return page_url

    def _block_date(self, block: Node):
        node = block.css_first('time[datetime]')
        if node is None:
            return None
        return parse_date_string(node.attributes.get('datetime') or '')


def _class_contains(node: Node, tokens: tuple[str, ...]) -> bool:
    classes = (node.attributes.get('class') or '').lower()
    return any(token in classes for token in tokens)


def _ancestor_ids(node: Node) -> list[int]:
    ids = []
    parent = node.parent
    while parent is not None:
        ids.append(parent.mem_id)
        parent = parent.parent
    return ids


def _outermost(nodes: list[Node]) -> list[Node]:
    """Reduce matched nodes to one node per article.

    A matched node holding two or more headed matches is a listing wrapper
    and is dropped; of the rest, nodes nested inside another match are
    dropped.
    """
    ids = {node.mem_id for node in nodes}
    headed_children: dict[int, int] = {}
    for node in nodes:
        if node.css_first('h1, h2, h3, h4') is None:
            continue
        for ancestor in _ancestor_ids(node):
            if ancestor in ids:
                headed_children[ancestor] = headed_children.get(ancestor, 0) + 1

    kept = [node for node in nodes if headed_children.get(node.mem_id, 0) < 2]
    kept_ids = {node.mem_id for node in kept}
    return [
        node for node in kept
        if not any(ancestor in kept_ids for ancestor in _ancestor_ids(node))
    ]
