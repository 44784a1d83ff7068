"""Text classification helpers used by the content extractor."""

import re

from ..utils import clean_text

NAVIGATION_PHRASES = (
    'skip to content', 'skip to main', 'main menu', 'navigation', 'home page',
    'back to top', 'sign in', 'log in', 'register', 'my account', 'search this site',
    'all rights reserved', 'privacy policy', 'cookie policy', 'terms of use',
    'terms and conditions', 'contact us', 'site map', 'sitemap', 'previous article',
    'next article', 'read more', 'load more', 'view all',
)

ADVERTISING_PHRASES = (
    'advertisement', 'advertising', 'sponsored', 'promoted content', 'paid content',
    'partner content', 'ad choices', 'adchoices', 'buy now', 'shop now',
    'special offer', 'limited time offer', 'affiliate', 'commission on purchases',
)

SOCIAL_PHRASES = (
    'follow us', 'like us on', 'share this', 'share on', 'share via',
    'tweet this', 'on facebook', 'on twitter', 'on instagram', 'on whatsapp',
    'on tiktok', 'join our whatsapp', 'subscribe to our newsletter',
    'sign up to our newsletter', 'sign up for our newsletter', 'get the latest news',
)

_METADATA_PATTERNS = (
    re.compile(r'^(by|posted|published|updated|last updated|filed under|tags?)\b[\s:]', re.I),
    re.compile(r'^(photo|image|picture|credit|source)\s*:', re.I),
    re.compile(r'\b\d+\s+min(ute)?s?\s+read\b', re.I),
    re.compile(r'^(copyright|©)', re.I),
    re.compile(
        r'^\W*(mon|tue|wed|thu|fri|sat|sun)?\w*,?\s*\d{1,2}(st|nd|rd|th)?\s+'
        r'(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)\w*\s+\d{4}',
        re.I
    ),
)

SENTENCE_SPLIT_RE = re.compile(r'[.!?]+')
PROPER_NOUN_RE = re.compile(r'\b[A-Z][a-z]+\b')
PROMOTIONAL_RE = re.compile(r'\b(click|subscribe|follow|share)\b', re.I)


def _contains_any(text: str, phrases: tuple[str, ...]) -> bool:
    text_lower = text.lower()
    return any(phrase in text_lower for phrase in phrases)


def is_navigation_text(text: str) -> bool:
    """Menus, skip links, footer legalese and pagination prompts."""
    return _contains_any(text, NAVIGATION_PHRASES)


def is_advertising_text(text: str) -> bool:
    """Ad slots, sponsorship labels and shopping prompts."""
    return _contains_any(text, ADVERTISING_PHRASES)


def is_social_text(text: str) -> bool:
    """Follow/share prompts and newsletter sign-up boilerplate."""
    return _contains_any(text, SOCIAL_PHRASES)


def is_metadata_text(text: str) -> bool:
    """Bylines, datelines, captions, reading-time and copyright lines."""
    stripped = text.strip()
    return any(pattern.search(stripped) for pattern in _METADATA_PATTERNS)


def sentence_fragments(text: str) -> list[str]:
    """Split text on sentence punctuation, dropping empty fragments."""
    return [s.strip() for s in SENTENCE_SPLIT_RE.split(text) if s.strip()]


def count_sentences(text: str) -> int:
    """Number of non-empty sentence fragments."""
    return len(sentence_fragments(text))


def count_proper_nouns(text: str) -> int:
    """Capitalised words such as names and places.

    Sentence-initial words count too; the heuristic only needs a rough
    signal of prose written about people and places.
    """
    return len(PROPER_NOUN_RE.findall(text))


def count_promotional_terms(text: str) -> int:
    """Occurrences of click/subscribe/follow/share."""
    return len(PROMOTIONAL_RE.findall(text))


def has_substantial_content(text: str, min_fragment_chars: int = 20, min_words: int = 15) -> bool:
    """Whether text reads like prose rather than a label or a list of links.

    Args:
        text: Cleaned paragraph text
        min_fragment_chars: Minimum length of at least one sentence fragment
        min_words: Minimum total word count

    Returns:
        True if the paragraph carries real content
    """
    if len(text.split()) < min_words:
        return False
    return any(len(fragment) >= min_fragment_chars for fragment in sentence_fragments(text))


def is_quality_paragraph(text: str, min_length: int, strict: bool = False) -> bool:
    """Paragraph quality filter.

    Args:
        text: Paragraph text (cleaned or raw)
        min_length: Length the cleaned text must exceed
        strict: Also reject bare metadata lines

    Returns:
        True if the paragraph should be kept
    """
    cleaned = clean_text(text)
    if len(cleaned) <= min_length:
        return False
    if is_navigation_text(cleaned) or is_advertising_text(cleaned) or is_social_text(cleaned):
        return False
    if strict and is_metadata_text(cleaned):
        return False
    return has_substantial_content(cleaned)
