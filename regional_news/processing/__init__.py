"""Content processing module."""

from .dedupe import DuplicateTracker
from .extractor import ContentExtractor, ExtractedContent, extract_content, score_div_text
from .relevance import RelevanceScore, RelevanceScorer, SourceType
from .scoring import ExtractionMethod, quality_score

__all__ = [
    'ContentExtractor',
    'ExtractedContent',
    'extract_content',
    'score_div_text',
    'RelevanceScorer',
    'RelevanceScore',
    'SourceType',
    'ExtractionMethod',
    'quality_score',
    'DuplicateTracker',
]
