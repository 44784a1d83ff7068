"""
Regional relevance scoring for news articles.

The score is additive and deterministic: a prior from the source type plus
bonuses for each region keyword, landmark, organization and postcode found
in the article text, clamped to 0-100.
"""

from dataclasses import dataclass, field
from enum import Enum

from ..config import RegionConfig, RegionRegistry, get_region_registry
from ..exceptions import ConfigurationMissing
from ..logging import get_logger

logger = get_logger(__name__)


class SourceType(str, Enum):
    """Source type priors."""
    HYPERLOCAL = "hyperlocal"
    REGIONAL = "regional"
    NATIONAL = "national"


BASE_SCORES = {
    SourceType.HYPERLOCAL: 70,
    SourceType.REGIONAL: 40,
    SourceType.NATIONAL: 0,
}

KEYWORD_BONUS = 25
LANDMARK_BONUS = 20
ORGANIZATION_BONUS = 15
POSTCODE_BONUS = 15


@dataclass
class RelevanceScore:
    """Relevance scoring result."""
    score: int
    base_score: int
    matched: dict[str, list[str]] = field(default_factory=dict)
    region_found: bool = True


def _source_type(value: str | SourceType | None) -> SourceType:
    try:
        return SourceType((value or "").strip().lower() if isinstance(value, str) else value)
    except ValueError:
        return SourceType.NATIONAL


class RelevanceScorer:
    """Regional relevance scorer backed by a region registry."""

    def __init__(self, registry: RegionRegistry | None = None):
        self.registry = registry or get_region_registry()

    def score(
        self,
        title: str,
        body: str,
        summary: str = "",
        source_type: str | SourceType | None = SourceType.NATIONAL,
        region: str | None = None,
    ) -> int:
        """Return the clamped relevance score for an article."""
        return self.score_details(title, body, summary, source_type, region).score

    def score_details(
        self,
        title: str,
        body: str,
        summary: str = "",
        source_type: str | SourceType | None = SourceType.NATIONAL,
        region: str | None = None,
    ) -> RelevanceScore:
        """Score an article and report which region terms matched.

        Args:
            title: Article title
            body: Article body text
            summary: Feed description, if any
            source_type: hyperlocal, regional or national; unknown types score as national
            region: Region name to match against

        Returns:
            RelevanceScore with the clamped score and matched terms per category
        """
        base = BASE_SCORES[_source_type(source_type)]

        try:
            region_config = self.registry.require(region)
        except ConfigurationMissing as e:
            logger.debug("Region config missing, using base score", region=region, error=str(e))
            return RelevanceScore(score=_clamp(base), base_score=base, region_found=False)

        text = " ".join(part for part in (title, body, summary) if part).lower()
        matched = match_region_terms(text, region_config)

        total = (
            base
            + KEYWORD_BONUS * len(matched["keywords"])
            + LANDMARK_BONUS * len(matched["landmarks"])
            + ORGANIZATION_BONUS * len(matched["organizations"])
            + POSTCODE_BONUS * len(matched["postcodes"])
        )

        return RelevanceScore(score=_clamp(total), base_score=base, matched=matched)


def match_region_terms(text_lower: str, region: RegionConfig) -> dict[str, list[str]]:
    """Find which configured terms occur in lower-cased article text.

    Each configured entry is checked once; duplicate entries in a list are
    only counted once.
    """
    def _hits(terms: list[str]) -> list[str]:
        seen: list[str] = []
        for term in terms:
            needle = term.strip().lower()
            if needle and needle not in seen and needle in text_lower:
                seen.append(needle)
        return seen

    return {
        "keywords": _hits(region.keywords),
        "landmarks": _hits(region.landmarks),
        "organizations": _hits(region.organizations),
        "postcodes": _hits(region.postcodes),
    }


def _clamp(score: int) -> int:
    return max(0, min(100, score))
