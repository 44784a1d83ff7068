"""
In-run duplicate suppression on canonical article URLs.

Cross-run duplicates are settled by the store's uniqueness constraint; this
tracker only stops the same URL being submitted twice within one scrape.
"""

from dataclasses import dataclass, field

from ..logging import get_logger
from ..utils import normalize_url

logger = get_logger(__name__)


@dataclass
class DuplicateTracker:
    """Remembers canonical URLs seen during one orchestration run."""
    seen: set[str] = field(default_factory=set)

    def check_and_add(self, url: str) -> bool:
        """Record a URL.

        Returns:
            True if the URL was already seen in this run
        """
        canonical = normalize_url(url)
        if canonical in self.seen:
            logger.debug("Duplicate URL in run", url=url)
            return True
        self.seen.add(canonical)
        return False
