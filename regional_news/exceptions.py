"""Error taxonomy for the ingest core.

Every error below is recoverable somewhere inside the core. Strategies catch
them and escalate; only total exhaustion of all strategies is reported, and
even that as a failed ``ScrapeResult`` rather than an exception.
"""


class ScraperError(Exception):
    """Base class for ingest errors."""


class FetchError(ScraperError):
    """Network failure, timeout or non-2xx response."""

    def __init__(self, url: str, status: int | None = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        if status is not None:
            message = f"HTTP {status} fetching {url}"
            if reason:
                message += f": {reason}"
        else:
            message = f"Failed to fetch {url}: {reason or 'unknown error'}"
        super().__init__(message)


class NotFeedContent(ScraperError):
    """Response body does not look like RSS or Atom."""


class ExtractionEmpty(ScraperError):
    """No extraction path produced enough words."""


class StorageConflict(ScraperError):
    """An article with the same canonical URL already exists."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Article already stored: {url}")


class ConfigurationMissing(ScraperError):
    """No region configuration exists for the requested region."""

    def __init__(self, region: str | None):
        self.region = region
        super().__init__(f"No region configuration for: {region!r}")
