"""Timeout-guarded HTTP fetching."""

import asyncio
import time
from dataclasses import dataclass

import aiohttp

from ..config import Settings, get_settings
from ..exceptions import FetchError
from ..logging import get_logger, log_fetch

logger = get_logger(__name__)

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml;q=0.9, */*;q=0.8"
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

BROWSER_HEADERS = {
    "Accept-Language": "en-GB,en;q=0.9",
    "Cache-Control": "no-cache",
}


@dataclass
class FetchResponse:
    """Successful response."""
    status: int
    text: str
    url: str
    elapsed_ms: int


class Fetcher:
    """Single-attempt HTTP GET with a mandatory timeout.

    Use as an async context manager to own a session, or pass an existing
    ``aiohttp.ClientSession`` to share one across components.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self.settings = settings or get_settings()
        self.session = session
        self._owns_session = session is None
        self.max_bytes = self.settings.max_response_size_mb * 1024 * 1024

    async def __aenter__(self) -> "Fetcher":
        if self.session is None:
            connector = aiohttp.TCPConnector(limit=20, limit_per_host=6)
            self.session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": self.settings.user_agent, **BROWSER_HEADERS},
            )
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_session and self.session is not None:
            await self.session.close()
            self.session = None

    async def fetch(
        self,
        url: str,
        accept: str = HTML_ACCEPT,
        timeout: float | None = None,
    ) -> FetchResponse:
        """Fetch a URL once.

        Args:
            url: Absolute URL
            accept: Accept header value
            timeout: Total timeout in seconds; defaults to ``default_timeout_seconds``

        Returns:
            FetchResponse for a 2xx response

        Raises:
            FetchError: On non-2xx status, network failure, timeout or oversized body
        """
        if self.session is None:
            raise RuntimeError("Session not initialized. Use async context manager.")

        timeout = timeout or self.settings.default_timeout_seconds
        headers = {
            "User-Agent": self.settings.user_agent,
            "Accept": accept,
            **BROWSER_HEADERS,
        }
        start = time.monotonic()

        try:
            async with self.session.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
                allow_redirects=True,
            ) as response:
                elapsed_ms = int((time.monotonic() - start) * 1000)
                logger.debug(**log_fetch(url, response.status, elapsed_ms, accept=accept))

                if not 200 <= response.status < 300:
                    raise FetchError(url, status=response.status, reason=response.reason or "")

                if response.content_length and response.content_length > self.max_bytes:
                    raise FetchError(url, status=response.status, reason="response too large")

                body = bytearray()
                async for chunk in response.content.iter_chunked(64 * 1024):
                    body.extend(chunk)
                    if len(body) > self.max_bytes:
                        raise FetchError(url, status=response.status, reason="response too large")

                try:
                    text = body.decode(response.charset or "utf-8", errors="replace")
                except LookupError:
                    text = body.decode("utf-8", errors="replace")
                return FetchResponse(
                    status=response.status,
                    text=text,
                    url=str(response.url),
                    elapsed_ms=int((time.monotonic() - start) * 1000),
                )

        except asyncio.TimeoutError as e:
            logger.warning("Fetch timed out", url=url, timeout=timeout)
            raise FetchError(url, reason=f"timeout after {timeout}s") from e
        except aiohttp.ClientError as e:
            logger.warning("Fetch failed", url=url, error=str(e))
            raise FetchError(url, reason=str(e) or e.__class__.__name__) from e
