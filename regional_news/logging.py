"""Structured logging for the ingest core.

Every scrape binds ``source_id`` and ``feed_url`` into structlog's context
variables, so log lines emitted deep inside the fetcher or extractor can be
attributed to a source without threading identifiers through each call.
"""

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog
from structlog import contextvars, dev, processors, stdlib

from .config import get_settings

NOISY_LOGGERS = ("aiohttp", "asyncio", "aiosqlite", "charset_normalizer")


def setup_logging(
    log_level: str | None = None,
    json_logging: bool | None = None,
    log_file: Path | None = None,
    quiet_libraries: bool = True,
) -> None:
    """Configure structlog on top of the standard library root logger.

    Args:
        log_level: Log level; defaults to ``Settings.log_level``
        json_logging: One JSON object per line instead of console rendering
        log_file: Also append log lines to this file
        quiet_libraries: Raise third-party loggers to WARNING
    """
    settings = get_settings()
    log_level = (log_level or settings.log_level).upper()
    json_logging = settings.json_logging if json_logging is None else json_logging
    level = getattr(logging, log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING if quiet_libraries else level)

    chain: list[Any] = [
        contextvars.merge_contextvars,
        stdlib.filter_by_level,
        stdlib.add_logger_name,
        stdlib.add_log_level,
        processors.TimeStamper(fmt="iso", utc=True),
        processors.StackInfoRenderer(),
        processors.format_exc_info,
    ]
    if json_logging:
        chain.append(processors.JSONRenderer(serializer=json.dumps, default=str))
    else:
        chain.append(dev.ConsoleRenderer(colors=False, sort_keys=False))

    structlog.configure(
        processors=chain,
        wrapper_class=stdlib.BoundLogger,
        logger_factory=stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def scrape_context(source_id: str, feed_url: str) -> Iterator[None]:
    """Attach the source being scraped to every log line in the block."""
    with contextvars.bound_contextvars(source_id=source_id, feed_url=feed_url):
        yield


def log_fetch(
    url: str,
    status: int,
    elapsed_ms: int,
    accept: str = "",
    **kwargs: Any
) -> dict[str, Any]:
    """Log entry for one outbound GET.

    Args:
        url: Requested URL
        status: HTTP status received
        elapsed_ms: Time to first byte in milliseconds
        accept: Accept header sent; only its first media type is logged
        **kwargs: Extra fields

    Returns:
        Structured log data
    """
    log_data = {
        "event": "fetch",
        "url": url,
        "status": status,
        "elapsed_ms": elapsed_ms,
        **kwargs
    }
    if accept:
        log_data["accept"] = accept.split(",", 1)[0].strip()
    return log_data


def log_processing_stage(
    stage: str,
    input_count: int,
    output_count: int,
    duration: float | None = None,
    **kwargs: Any
) -> dict[str, Any]:
    """Log entry for a stage that turns N inputs into M outputs.

    Args:
        stage: Stage name, e.g. ``enrich_feed_items``
        input_count: Items going in
        output_count: Items surviving the stage
        duration: Stage duration in seconds
        **kwargs: Extra fields

    Returns:
        Structured log data
    """
    log_data = {
        "event": "processing_stage",
        "stage": stage,
        "input_count": input_count,
        "output_count": output_count,
        "dropped": max(0, input_count - output_count),
        **kwargs
    }
    if duration is not None:
        log_data["duration"] = duration
    return log_data


def log_error(
    error: Exception,
    context: str | None = None,
    **kwargs: Any
) -> dict[str, Any]:
    """Log entry for an unexpected exception."""
    log_data = {
        "event": "error",
        "error_type": error.__class__.__name__,
        "error_message": str(error),
        **kwargs
    }
    if context:
        log_data["context"] = context
    return log_data


def log_scrape_result(result: Any) -> dict[str, Any]:
    """Log entry summarizing a ``ScrapeResult``."""
    return {
        "event": "source_scraped",
        "source_id": result.source_id,
        "success": result.success,
        "method": result.method,
        "found": result.articles_found,
        "stored": result.articles_scraped,
        "duplicates": result.duplicates,
        "discarded": result.discarded,
        "error_count": len(result.errors),
        "duration_ms": result.duration_ms,
    }


class PerformanceLogger:
    """Context manager timing an operation and logging how it ended."""

    def __init__(self, operation: str, logger: structlog.stdlib.BoundLogger):
        self.operation = operation
        self.logger = logger
        self.start_time: float | None = None
        self.duration_ms: int | None = None

    def __enter__(self) -> "PerformanceLogger":
        self.start_time = time.monotonic()
        self.logger.debug("operation_started", operation=self.operation)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is None:
            return
        self.duration_ms = int((time.monotonic() - self.start_time) * 1000)
        if exc_type is None:
            self.logger.info("operation_completed", operation=self.operation, duration_ms=self.duration_ms)
        elif issubclass(exc_type, Exception):
            self.logger.warning(
                "operation_failed",
                operation=self.operation,
                duration_ms=self.duration_ms,
                error_type=exc_type.__name__,
                error_message=str(exc_val) if exc_val else None,
            )
        else:
            self.logger.info("operation_cancelled", operation=self.operation, duration_ms=self.duration_ms)


setup_logging()
